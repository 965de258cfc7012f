"""Issue detection over free-text agent output.

Distinguishes real problems ("Error: cannot resolve module ...") from prose
that merely mentions the word "error". The result feeds condition-node
routing and the ``hasErrors``/``isSuccess``/... expression signals.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field


ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"error:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"fehler:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"exception:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"failed:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"cannot\s+(?:find|read|import|resolve)\s+(.{10,60})", re.IGNORECASE),
    re.compile(r"undefined\s+is\s+not", re.IGNORECASE),
    re.compile(r"null\s+is\s+not", re.IGNORECASE),
    re.compile(r"typeerror:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"syntaxerror:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"referenceerror:\s*(.{10,80})", re.IGNORECASE),
)

WARNING_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"warning:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"warnung:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"deprecated:\s*(.{10,80})", re.IGNORECASE),
)

# Critical findings only; recommendations ("should", "could") are not issues
ISSUE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"kritisch:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"critical:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"schwerwiegend:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"sicherheitslücke:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"vulnerability:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"bug:\s*(.{10,60})", re.IGNORECASE),
    re.compile(r"fehler\s+gefunden:\s*(.{10,80})", re.IGNORECASE),
    re.compile(r"problem\s+gefunden:\s*(.{10,80})", re.IGNORECASE),
)

SUCCESS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"erfolgreich\s+(?:erstellt|generiert|abgeschlossen)", re.IGNORECASE),
    re.compile(r"successfully\s+(?:created|generated|completed)", re.IGNORECASE),
    re.compile(r"✓|✅|done|fertig|completed", re.IGNORECASE),
    re.compile(r"code\s+(?:ist\s+)?(?:korrekt|funktioniert|läuft)", re.IGNORECASE),
    re.compile(r"keine\s+(?:fehler|probleme|issues)\s+gefunden", re.IGNORECASE),
    re.compile(r"no\s+(?:errors|issues|problems)\s+found", re.IGNORECASE),
)

CODE_FENCE = "```"
MAX_ISSUES = 5
MAX_ISSUE_LENGTH = 100


class OutputSignals(BaseModel):
    """Derived boolean signals over one raw output."""

    has_errors: bool = Field(False, description="Real error patterns were found")
    has_warnings: bool = Field(False, description="Warning patterns were found")
    has_issues: bool = Field(False, description="Critical issues or errors were found")
    is_success: bool = Field(False, description="Output reports success and has no errors")
    file_count: int = Field(0, ge=0, description="Number of code-fence pairs")
    issues: list[str] = Field(
        default_factory=list,
        description="Deduplicated issue excerpts (at most five)",
    )

    def signal(self, name: str) -> bool:
        """Look up a signal by its expression name (``hasErrors`` etc.)."""
        return {
            "hasErrors": self.has_errors,
            "hasWarnings": self.has_warnings,
            "hasIssues": self.has_issues,
            "isSuccess": self.is_success,
        }[name]


def count_file_blocks(output: str) -> int:
    """Count code-fence pairs in an output."""
    return output.count(CODE_FENCE) // 2


def _collect(patterns: tuple[re.Pattern[str], ...], output: str, issues: list[str]) -> bool:
    found = False
    for pattern in patterns:
        for match in pattern.finditer(output):
            found = True
            issues.append(match.group(0).strip()[:MAX_ISSUE_LENGTH])
    return found


def detect_issues(output: str) -> OutputSignals:
    """Derive error/warning/issue/success signals from free text.

    Example:
        >>> signals = detect_issues("Fehler: null pointer in handler")
        >>> signals.has_errors, signals.has_issues
        (True, True)
    """
    issues: list[str] = []

    has_errors = _collect(ERROR_PATTERNS, output, issues)
    has_warnings = any(pattern.search(output) for pattern in WARNING_PATTERNS)
    has_issues = _collect(ISSUE_PATTERNS, output, issues)
    is_success = any(pattern.search(output) for pattern in SUCCESS_PATTERNS)

    # Generated code without explicit problems counts as success
    if not has_errors and not has_issues and output.count(CODE_FENCE) >= 2:
        is_success = True

    unique_issues = list(dict.fromkeys(issues))[:MAX_ISSUES]

    return OutputSignals(
        has_errors=has_errors,
        has_warnings=has_warnings,
        has_issues=has_issues or has_errors,
        is_success=is_success and not has_errors,
        file_count=count_file_blocks(output),
        issues=unique_issues,
    )
