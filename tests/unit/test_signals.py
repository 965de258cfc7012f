"""Unit tests for output issue detection."""

from __future__ import annotations

import pytest

from agentflow.analysis.signals import OutputSignals, count_file_blocks, detect_issues


class TestDetectIssues:
    """Tests for detect_issues."""

    def test_real_error_detected(self) -> None:
        """Error lines should set hasErrors and hasIssues."""
        signals = detect_issues("Error: cannot resolve module './utils'")

        assert signals.has_errors is True
        assert signals.has_issues is True
        assert signals.is_success is False
        assert signals.issues

    def test_german_error_detected(self) -> None:
        """German error markers count as errors."""
        signals = detect_issues("Fehler: null pointer in handler")

        assert signals.has_errors is True

    def test_prose_mentioning_errors_is_not_an_error(self) -> None:
        """Words like 'errors' without a colon are not real errors."""
        signals = detect_issues("No errors found in the generated code.")

        assert signals.has_errors is False
        assert signals.is_success is True

    def test_warning_detected(self) -> None:
        """Warning markers set hasWarnings only."""
        signals = detect_issues("Warning: this API will be removed soon")

        assert signals.has_warnings is True
        assert signals.has_errors is False
        assert signals.has_issues is False

    def test_critical_issue_without_error(self) -> None:
        """Critical findings count as issues but not errors."""
        signals = detect_issues("Critical: SQL injection in the login form")

        assert signals.has_issues is True
        assert signals.has_errors is False

    def test_code_fences_imply_success(self) -> None:
        """Generated code without problems counts as success."""
        output = "Here you go\n```python\nprint('hi')\n```\n```js\nlet a = 1\n```"
        signals = detect_issues(output)

        assert signals.file_count == 2
        assert signals.is_success is True

    def test_errors_override_success(self) -> None:
        """Success is never reported alongside errors."""
        signals = detect_issues("Successfully created app.\nTypeError: x is not a function")

        assert signals.has_errors is True
        assert signals.is_success is False

    def test_issues_deduplicated_and_capped(self) -> None:
        """Issue list keeps at most five distinct excerpts."""
        lines = [f"Error: module number {i} is missing" for i in range(7)]
        signals = detect_issues("\n".join(lines + lines))

        assert len(signals.issues) == 5
        assert len(set(signals.issues)) == 5

    def test_issue_excerpt_length(self) -> None:
        """Issue excerpts are truncated."""
        signals = detect_issues("Error: " + "x" * 300)

        assert all(len(issue) <= 100 for issue in signals.issues)

    def test_empty_output(self) -> None:
        """Empty text yields no signals."""
        assert detect_issues("") == OutputSignals()


class TestSignalLookup:
    """Tests for OutputSignals.signal."""

    @pytest.mark.parametrize(
        "name,field",
        [
            ("hasErrors", "has_errors"),
            ("hasWarnings", "has_warnings"),
            ("hasIssues", "has_issues"),
            ("isSuccess", "is_success"),
        ],
    )
    def test_signal_names(self, name: str, field: str) -> None:
        """Expression names map onto fields."""
        signals = OutputSignals(**{field: True})
        assert signals.signal(name) is True

    def test_unknown_signal(self) -> None:
        """Unknown names raise KeyError."""
        with pytest.raises(KeyError):
            OutputSignals().signal("hasMagic")


class TestCountFileBlocks:
    """Tests for count_file_blocks."""

    def test_counts_pairs(self) -> None:
        """Only complete fence pairs count."""
        assert count_file_blocks("```a```") == 1
        assert count_file_blocks("```a``` ```") == 1
        assert count_file_blocks("no code") == 0
