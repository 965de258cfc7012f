"""Output-metadata extraction.

Best-effort annotation of raw agent text: generated file paths, error
keywords, fenced code blocks and a one-line summary. This is a heuristic,
not a parser with formal guarantees.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


FILEPATH_MARKER = re.compile(r"// filepath: ([^\n]+)")
ERROR_KEYWORDS: tuple[re.Pattern[str], ...] = (
    re.compile(r"error", re.IGNORECASE),
    re.compile(r"fehler", re.IGNORECASE),
    re.compile(r"failed", re.IGNORECASE),
)
CODE_BLOCK_MARKER = re.compile(r"```(\w+)?")
MAX_SUMMARY_LENGTH = 200


class CodeBlockInfo(BaseModel):
    """One fenced code marker found in an output."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    language: str = Field("unknown", description="Fence language tag")


class StepMetadata(BaseModel):
    """Derived annotations attached to a step result."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    files_generated: list[str] = Field(
        default_factory=list,
        description="Paths announced with '// filepath:' markers",
    )
    errors_found: list[str] = Field(
        default_factory=list,
        description="Distinct error keyword spellings found in the output",
    )
    code_blocks: list[CodeBlockInfo] = Field(
        default_factory=list,
        description="Fence markers with their language tags",
    )
    summary: str | None = Field(None, description="First line when shorter than 200 chars")

    @property
    def is_empty(self) -> bool:
        """Whether nothing was extracted."""
        return not (
            self.files_generated or self.errors_found or self.code_blocks or self.summary
        )


def extract_metadata(output: str) -> StepMetadata | None:
    """Extract metadata from a raw output.

    Returns None when nothing could be extracted. The function is pure, so
    repeated calls on the same text produce equal results.

    Example:
        >>> meta = extract_metadata("Created app\\n// filepath: src/app.py\\n")
        >>> meta.files_generated
        ['src/app.py']
    """
    files = [match.group(1).strip() for match in FILEPATH_MARKER.finditer(output)]

    errors: list[str] = []
    for pattern in ERROR_KEYWORDS:
        errors.extend(match.group(0) for match in pattern.finditer(output))

    blocks = [
        CodeBlockInfo(language=match.group(1) or "unknown")
        for match in CODE_BLOCK_MARKER.finditer(output)
    ]

    first_line = output.split("\n", 1)[0].strip()
    summary = first_line if first_line and len(first_line) < MAX_SUMMARY_LENGTH else None

    metadata = StepMetadata(
        files_generated=files,
        errors_found=list(dict.fromkeys(errors)),
        code_blocks=blocks,
        summary=summary,
    )
    return None if metadata.is_empty else metadata


def is_successful_output(output: str) -> bool:
    """Quality heuristic for an agent output.

    True unless the text mentions "error" or "fehler" in any casing. The
    value is informational and never changes routing.
    """
    lowered = output.lower()
    return "error" not in lowered and "fehler" not in lowered
