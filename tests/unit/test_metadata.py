"""Unit tests for output-metadata extraction."""

from __future__ import annotations

from agentflow.analysis.metadata import (
    CodeBlockInfo,
    StepMetadata,
    extract_metadata,
    is_successful_output,
)


GENERATED = (
    "Created the API server\n"
    "```python\n"
    "// filepath: src/server.py\n"
    "app = create_app()\n"
    "```\n"
    "```typescript\n"
    "// filepath: web/client.ts\n"
    "```\n"
)


class TestExtractMetadata:
    """Tests for extract_metadata."""

    def test_files_generated(self) -> None:
        """filepath markers become generated files."""
        meta = extract_metadata(GENERATED)

        assert meta is not None
        assert meta.files_generated == ["src/server.py", "web/client.ts"]

    def test_code_blocks_with_languages(self) -> None:
        """Every fence marker is recorded, untagged ones as unknown."""
        meta = extract_metadata(GENERATED)

        assert [b.language for b in meta.code_blocks] == [
            "python",
            "unknown",
            "typescript",
            "unknown",
        ]

    def test_summary_is_first_line(self) -> None:
        """Short first lines become the summary."""
        assert extract_metadata(GENERATED).summary == "Created the API server"

    def test_long_first_line_has_no_summary(self) -> None:
        """First lines of 200+ chars are not summaries."""
        meta = extract_metadata("x" * 250 + "\nerror")

        assert meta is not None
        assert meta.summary is None

    def test_error_keywords_deduplicated(self) -> None:
        """Error keywords are kept once per spelling, in order."""
        meta = extract_metadata("Build failed\nerror in a\nerror in b\nFehler gefunden")

        assert meta.errors_found == ["error", "Fehler", "failed"]

    def test_nothing_extracted(self) -> None:
        """Blank text yields None."""
        assert extract_metadata("") is None
        assert extract_metadata("   \n  ") is None

    def test_idempotent(self) -> None:
        """Extracting twice gives equal metadata."""
        assert extract_metadata(GENERATED) == extract_metadata(GENERATED)

    def test_camel_case_dump(self) -> None:
        """Metadata serializes with camelCase keys."""
        meta = StepMetadata(files_generated=["a.py"], code_blocks=[CodeBlockInfo()])

        data = meta.model_dump(by_alias=True)
        assert data["filesGenerated"] == ["a.py"]
        assert data["codeBlocks"] == [{"language": "unknown"}]


class TestIsSuccessfulOutput:
    """Tests for the success heuristic."""

    def test_clean_output(self) -> None:
        """Text without error words succeeds."""
        assert is_successful_output("All tests pass") is True

    def test_error_word_anywhere(self) -> None:
        """Any casing of error/fehler fails, even in prose."""
        assert is_successful_output("Error: none found") is False
        assert is_successful_output("kein FEHLER") is False
