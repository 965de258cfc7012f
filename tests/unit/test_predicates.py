"""Unit tests for the predicate tree."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from agentflow.analysis.signals import detect_issues
from agentflow.conditions.predicates import (
    AndPredicate,
    ConstantPredicate,
    FileCountPredicate,
    NotPredicate,
    OrPredicate,
    OutputContainsPredicate,
    OutputMatchesPredicate,
    Predicate,
    SignalPredicate,
)
from agentflow.errors.exceptions import ExpressionError


ERROR_OUTPUT = "Error: cannot resolve module './utils'"
CODE_OUTPUT = "```python\na = 1\n```\n```python\nb = 2\n```"


def evaluate(predicate, output: str) -> bool:
    return predicate.evaluate(output, detect_issues(output))


class TestLeafPredicates:
    """Tests for leaf predicates."""

    def test_constant(self) -> None:
        """Constants ignore the output."""
        assert evaluate(ConstantPredicate(value=True), "") is True
        assert evaluate(ConstantPredicate(value=False), ERROR_OUTPUT) is False

    def test_signal(self) -> None:
        """Signals read the detected issues."""
        assert evaluate(SignalPredicate(signal="hasErrors"), ERROR_OUTPUT) is True
        assert evaluate(SignalPredicate(signal="isSuccess"), ERROR_OUTPUT) is False

    def test_unknown_signal_rejected(self) -> None:
        """Only known signal names validate."""
        with pytest.raises(ValidationError):
            SignalPredicate(signal="hasMagic")

    def test_output_contains_is_case_insensitive(self) -> None:
        """Substring tests ignore case."""
        assert evaluate(OutputContainsPredicate(text="DEPLOY"), "ready to deploy") is True
        assert evaluate(OutputContainsPredicate(text="rollback"), "ready to deploy") is False

    def test_output_matches(self) -> None:
        """Regex search ignores case."""
        pred = OutputMatchesPredicate(pattern=r"tests?\s+pass")
        assert evaluate(pred, "All TESTS PASS") is True

    def test_output_matches_invalid_regex(self) -> None:
        """Malformed patterns raise ExpressionError on evaluation."""
        with pytest.raises(ExpressionError):
            evaluate(OutputMatchesPredicate(pattern="(unclosed"), "text")

    @pytest.mark.parametrize(
        "op,value,expected",
        [
            (">=", 2, True),
            (">", 2, False),
            ("==", 2, True),
            ("!=", 2, False),
            ("<", 3, True),
            ("<=", 1, False),
        ],
    )
    def test_file_count(self, op: str, value: float, expected: bool) -> None:
        """File count compares fence pairs."""
        assert evaluate(FileCountPredicate(op=op, value=value), CODE_OUTPUT) is expected


class TestCompositePredicates:
    """Tests for not/and/or."""

    def test_not(self) -> None:
        """Negation flips the operand."""
        assert evaluate(NotPredicate(operand=SignalPredicate(signal="hasErrors")), "fine") is True

    def test_and_or(self) -> None:
        """And needs all operands, or needs one."""
        yes = ConstantPredicate(value=True)
        no = ConstantPredicate(value=False)

        assert evaluate(AndPredicate(operands=(yes, yes)), "") is True
        assert evaluate(AndPredicate(operands=(yes, no)), "") is False
        assert evaluate(OrPredicate(operands=(no, yes)), "") is True
        assert evaluate(OrPredicate(operands=(no, no)), "") is False

    def test_and_short_circuits(self) -> None:
        """Later operands are not evaluated once the result is known."""
        pred = AndPredicate(operands=(
            ConstantPredicate(value=False),
            OutputMatchesPredicate(pattern="(unclosed"),
        ))
        assert evaluate(pred, "text") is False

    def test_empty_operands_rejected(self) -> None:
        """Composite predicates need at least one operand."""
        with pytest.raises(ValidationError):
            AndPredicate(operands=())


class TestPredicateSerialization:
    """Tests for the discriminated union."""

    def test_validate_nested_dict(self) -> None:
        """Nested dicts resolve by their kind tag."""
        adapter = TypeAdapter(Predicate)
        pred = adapter.validate_python({
            "kind": "and",
            "operands": [
                {"kind": "signal", "signal": "hasErrors"},
                {"kind": "not", "operand": {"kind": "outputContains", "text": "ignored"}},
            ],
        })

        assert isinstance(pred, AndPredicate)
        assert isinstance(pred.operands[1], NotPredicate)
        assert evaluate(pred, ERROR_OUTPUT) is True

    def test_dump_round_trip(self) -> None:
        """Dumped predicates validate back to equal trees."""
        adapter = TypeAdapter(Predicate)
        pred = OrPredicate(operands=(
            FileCountPredicate(op=">", value=0),
            SignalPredicate(signal="isSuccess"),
        ))

        assert adapter.validate_python(adapter.dump_python(pred)) == pred

    def test_unknown_kind_rejected(self) -> None:
        """Unknown tags fail validation."""
        with pytest.raises(ValidationError):
            TypeAdapter(Predicate).validate_python({"kind": "eval", "code": "1"})

    def test_describe(self) -> None:
        """describe() renders expression syntax."""
        pred = AndPredicate(operands=(
            SignalPredicate(signal="hasErrors"),
            FileCountPredicate(op=">=", value=2),
        ))
        assert pred.describe() == "(hasErrors && fileCount >= 2)"
