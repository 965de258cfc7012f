"""Typed predicate tree for condition routing.

Conditions are represented as a closed union of predicate nodes and
evaluated by direct interpretation. Nothing is ever executed as code.

Example:
    >>> pred = AndPredicate(operands=[
    ...     SignalPredicate(signal="hasErrors"),
    ...     NotPredicate(operand=OutputContainsPredicate(text="ignored")),
    ... ])
    >>> output = "Error: cannot resolve module './utils'"
    >>> pred.evaluate(output, detect_issues(output))
    True
"""

from __future__ import annotations

import operator
import re
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from agentflow.errors.exceptions import ExpressionError

if TYPE_CHECKING:
    from agentflow.analysis.signals import OutputSignals


SignalName = Literal["hasErrors", "hasWarnings", "hasIssues", "isSuccess"]
ComparisonOp = Literal["==", "!=", "<", "<=", ">", ">="]

SIGNAL_NAMES: tuple[str, ...] = ("hasErrors", "hasWarnings", "hasIssues", "isSuccess")

_COMPARATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class ConditionType(str, Enum):
    """Legacy ``type``/``value`` condition kinds."""

    OUTPUT_CONTAINS = "output-contains"
    OUTPUT_MATCHES = "output-matches"
    ERROR_OCCURRED = "error-occurred"
    SUCCESS = "success"
    HAS_ISSUES = "has-issues"


class ShowConditionType(str, Enum):
    """Filters deciding whether a human-decision option is offered."""

    ALWAYS = "always"
    OUTPUT_CONTAINS = "output-contains"
    OUTPUT_MATCHES = "output-matches"
    HAS_ERRORS = "has-errors"
    HAS_FILES = "has-files"


class _PredicateBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        """Evaluate against a raw output and its derived signals."""
        raise NotImplementedError

    def describe(self) -> str:
        """Render the predicate in expression syntax."""
        raise NotImplementedError


class ConstantPredicate(_PredicateBase):
    """Always true or always false."""

    kind: Literal["constant"] = "constant"
    value: bool

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return self.value

    def describe(self) -> str:
        return "true" if self.value else "false"


class SignalPredicate(_PredicateBase):
    """One of the boolean signals derived by issue detection."""

    kind: Literal["signal"] = "signal"
    signal: SignalName

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return signals.signal(self.signal)

    def describe(self) -> str:
        return self.signal


class OutputContainsPredicate(_PredicateBase):
    """Case-insensitive substring test on the output."""

    kind: Literal["outputContains"] = "outputContains"
    text: str

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return self.text.lower() in output.lower()

    def describe(self) -> str:
        return f"output.includes({self.text!r})"


class OutputMatchesPredicate(_PredicateBase):
    """Case-insensitive regular-expression search on the output."""

    kind: Literal["outputMatches"] = "outputMatches"
    pattern: str

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        try:
            compiled = re.compile(self.pattern, re.IGNORECASE)
        except re.error as e:
            raise ExpressionError(self.pattern, f"invalid regular expression: {e}") from e
        return compiled.search(output) is not None

    def describe(self) -> str:
        return f"output.matches({self.pattern!r})"


class FileCountPredicate(_PredicateBase):
    """Compares the number of code-fence pairs against a constant."""

    kind: Literal["fileCount"] = "fileCount"
    op: ComparisonOp
    value: float

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return _COMPARATORS[self.op](signals.file_count, self.value)

    def describe(self) -> str:
        value = int(self.value) if self.value.is_integer() else self.value
        return f"fileCount {self.op} {value}"


class NotPredicate(_PredicateBase):
    """Negation."""

    kind: Literal["not"] = "not"
    operand: Predicate

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return not self.operand.evaluate(output, signals)

    def describe(self) -> str:
        return f"!({self.operand.describe()})"


class AndPredicate(_PredicateBase):
    """True when every operand is true (short-circuit)."""

    kind: Literal["and"] = "and"
    operands: tuple[Predicate, ...] = Field(..., min_length=1)

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return all(op.evaluate(output, signals) for op in self.operands)

    def describe(self) -> str:
        return "(" + " && ".join(op.describe() for op in self.operands) + ")"


class OrPredicate(_PredicateBase):
    """True when any operand is true (short-circuit)."""

    kind: Literal["or"] = "or"
    operands: tuple[Predicate, ...] = Field(..., min_length=1)

    def evaluate(self, output: str, signals: OutputSignals) -> bool:
        return any(op.evaluate(output, signals) for op in self.operands)

    def describe(self) -> str:
        return "(" + " || ".join(op.describe() for op in self.operands) + ")"


Predicate = Annotated[
    Union[
        ConstantPredicate,
        SignalPredicate,
        OutputContainsPredicate,
        OutputMatchesPredicate,
        FileCountPredicate,
        NotPredicate,
        AndPredicate,
        OrPredicate,
    ],
    Field(discriminator="kind"),
]

NotPredicate.model_rebuild()
AndPredicate.model_rebuild()
OrPredicate.model_rebuild()
