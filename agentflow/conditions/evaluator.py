"""Condition-node routing and human-option filtering."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from agentflow.analysis.signals import OutputSignals, detect_issues
from agentflow.conditions.parser import compile_expression
from agentflow.conditions.predicates import (
    ConditionType,
    ConstantPredicate,
    OrPredicate,
    OutputContainsPredicate,
    OutputMatchesPredicate,
    Predicate,
    ShowConditionType,
    SignalPredicate,
)
from agentflow.errors.exceptions import ExpressionError

if TYPE_CHECKING:
    from agentflow.core.state import WorkflowStepResult
    from agentflow.graph.models import HumanDecisionOption, WorkflowCondition


WarningSink = Callable[[str], None]

_NEVER = ConstantPredicate(value=False)


def legacy_predicate(condition_type: ConditionType, value: str | None) -> Predicate:
    """Translate a legacy ``type``/``value`` pair into a predicate.

    With a value, ``error-occurred`` and ``success`` are plain keyword
    tests. Without one they use the detected signals instead.
    """
    if value:
        if condition_type == ConditionType.OUTPUT_CONTAINS:
            return OutputContainsPredicate(text=value)
        if condition_type == ConditionType.OUTPUT_MATCHES:
            return OutputMatchesPredicate(pattern=value)
        if condition_type == ConditionType.ERROR_OCCURRED:
            return OrPredicate(operands=(
                OutputContainsPredicate(text="error"),
                OutputContainsPredicate(text="fehler"),
            ))
        if condition_type == ConditionType.SUCCESS:
            return OrPredicate(operands=(
                OutputContainsPredicate(text="erfolgreich"),
                OutputContainsPredicate(text="success"),
            ))
        if condition_type == ConditionType.HAS_ISSUES:
            return SignalPredicate(signal="hasIssues")
        return _NEVER

    if condition_type == ConditionType.ERROR_OCCURRED:
        return SignalPredicate(signal="hasErrors")
    if condition_type == ConditionType.SUCCESS:
        return SignalPredicate(signal="isSuccess")
    if condition_type == ConditionType.HAS_ISSUES:
        return SignalPredicate(signal="hasIssues")
    return _NEVER


def condition_predicate(condition: WorkflowCondition) -> Predicate:
    """Resolve the predicate a condition tests.

    Raises:
        ExpressionError: If the condition's expression does not compile.
    """
    if condition.predicate is not None:
        return condition.predicate
    if condition.expression and condition.expression.strip():
        return compile_expression(condition.expression)
    if condition.type is not None:
        return legacy_predicate(condition.type, condition.value)
    return _NEVER


def evaluate_condition(
    condition: WorkflowCondition,
    output: str,
    signals: OutputSignals | None = None,
) -> bool:
    """Evaluate one condition against a raw output.

    Raises:
        ExpressionError: If the expression or regular expression is malformed.
    """
    if signals is None:
        signals = detect_issues(output)
    return condition_predicate(condition).evaluate(output, signals)


def first_matching_condition(
    conditions: Sequence[WorkflowCondition],
    output: str | None,
    on_warning: WarningSink | None = None,
) -> WorkflowCondition | None:
    """Find the first condition that matches, in order.

    Malformed expressions count as "no match": they are reported through
    ``on_warning`` and evaluation moves on to the next condition.

    Returns:
        The matching condition, or None when nothing matches or there is
        no output to test.
    """
    if not conditions or not output:
        return None

    signals = detect_issues(output)
    for condition in conditions:
        try:
            matched = evaluate_condition(condition, output, signals)
        except ExpressionError as e:
            if on_warning is not None:
                on_warning(f"Expression error: {e}")
            continue
        if matched:
            return condition
    return None


def option_is_visible(option: HumanDecisionOption, previous: WorkflowStepResult) -> bool:
    """Check an option's show condition against the previous step result."""
    show = option.show_condition
    if show is None or show.type == ShowConditionType.ALWAYS:
        return True

    value = show.value or ""
    if show.type == ShowConditionType.OUTPUT_CONTAINS:
        return value.lower() in previous.output.lower()
    if show.type == ShowConditionType.OUTPUT_MATCHES:
        try:
            return re.search(value, previous.output, re.IGNORECASE) is not None
        except re.error:
            return False
    if show.type == ShowConditionType.HAS_ERRORS:
        return bool(previous.metadata and previous.metadata.errors_found)
    if show.type == ShowConditionType.HAS_FILES:
        return bool(previous.metadata and previous.metadata.files_generated)
    return True


def filter_options(
    options: Iterable[HumanDecisionOption],
    previous: WorkflowStepResult | None,
) -> list[HumanDecisionOption]:
    """Options to present at a human-decision node.

    Falls back to the full list when there is no previous result or when
    filtering would leave nothing to choose from.
    """
    options = list(options)
    if previous is None:
        return options
    visible = [option for option in options if option_is_visible(option, previous)]
    return visible or options
