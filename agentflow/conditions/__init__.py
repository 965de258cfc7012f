"""Condition predicates, expression compiler and routing evaluator."""

from agentflow.conditions.predicates import (
    AndPredicate,
    ConditionType,
    ConstantPredicate,
    FileCountPredicate,
    NotPredicate,
    OrPredicate,
    OutputContainsPredicate,
    OutputMatchesPredicate,
    Predicate,
    ShowConditionType,
    SignalPredicate,
)
from agentflow.conditions.parser import compile_expression, normalize_expression
from agentflow.conditions.evaluator import (
    condition_predicate,
    evaluate_condition,
    filter_options,
    first_matching_condition,
    legacy_predicate,
    option_is_visible,
)

__all__ = [
    "AndPredicate",
    "ConditionType",
    "ConstantPredicate",
    "FileCountPredicate",
    "NotPredicate",
    "OrPredicate",
    "OutputContainsPredicate",
    "OutputMatchesPredicate",
    "Predicate",
    "ShowConditionType",
    "SignalPredicate",
    "compile_expression",
    "condition_predicate",
    "evaluate_condition",
    "filter_options",
    "first_matching_condition",
    "legacy_predicate",
    "normalize_expression",
    "option_is_visible",
]
