"""Stylemotion model layer -- public type re-exports."""

from stylemotion.model.declarations import Declaration, Rule, order_rules
from stylemotion.model.diagnostic import Diagnostic, Severity
from stylemotion.model.keyframes import KeyframeDefinition, KeyframeStop
from stylemotion.model.snapshot import ComputedStyleSnapshot, LayoutBox
from stylemotion.model.values import (
    NONE,
    Angle,
    Color,
    Function,
    Percentage,
    Raw,
    Scalar,
    StyleValue,
    TransformFunction,
    TransformList,
    VariableRef,
    contains_variables,
)

__all__ = [
    # values
    "StyleValue",
    "Scalar",
    "Percentage",
    "Angle",
    "Color",
    "Function",
    "TransformFunction",
    "TransformList",
    "VariableRef",
    "Raw",
    "NONE",
    "contains_variables",
    # declarations
    "Declaration",
    "Rule",
    "order_rules",
    # keyframes
    "KeyframeStop",
    "KeyframeDefinition",
    # snapshot
    "LayoutBox",
    "ComputedStyleSnapshot",
    # diagnostic
    "Severity",
    "Diagnostic",
]
