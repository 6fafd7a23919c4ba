"""Condition expressions over records: constants, attribute references, operators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from .errors import BooleanExprArgIsNotBoolean, CompareValueOfDifferentDatatype
from .tables import DataType, Value, get_attr


class OpType(IntEnum):
    """Boolean and comparison operators."""

    BOOL_AND = 0
    BOOL_OR = 1
    BOOL_NOT = 2
    COMP_EQUAL = 3
    COMP_SMALLER = 4


@dataclass(frozen=True)
class Constant:
    """An expression that always yields ``value``."""

    value: Value


@dataclass(frozen=True)
class AttrRef:
    """An expression that yields attribute ``attr_num`` of the record."""

    attr_num: int


@dataclass(frozen=True)
class Operator:
    """An operator applied to one (NOT) or two argument expressions."""

    type: OpType
    args: tuple

    def __post_init__(self):
        op_type = OpType(self.type)
        args = tuple(self.args)
        expected = 1 if op_type is OpType.BOOL_NOT else 2
        if len(args) != expected:
            raise ValueError(f"{op_type.name} takes {expected} argument(s), got {len(args)}")
        object.__setattr__(self, "type", op_type)
        object.__setattr__(self, "args", args)


Expr = Union[Constant, AttrRef, Operator]


def _same_type(left: Value, right: Value) -> None:
    if left.dt is not right.dt:
        raise CompareValueOfDifferentDatatype(
            "comparison only supported for values of the same datatype"
        )


def _require_bool(*values: Value, operation: str) -> None:
    if any(value.dt is not DataType.BOOL for value in values):
        raise BooleanExprArgIsNotBoolean(f"boolean {operation} requires boolean input")


def value_equals(left, right) -> Value:
    """Boolean value telling whether two values of the same type are equal."""
    _same_type(left, right)
    return Value(DataType.BOOL, left.v == right.v)


def value_smaller(left, right) -> Value:
    """Boolean value telling whether ``left`` sorts before ``right``."""
    _same_type(left, right)
    return Value(DataType.BOOL, left.v < right.v)


def bool_not(value) -> Value:
    _require_bool(value, operation="NOT")
    return Value(DataType.BOOL, not value.v)


def bool_and(left, right) -> Value:
    _require_bool(left, right, operation="AND")
    return Value(DataType.BOOL, left.v and right.v)


def bool_or(left, right) -> Value:
    _require_bool(left, right, operation="OR")
    return Value(DataType.BOOL, left.v or right.v)


_BINARY = {
    OpType.BOOL_AND: bool_and,
    OpType.BOOL_OR: bool_or,
    OpType.COMP_EQUAL: value_equals,
    OpType.COMP_SMALLER: value_smaller,
}


def eval_expr(record, schema, expr) -> Value:
    """Evaluate ``expr`` against ``record`` of ``schema``."""
    if isinstance(expr, Constant):
        return expr.value
    if isinstance(expr, AttrRef):
        return get_attr(record, schema, expr.attr_num)
    if isinstance(expr, Operator):
        values = [eval_expr(record, schema, arg) for arg in expr.args]
        if expr.type is OpType.BOOL_NOT:
            return bool_not(*values)
        return _BINARY[expr.type](*values)
    raise TypeError(f"not an expression: {expr!r}")