"""Primitive operations on integer constants."""

from __future__ import annotations

import enum
import operator
from typing import Callable, Dict, Iterable

from .atom import _INT_BOUNDS, Const, EvalError, ScalarType, Value

_I32, _I64, _U32, _U64 = ScalarType.I32, ScalarType.I64, ScalarType.U32, ScalarType.U64


class BuiltinOp(enum.Enum):
    """A primitive operation, tagged with its operand type."""

    I32_ADD = (_I32, "add")
    I32_SUB = (_I32, "sub")
    I32_MUL = (_I32, "mul")
    I32_DIV = (_I32, "div")
    I32_EQ = (_I32, "eq")
    I32_GT = (_I32, "gt")
    I32_GEQ = (_I32, "geq")
    I32_LT = (_I32, "lt")
    I32_LEQ = (_I32, "leq")
    I32_AND = (_I32, "and")
    I32_OR = (_I32, "or")
    I32_XOR = (_I32, "xor")
    I32_NOT = (_I32, "not")

    I64_ADD = (_I64, "add")
    I64_SUB = (_I64, "sub")
    I64_MUL = (_I64, "mul")
    I64_DIV = (_I64, "div")
    I64_EQ = (_I64, "eq")
    I64_GT = (_I64, "gt")
    I64_GEQ = (_I64, "geq")
    I64_LT = (_I64, "lt")
    I64_LEQ = (_I64, "leq")
    I64_AND = (_I64, "and")
    I64_OR = (_I64, "or")
    I64_XOR = (_I64, "xor")
    I64_NOT = (_I64, "not")

    U32_ADD = (_U32, "add")
    U32_SUB = (_U32, "sub")
    U32_MUL = (_U32, "mul")
    U32_DIV = (_U32, "div")
    U32_EQ = (_U32, "eq")
    U32_GT = (_U32, "gt")
    U32_GEQ = (_U32, "geq")
    U32_LT = (_U32, "lt")
    U32_LEQ = (_U32, "leq")
    U32_AND = (_U32, "and")
    U32_OR = (_U32, "or")
    U32_XOR = (_U32, "xor")
    U32_NOT = (_U32, "not")

    U64_ADD = (_U64, "add")
    U64_SUB = (_U64, "sub")
    U64_MUL = (_U64, "mul")
    U64_DIV = (_U64, "div")
    U64_EQ = (_U64, "eq")
    U64_GT = (_U64, "gt")
    U64_GEQ = (_U64, "geq")
    U64_LT = (_U64, "lt")
    U64_LEQ = (_U64, "leq")
    U64_AND = (_U64, "and")
    U64_OR = (_U64, "or")
    U64_XOR = (_U64, "xor")
    U64_NOT = (_U64, "not")

    def __str__(self) -> str:
        kind, name = self.value
        return kind.name + name.capitalize()


def _truncating_div(a: int, b: int) -> int:
    if b == 0:
        raise EvalError("attempt to divide by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


_COMPARISONS: Dict[str, Callable[[int, int], bool]] = {
    "eq": operator.eq,
    "gt": operator.gt,
    "geq": operator.ge,
    "lt": operator.lt,
    "leq": operator.le,
}

_ARITHMETIC: Dict[str, Callable[[int, int], int]] = {
    "add": operator.add,
    "sub": operator.sub,
    "mul": operator.mul,
    "div": _truncating_div,
}

_BITWISE: Dict[str, Callable[[int, int], int]] = {
    "and": operator.and_,
    "or": operator.or_,
    "xor": operator.xor,
}


def _complement(kind: ScalarType, value: int) -> int:
    low, high = _INT_BOUNDS[kind]
    if kind is ScalarType.I32:
        # The i32 variant reverses the bit order of its operand.
        width = 32
        reversed_bits = int(format(value & (2**width - 1), f"0{width}b")[::-1], 2)
        return reversed_bits - 2**width if reversed_bits > high else reversed_bits
    if low < 0:
        return ~value
    return value ^ high


def builtin_call(op: BuiltinOp, args: Iterable[Value]) -> Const:
    """Apply a primitive operation to evaluated arguments."""
    args = list(args)
    kind, name = op.value
    arity = 1 if name == "not" else 2
    if len(args) != arity:
        noun = "argument" if arity == 1 else "arguments"
        raise EvalError(f"{op}: requires {arity} {noun} but receives {len(args)}")
    if not all(isinstance(arg, Const) and arg.kind is kind for arg in args):
        raise EvalError(f"{op}: wrong type of arguments")
    values = [arg.value for arg in args]

    if name == "not":
        return Const(kind, _complement(kind, values[0]))
    if name in _COMPARISONS:
        return Const(ScalarType.BOOL, _COMPARISONS[name](*values))
    if name in _BITWISE:
        return Const(kind, _BITWISE[name](*values))

    result = _ARITHMETIC[name](*values)
    low, high = _INT_BOUNDS[kind]
    if not low <= result <= high:
        raise EvalError(f"{op}: attempt to {name} with overflow")
    return Const(kind, result)