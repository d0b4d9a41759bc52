"""Atoms and runtime values of the CPS intermediate representation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, Tuple, Union

if TYPE_CHECKING:
    from .ir import IR


class EvalError(RuntimeError):
    """Raised when evaluating a program or a builtin operation fails."""


class ScalarType(enum.Enum):
    """The primitive types a constant can carry."""

    I32 = "i32"
    I64 = "i64"
    U32 = "u32"
    U64 = "u64"
    BOOL = "bool"
    CHAR = "char"
    STRING = "string"


_INT_BOUNDS: Dict[ScalarType, Tuple[int, int]] = {
    ScalarType.I32: (-(2**31), 2**31 - 1),
    ScalarType.I64: (-(2**63), 2**63 - 1),
    ScalarType.U32: (0, 2**32 - 1),
    ScalarType.U64: (0, 2**64 - 1),
}


@dataclass(frozen=True, eq=False)
class Const:
    """A literal of a scalar type; serves both as an atom and as a value."""

    kind: ScalarType
    value: Any

    def __post_init__(self) -> None:
        kind, value = self.kind, self.value
        if kind in _INT_BOUNDS:
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{kind.value} constant needs an int, got {value!r}")
            low, high = _INT_BOUNDS[kind]
            if not low <= value <= high:
                raise ValueError(f"{value} does not fit in {kind.value}")
        elif kind is ScalarType.BOOL:
            if not isinstance(value, bool):
                raise TypeError(f"bool constant needs a bool, got {value!r}")
        elif kind is ScalarType.CHAR:
            if not isinstance(value, str):
                raise TypeError(f"char constant needs a str, got {value!r}")
            if len(value) != 1:
                raise ValueError(f"char constant needs one character, got {value!r}")
        elif not isinstance(value, str):
            raise TypeError(f"string constant needs a str, got {value!r}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Const):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.kind, self.value))


@dataclass(frozen=True)
class Var:
    """A reference to a variable by name."""

    name: str


@dataclass(frozen=True)
class Lam:
    """A labelled lambda abstraction."""

    label: int
    params: Tuple[str, ...]
    body: IR

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))


@dataclass(eq=False)
class Closure:
    """A function value: parameters, body and captured environment."""

    params: Tuple[str, ...]
    body: IR
    env: Dict[str, int] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        return False


@dataclass(eq=False)
class Continuation:
    """A continuation value: parameters, body and captured environment."""

    params: Tuple[str, ...]
    body: IR
    env: Dict[str, int] = field(default_factory=dict)

    def __eq__(self, other: object) -> bool:
        return False


Atom = Union[Var, Const, Lam]
Value = Union[Const, Closure, Continuation]


def lam(label: int, args: Iterable[str], body: IR) -> Lam:
    """Build a lambda atom."""
    return Lam(label, tuple(args), body)


def v(name: str) -> Var:
    """Build a variable atom."""
    return Var(name)