"""Available expressions: a forward "must" analysis over primitive operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Tuple

from ..atom import Atom
from ..builtins import BuiltinOp
from ..cfg import Lattice, NodePool
from ..ir import IR, Let


@dataclass(frozen=True)
class Expression:
    """A primitive operation applied to atoms (never lambdas)."""

    op: BuiltinOp
    args: Tuple[Atom, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class ExpressionLattice(Lattice):
    """Either bottom (``exprs`` is None) or a set of available expressions."""

    exprs: Optional[FrozenSet[Expression]] = None

    @property
    def is_bottom(self) -> bool:
        return self.exprs is None

    @classmethod
    def of(cls, op: BuiltinOp, args: Iterable[Atom]) -> ExpressionLattice:
        """The fact holding exactly one expression."""
        return cls(frozenset({Expression(op, tuple(args))}))

    @staticmethod
    def join(a: ExpressionLattice, b: ExpressionLattice) -> ExpressionLattice:
        if b.exprs is None:
            return a
        if a.exprs is None:
            return b
        return ExpressionLattice(a.exprs & b.exprs)

    @staticmethod
    def bottom() -> ExpressionLattice:
        return ExpressionLattice()


def _constraint(label: int, ir: IR, facts: ExpressionLattice) -> ExpressionLattice:
    if isinstance(ir, Let):
        return ExpressionLattice.join(facts, ExpressionLattice.of(ir.op, ir.args))
    return facts


def make_analysis() -> NodePool:
    """A forward analysis pool for available expressions."""
    return NodePool(ExpressionLattice, True, _constraint)