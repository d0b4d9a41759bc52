"""Source-level expressions and their conversion to CPS form."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Sequence, Tuple, Union

from .atom import Atom, Const, Lam, ScalarType, Var
from .builtins import BuiltinOp
from .ir import IR, App, AppCont, Cont, Fix, If, Let, LetCont, LetVal


@dataclass(frozen=True)
class Lambda:
    """A function expression."""

    params: Tuple[str, ...]
    body: Term

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))


@dataclass(frozen=True)
class Apply:
    """A function call."""

    func: Term
    args: Tuple[Term, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class PrimApply:
    """A primitive operation applied to arguments."""

    op: BuiltinOp
    args: Tuple[Term, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


@dataclass(frozen=True)
class IfExpr:
    """A conditional expression."""

    test: Term
    then: Term
    else_: Term


@dataclass(frozen=True)
class FixExpr:
    """Mutually recursive function bindings."""

    names: Tuple[str, ...]
    values: Tuple[Term, ...]
    body: Term

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", tuple(self.names))
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class LetExpr:
    """A local binding."""

    name: str
    value: Term
    body: Term


Term = Union[Var, Const, Lambda, Apply, PrimApply, IfExpr, FixExpr, LetExpr]


@dataclass
class GenTable:
    """Generator of fresh labels, continuation names and variable names."""

    label_count: int = field(default=0)
    cont_count: int = field(default=0)
    var_count: int = field(default=0)

    def alloc_label(self) -> int:
        label = self.label_count
        self.label_count += 1
        return label

    def alloc_cont(self) -> str:
        name = f"g_cont_{self.cont_count}"
        self.cont_count += 1
        return name

    def alloc_var(self) -> str:
        name = f"g_var_{self.var_count}"
        self.var_count += 1
        return name


def v(name: str) -> Var:
    return Var(name)


def i32(value: int) -> Const:
    return Const(ScalarType.I32, value)


def i64(value: int) -> Const:
    return Const(ScalarType.I64, value)


def u32(value: int) -> Const:
    return Const(ScalarType.U32, value)


def u64(value: int) -> Const:
    return Const(ScalarType.U64, value)


def bool_(value: bool) -> Const:
    return Const(ScalarType.BOOL, value)


def char(value: str) -> Const:
    return Const(ScalarType.CHAR, value)


def str_(value: str) -> Const:
    return Const(ScalarType.STRING, value)


def lam(params: Iterable[str], body: Term) -> Lambda:
    return Lambda(tuple(params), body)


def app(f: Term, args: Iterable[Term]) -> Apply:
    return Apply(f, tuple(args))


def papp(op: BuiltinOp, args: Iterable[Term]) -> PrimApply:
    return PrimApply(op, tuple(args))


def if_(test: Term, then: Term, else_: Term) -> IfExpr:
    return IfExpr(test, then, else_)


def fix(names: Iterable[str], values: Iterable[Term], body: Term) -> FixExpr:
    return FixExpr(tuple(names), tuple(values), body)


def let_(name: str, value: Term, body: Term) -> LetExpr:
    return LetExpr(name, value, body)


def cps_vec(
    ctx: GenTable, terms: Sequence[Term], k: Callable[[List[Atom]], IR]
) -> IR:
    """Convert terms left to right, handing their atoms in order to ``k``."""
    if not terms:
        return k([])
    first, rest = terms[0], terms[1:]
    return cps(ctx, first, lambda r: cps_vec(ctx, rest, lambda rv: k([r, *rv])))


def cps_lam(ctx: GenTable, term: Term) -> Lam:
    """Convert a lambda expression into a lambda atom."""
    if not isinstance(term, Lambda):
        raise TypeError(f"not a lambda: {term!r}")
    label = ctx.alloc_label()
    body = cps(ctx, term.body, lambda r: AppCont(ctx.alloc_label(), Cont.RETURN, (r,)))
    return Lam(label, term.params, body)


def cps(ctx: GenTable, term: Term, k: Callable[[Atom], IR]) -> IR:
    """Convert ``term`` to CPS, passing its resulting atom to ``k``."""
    if isinstance(term, (Var, Const)):
        return k(term)
    if isinstance(term, Lambda):
        return k(cps_lam(ctx, term))
    if isinstance(term, Apply):

        def after_func(func: Atom) -> IR:
            def after_args(atoms: List[Atom]) -> IR:
                label_cont = ctx.alloc_label()
                label_app = ctx.alloc_label()
                cont_name = ctx.alloc_cont()
                var_name = ctx.alloc_var()
                cont_body = k(Var(var_name))
                call = App(label_app, func, tuple(atoms), Cont.named(cont_name))
                return LetCont(label_cont, cont_name, (var_name,), cont_body, call)

            return cps_vec(ctx, term.args, after_args)

        return cps(ctx, term.func, after_func)
    if isinstance(term, PrimApply):

        def after_prim_args(atoms: List[Atom]) -> IR:
            label = ctx.alloc_label()
            var_name = ctx.alloc_var()
            return Let(label, var_name, term.op, tuple(atoms), k(Var(var_name)))

        return cps_vec(ctx, term.args, after_prim_args)
    if isinstance(term, IfExpr):

        def after_test(test: Atom) -> IR:
            label = ctx.alloc_label()
            label_cont = ctx.alloc_label()
            label_then = ctx.alloc_label()
            label_else = ctx.alloc_label()
            cont_name = ctx.alloc_cont()
            var_name = ctx.alloc_var()
            join = Cont.named(cont_name)
            cont_body = k(Var(var_name))
            then_ir = cps(ctx, term.then, lambda x: AppCont(label_then, join, (x,)))
            else_ir = cps(ctx, term.else_, lambda x: AppCont(label_else, join, (x,)))
            return LetCont(
                label_cont, cont_name, (var_name,), cont_body, If(label, test, then_ir, else_ir)
            )

        return cps(ctx, term.test, after_test)
    if isinstance(term, LetExpr):

        def after_value(value: Atom) -> IR:
            label = ctx.alloc_label()
            return LetVal(label, term.name, value, cps(ctx, term.body, k))

        return cps(ctx, term.value, after_value)
    if isinstance(term, FixExpr):
        label = ctx.alloc_label()
        values = tuple(cps_lam(ctx, value) for value in term.values)
        return Fix(label, term.names, values, cps(ctx, term.body, k))
    raise TypeError(f"not an expression: {term!r}")


def quick_cps(term: Term) -> IR:
    """Convert a whole program with a fresh name table."""
    ctx = GenTable()
    label = ctx.alloc_label()
    return cps(ctx, term, lambda r: AppCont(label, Cont.RETURN, (r,)))