"""Terms of the continuation-passing intermediate representation."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, ClassVar, Optional, Tuple

from .atom import Lam

if TYPE_CHECKING:
    from .atom import Atom
    from .builtins import BuiltinOp


@dataclass(frozen=True)
class Cont:
    """A continuation target: a named continuation or the enclosing return."""

    name: Optional[str] = None

    RETURN: ClassVar[Cont]

    @staticmethod
    def named(name: str) -> Cont:
        """Refer to the continuation bound under ``name``."""
        return Cont(name)

    def is_return(self) -> bool:
        """Whether this continuation returns from the enclosing function."""
        return self.name is None


Cont.RETURN = Cont()


def _freeze(obj: object, *names: str) -> None:
    for name in names:
        object.__setattr__(obj, name, tuple(getattr(obj, name)))


class IR:
    """Base class of every term; each carries an integer ``label``."""

    __slots__ = ()
    label: int


@dataclass(frozen=True)
class LetCont(IR):
    """Bind a continuation ``name`` with ``params`` and ``cont_body`` in ``body``."""

    label: int
    name: str
    params: Tuple[str, ...]
    cont_body: IR
    body: IR

    def __post_init__(self) -> None:
        _freeze(self, "params")


@dataclass(frozen=True)
class Let(IR):
    """Bind the result of a primitive operation."""

    label: int
    var: str
    op: BuiltinOp
    args: Tuple[Atom, ...]
    body: IR

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class LetVal(IR):
    """Bind an atom to a variable."""

    label: int
    var: str
    value: Atom
    body: IR


@dataclass(frozen=True)
class If(IR):
    """Branch on a boolean atom."""

    label: int
    test: Atom
    then: IR
    else_: IR


@dataclass(frozen=True)
class App(IR):
    """Call a function and pass its result to ``cont``."""

    label: int
    func: Atom
    args: Tuple[Atom, ...]
    cont: Cont

    def __post_init__(self) -> None:
        _freeze(self, "args")


@dataclass(frozen=True)
class Fix(IR):
    """Bind mutually recursive values."""

    label: int
    names: Tuple[str, ...]
    values: Tuple[Atom, ...]
    body: IR

    def __post_init__(self) -> None:
        _freeze(self, "names", "values")


@dataclass(frozen=True)
class AppCont(IR):
    """Pass values to a continuation."""

    label: int
    cont: Cont
    args: Tuple[Atom, ...]

    def __post_init__(self) -> None:
        _freeze(self, "args")


def _normalize_atom(atom: Atom) -> Atom:
    if isinstance(atom, Lam):
        return Lam(atom.label, atom.params, normalize(atom.body))
    return atom


def _normalize_atoms(atoms: Tuple[Atom, ...]) -> Tuple[Atom, ...]:
    return tuple(_normalize_atom(atom) for atom in atoms)


def normalize(ir: IR) -> IR:
    """Lift the Let, LetVal and Fix definitions of a chain before its LetConts."""
    lifted: list[IR] = []
    conts: list[LetCont] = []
    cursor = ir
    while True:
        if isinstance(cursor, Fix):
            lifted.append(replace(cursor, values=_normalize_atoms(cursor.values)))
        elif isinstance(cursor, Let):
            lifted.append(replace(cursor, args=_normalize_atoms(cursor.args)))
        elif isinstance(cursor, LetVal):
            lifted.append(replace(cursor, value=_normalize_atom(cursor.value)))
        elif isinstance(cursor, LetCont):
            conts.append(cursor)
        else:
            break
        cursor = cursor.body

    if isinstance(cursor, App):
        base: IR = replace(
            cursor, func=_normalize_atom(cursor.func), args=_normalize_atoms(cursor.args)
        )
    elif isinstance(cursor, AppCont):
        base = replace(cursor, args=_normalize_atoms(cursor.args))
    elif isinstance(cursor, If):
        base = replace(
            cursor,
            test=_normalize_atom(cursor.test),
            then=normalize(cursor.then),
            else_=normalize(cursor.else_),
        )
    else:
        raise TypeError(f"not an IR term: {cursor!r}")

    for definition in reversed(conts):
        base = replace(definition, body=base)
    for definition in reversed(lifted):
        base = replace(definition, body=base)
    return base