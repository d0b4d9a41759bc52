"""Interpreter for the CPS intermediate representation."""

from __future__ import annotations

from typing import Dict, List, Sequence

from .atom import Atom, Closure, Const, Continuation, EvalError, Lam, ScalarType, Value, Var
from .builtins import builtin_call
from .ir import IR, App, AppCont, Cont, Fix, If, Let, LetCont, LetVal

Env = Dict[str, int]


class Store:
    """A growable memory of values addressed by integer."""

    def __init__(self) -> None:
        self._mem: List[Value] = []

    def alloc(self, value: Value) -> int:
        """Store ``value`` and return its address."""
        self._mem.append(value)
        return len(self._mem) - 1

    def get(self, addr: int) -> Value:
        if not 0 <= addr < len(self._mem):
            raise EvalError("store: address out of bound")
        return self._mem[addr]

    def set(self, addr: int, value: Value) -> None:
        if not 0 <= addr < len(self._mem):
            raise EvalError("store: address out of bound")
        self._mem[addr] = value

    def count(self) -> int:
        """Number of allocated cells."""
        return len(self._mem)


def interp_atom(atom: Atom, env: Env, store: Store) -> Value:
    """Evaluate an atom in ``env``."""
    if isinstance(atom, Var):
        if atom.name not in env:
            raise EvalError(f"unbound variable: {atom.name}")
        return store.get(env[atom.name])
    if isinstance(atom, Const):
        return atom
    if isinstance(atom, Lam):
        return Closure(atom.params, atom.body, dict(env))
    raise TypeError(f"not an atom: {atom!r}")


def apply_cont_by_name(name: str, values: Sequence[Value], env: Env, store: Store) -> Value:
    """Invoke the continuation bound under ``name`` with ``values``."""
    if name not in env:
        raise EvalError(f"unbound continuation: {name}")
    cont = store.get(env[name])
    if not isinstance(cont, Continuation):
        raise EvalError("apply_cont: not a continuation")
    if len(values) > len(cont.params):
        raise EvalError(
            f"apply_cont: {name} takes {len(cont.params)} values but receives {len(values)}"
        )
    new_env = dict(cont.env)
    for param, value in zip(cont.params, values):
        new_env[param] = store.alloc(value)
    return interp(cont.body, new_env, store)


def apply_cont(cont: Cont, values: Sequence[Value], env: Env, store: Store) -> Value:
    """Pass ``values`` to ``cont``; a return yields the first value."""
    if cont.is_return():
        if not values:
            raise EvalError("apply_cont: return needs a value")
        return values[0]
    return apply_cont_by_name(cont.name, values, env, store)


def interp(ir: IR, env: Env, store: Store) -> Value:
    """Evaluate ``ir`` in ``env`` against ``store``."""
    if isinstance(ir, LetCont):
        cont = Continuation(ir.params, ir.cont_body, dict(env))
        return interp(ir.body, {**env, ir.name: store.alloc(cont)}, store)
    if isinstance(ir, Let):
        values = [interp_atom(arg, env, store) for arg in ir.args]
        result = builtin_call(ir.op, values)
        return interp(ir.body, {**env, ir.var: store.alloc(result)}, store)
    if isinstance(ir, LetVal):
        value = interp_atom(ir.value, env, store)
        return interp(ir.body, {**env, ir.var: store.alloc(value)}, store)
    if isinstance(ir, If):
        test = interp_atom(ir.test, env, store)
        if not (isinstance(test, Const) and test.kind is ScalarType.BOOL):
            raise EvalError("if: test should be a boolean")
        return interp(ir.then if test.value else ir.else_, env, store)
    if isinstance(ir, App):
        func = interp_atom(ir.func, env, store)
        if not isinstance(func, Closure):
            raise EvalError("application: not a function")
        new_env = dict(func.env)
        for arg, param in zip(ir.args, func.params):
            new_env[param] = store.alloc(interp_atom(arg, env, store))
        result = interp(func.body, new_env, store)
        return apply_cont(ir.cont, [result], env, store)
    if isinstance(ir, Fix):
        new_env = dict(env)
        offset = store.count()
        for name in ir.names:
            new_env[name] = store.alloc(Const(ScalarType.BOOL, False))
        for addr, value in enumerate(ir.values, start=offset):
            store.set(addr, interp_atom(value, new_env, store))
        return interp(ir.body, new_env, store)
    if isinstance(ir, AppCont):
        if ir.cont.is_return():
            if not ir.args:
                raise EvalError("return: no value given")
            return interp_atom(ir.args[0], env, store)
        values = [interp_atom(arg, env, store) for arg in ir.args]
        return apply_cont_by_name(ir.cont.name, values, env, store)
    raise TypeError(f"not an IR term: {ir!r}")


def evaluate(ir: IR) -> Value:
    """Evaluate a closed program with an empty environment and store."""
    return interp(ir, {}, Store())