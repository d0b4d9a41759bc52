import pytest

from cicero import cps as E
from cicero.atom import Closure, Const, EvalError, Lam, ScalarType, Var
from cicero.builtins import BuiltinOp
from cicero.interp import Store, apply_cont, evaluate, interp, interp_atom
from cicero.ir import App, AppCont, Cont, If, LetVal


def test_factorial():
    fact = E.lam(
        ["x"],
        E.if_(
            E.papp(BuiltinOp.I32_LEQ, [E.v("x"), E.i32(1)]),
            E.i32(1),
            E.papp(
                BuiltinOp.I32_MUL,
                [
                    E.app(E.v("fact"), [E.papp(BuiltinOp.I32_SUB, [E.v("x"), E.i32(1)])]),
                    E.v("x"),
                ],
            ),
        ),
    )
    prog = E.fix(["fact"], [fact], E.app(E.v("fact"), [E.i32(5)]))
    ir = E.quick_cps(prog)
    assert evaluate(ir) == Const(ScalarType.I32, 120)


def test_mutual_recursion():
    even = E.lam(
        ["n"],
        E.if_(
            E.papp(BuiltinOp.I32_EQ, [E.v("n"), E.i32(0)]),
            E.bool_(True),
            E.app(E.v("odd"), [E.papp(BuiltinOp.I32_SUB, [E.v("n"), E.i32(1)])]),
        ),
    )
    odd = E.lam(
        ["n"],
        E.if_(
            E.papp(BuiltinOp.I32_EQ, [E.v("n"), E.i32(0)]),
            E.bool_(False),
            E.app(E.v("even"), [E.papp(BuiltinOp.I32_SUB, [E.v("n"), E.i32(1)])]),
        ),
    )
    prog = E.fix(["even", "odd"], [even, odd], E.app(E.v("even"), [E.i32(7)]))
    assert evaluate(E.quick_cps(prog)) == Const(ScalarType.BOOL, False)


def test_let_and_if():
    prog = E.let_(
        "x",
        E.i32(3),
        E.if_(E.papp(BuiltinOp.I32_LT, [E.v("x"), E.i32(4)]), E.str_("small"), E.str_("big")),
    )
    assert evaluate(E.quick_cps(prog)) == Const(ScalarType.STRING, "small")


def test_store_alloc_get_set():
    store = Store()
    a = store.alloc(E.i32(1))
    b = store.alloc(E.i32(2))
    assert b == a + 1
    assert store.count() == 2
    store.set(a, E.i32(9))
    assert store.get(a) == E.i32(9)
    assert store.get(b) == E.i32(2)


def test_store_out_of_bound():
    with pytest.raises(EvalError, match="out of bound"):
        Store().get(0)


def test_interp_atom_lambda_captures_env():
    env = {"y": 0}
    value = interp_atom(Lam(1, ("x",), AppCont(2, Cont.RETURN, (Var("x"),))), env, Store())
    assert isinstance(value, Closure)
    assert value.env == env
    assert value.params == ("x",)


def test_unbound_variable():
    with pytest.raises(EvalError, match="unbound variable: z"):
        interp_atom(Var("z"), {}, Store())


def test_if_requires_boolean():
    ir = If(0, E.i32(1), AppCont(1, Cont.RETURN, (E.i32(1),)), AppCont(2, Cont.RETURN, (E.i32(2),)))
    with pytest.raises(EvalError, match="boolean"):
        evaluate(ir)


def test_application_requires_function():
    with pytest.raises(EvalError, match="not a function"):
        evaluate(App(0, E.i32(1), (), Cont.RETURN))


def test_unbound_continuation():
    with pytest.raises(EvalError, match="unbound continuation"):
        evaluate(AppCont(0, Cont.named("k"), (E.i32(1),)))


def test_not_a_continuation():
    ir = LetVal(0, "k", E.i32(1), AppCont(1, Cont.named("k"), (E.i32(1),)))
    with pytest.raises(EvalError, match="not a continuation"):
        evaluate(ir)


def test_apply_cont_return_yields_first_value():
    assert apply_cont(Cont.RETURN, [E.i32(4), E.i32(5)], {}, Store()) == E.i32(4)


def test_builtin_errors_propagate():
    prog = E.papp(BuiltinOp.I32_DIV, [E.i32(1), E.i32(0)])
    with pytest.raises(EvalError):
        evaluate(E.quick_cps(prog))


def test_interp_uses_given_env():
    store = Store()
    env = {"x": store.alloc(E.u64(11))}
    assert interp(AppCont(0, Cont.RETURN, (Var("x"),)), env, store) == E.u64(11)