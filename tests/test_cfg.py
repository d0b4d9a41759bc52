from typing import FrozenSet

import pytest

from cicero.atom import Var
from cicero.builtins import BuiltinOp
from cicero.cfg import Lattice, Node, NodeKind, NodePool
from cicero.cps import app, bool_, fix, i32, if_, lam, papp, quick_cps, v
from cicero.ir import App, AppCont, Cont


class LabelSet(Lattice):
    @staticmethod
    def join(a: FrozenSet[int], b: FrozenSet[int]) -> FrozenSet[int]:
        return a | b

    @staticmethod
    def bottom() -> FrozenSet[int]:
        return frozenset()


def collect(label, ir, facts):
    return facts | {label}


def build(ir, forward=True):
    pool = NodePool(LabelSet, forward, collect)
    pool.construct_intra(ir)
    return pool


def if_program():
    return quick_cps(if_(bool_(True), i32(1), i32(2)))


def test_node_from_ir():
    ir = quick_cps(i32(1))
    node = Node.from_ir(ir, frozenset())
    assert node.kind is NodeKind.COMMON
    assert node.label == ir.label
    assert node.ir is ir
    assert node.result_in == frozenset() and node.result_out == frozenset()


def test_new_node_and_edges():
    pool = NodePool(LabelSet, True, collect)
    a = pool.new_node(NodeKind.PROGRAM_ENTRY)
    b = pool.new_node(NodeKind.PROGRAM_EXIT)
    assert (a, b) == (0, 1)
    pool.add_edge(a, b)
    assert pool.nodes[a].successors == [b]
    assert pool.nodes[b].predecessors == [a]


def test_common_node_needs_term():
    pool = NodePool(LabelSet, True, collect)
    with pytest.raises(ValueError):
        pool.new_node(NodeKind.COMMON)


def test_single_return_program():
    ir = quick_cps(i32(1))
    pool = build(ir)
    assert len(pool.nodes) == 3
    start = pool.nodes[pool.prog_entry()].successors
    assert len(start) == 1
    assert pool.nodes[start[0]].ir is ir
    assert pool.nodes[start[0]].successors == [pool.prog_exit()]
    pool.run_worklist()
    assert pool.result_in(pool.prog_exit()) == frozenset({ir.label})
    assert pool.result_out(pool.prog_exit()) == pool.result_in(pool.prog_exit())


def test_if_branches_join_at_continuation():
    ir = if_program()
    pool = build(ir)
    cont_node = pool.nodes[pool.cont(ir.name)]
    assert cont_node.ir == ir.cont_body
    assert len(cont_node.predecessors) == 2
    branch_irs = {pool.nodes[p].ir for p in cont_node.predecessors}
    assert branch_irs == {ir.body.then, ir.body.else_}


def test_forward_reaches_every_term():
    ir = if_program()
    pool = build(ir)
    pool.run_worklist()
    labels = {ir.label, ir.body.label, ir.body.then.label, ir.body.else_.label, ir.cont_body.label}
    assert pool.result_in(pool.prog_exit()) == frozenset(labels)


def test_backward_matches_forward_on_straight_program():
    ir = if_program()
    forward = build(ir, forward=True)
    forward.run_worklist()
    backward = build(ir, forward=False)
    backward.run_worklist()
    assert backward.result_in(backward.prog_entry()) == forward.result_in(forward.prog_exit())
    assert backward.result_in(backward.prog_exit()) == frozenset()


def test_function_entry_and_exit():
    ir = quick_cps(app(lam(["x"], v("x")), [i32(7)]))
    lam_atom = ir.body.func
    pool = build(ir)
    entry = pool.fun_entry(lam_atom.label)
    exit_ = pool.fun_exit(lam_atom.label)
    assert pool.nodes[entry].kind is NodeKind.FUN_ENTRY
    assert pool.nodes[exit_].kind is NodeKind.FUN_EXIT
    body_nodes = pool.nodes[entry].successors
    assert [pool.nodes[n].ir for n in body_nodes] == [lam_atom.body]
    pool.run_worklist()
    assert pool.result_in(exit_) == frozenset({lam_atom.body.label})


def test_recursive_function_graph():
    fact = lam(
        ["x"],
        if_(
            papp(BuiltinOp.I32_LEQ, [v("x"), i32(1)]),
            i32(1),
            papp(BuiltinOp.I32_MUL, [app(v("fact"), [papp(BuiltinOp.I32_SUB, [v("x"), i32(1)])]), v("x")]),
        ),
    )
    ir = quick_cps(fix(["fact"], [fact], app(v("fact"), [i32(5)])))
    pool = build(ir)
    lam_atom = ir.values[0]
    pool.run_worklist()
    assert lam_atom.body.label in pool.result_in(pool.fun_exit(lam_atom.label))
    assert ir.label in pool.result_in(pool.prog_exit())


def test_unknown_lookups_raise():
    pool = build(quick_cps(i32(1)))
    with pytest.raises(KeyError):
        pool.fun_entry(99)
    with pytest.raises(KeyError):
        pool.fun_exit(99)
    with pytest.raises(KeyError):
        pool.cont("missing")


def test_missing_continuation_raises():
    pool = NodePool(LabelSet, True, collect)
    with pytest.raises(KeyError):
        pool.construct_intra(App(0, Var("f"), (), Cont.named("missing")))


def test_manual_cycle_reaches_fixed_point():
    pool = NodePool(LabelSet, True, collect)
    first = AppCont(5, Cont.RETURN, (i32(1),))
    second = AppCont(6, Cont.RETURN, (i32(2),))
    a = pool.new_node(NodeKind.COMMON, ir=first)
    b = pool.new_node(NodeKind.COMMON, ir=second)
    pool.add_edge(a, b)
    pool.add_edge(b, a)
    pool.run_worklist()
    assert pool.result_in(a) == frozenset({first.label, second.label})
    assert pool.result_out(b) == pool.result_in(a)