"""Control-flow graphs over CPS terms and a generic worklist dataflow solver."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .atom import Atom, Lam
from .ir import IR, App, AppCont, Cont, Fix, If, Let, LetCont, LetVal


class NodeKind(enum.Enum):
    """What a graph node stands for."""

    PROGRAM_ENTRY = "program_entry"
    PROGRAM_EXIT = "program_exit"
    FUN_ENTRY = "fun_entry"
    FUN_EXIT = "fun_exit"
    COMMON = "common"


class Lattice(abc.ABC):
    """A join semilattice with a least element, used as analysis facts."""

    @staticmethod
    @abc.abstractmethod
    def join(a: Any, b: Any) -> Any:
        """Least upper bound of two facts."""

    @staticmethod
    @abc.abstractmethod
    def bottom() -> Any:
        """The least fact."""


@dataclass(eq=False)
class Node:
    """A graph node with its edges and the facts flowing in and out of it."""

    kind: NodeKind
    result_in: Any
    result_out: Any
    label: Optional[int] = None
    ir: Optional[IR] = None
    predecessors: List[int] = field(default_factory=list)
    successors: List[int] = field(default_factory=list)

    @classmethod
    def from_ir(cls, ir: IR, bottom: Any) -> Node:
        """A common node for the term ``ir``, with both facts at ``bottom``."""
        return cls(NodeKind.COMMON, bottom, bottom, ir.label, ir)


Constraint = Callable[[int, IR, Any], Any]


class NodePool:
    """The nodes of a control-flow graph together with a dataflow analysis."""

    def __init__(self, lattice: Any, forward: bool, constraint: Constraint) -> None:
        self.nodes: List[Node] = []
        self._lattice = lattice
        self._forward = forward
        self._constraint = constraint
        self._worklist: List[int] = []
        self._fun_entries: Dict[int, int] = {}
        self._fun_exits: Dict[int, int] = {}
        self._conts: Dict[str, int] = {}
        self._prog_entry = 0
        self._prog_exit = 0

    def new_node(
        self, kind: NodeKind, label: Optional[int] = None, ir: Optional[IR] = None
    ) -> int:
        """Add a node and return its index."""
        if kind is NodeKind.COMMON:
            if ir is None:
                raise ValueError("a common node needs a term")
            if label is None:
                label = ir.label
        bottom = self._lattice.bottom()
        self.nodes.append(Node(kind, bottom, bottom, label, ir))
        return len(self.nodes) - 1

    def push_worklist(self, node: int) -> None:
        self._worklist.append(node)

    def add_edge(self, source: int, target: int) -> None:
        self.nodes[source].successors.append(target)
        self.nodes[target].predecessors.append(source)

    def result_in(self, node: int) -> Any:
        return self.nodes[node].result_in

    def result_out(self, node: int) -> Any:
        return self.nodes[node].result_out

    def prog_entry(self) -> int:
        return self._prog_entry

    def prog_exit(self) -> int:
        return self._prog_exit

    def fun_entry(self, label: int) -> int:
        try:
            return self._fun_entries[label]
        except KeyError:
            raise KeyError(f"unrecognized fun entry: {label}") from None

    def fun_exit(self, label: int) -> int:
        try:
            return self._fun_exits[label]
        except KeyError:
            raise KeyError(f"unrecognized fun exit: {label}") from None

    def cont(self, name: str) -> int:
        try:
            return self._conts[name]
        except KeyError:
            raise KeyError(f"unrecognized cont name: {name}") from None

    def _common(self, ir: IR) -> int:
        return self.new_node(NodeKind.COMMON, ir.label, ir)

    def _construct_atom(self, atom: Atom) -> None:
        if not isinstance(atom, Lam):
            return
        entry = self.new_node(NodeKind.FUN_ENTRY, atom.label)
        exit_ = self.new_node(NodeKind.FUN_EXIT, atom.label)
        self._fun_entries[atom.label] = entry
        self._fun_exits[atom.label] = exit_
        body_node = self._common(atom.body)
        self.add_edge(entry, body_node)
        self._construct_inner(atom.body, body_node, exit_)

    def _link_cont(self, cont: Cont, node: int, exit_: int) -> None:
        if cont.is_return():
            self.add_edge(node, exit_)
            return
        if cont.name not in self._conts:
            raise KeyError(f"continuation not found, named: {cont.name}")
        self.add_edge(node, self._conts[cont.name])

    def _construct_chain(self, body: IR, node: int, exit_: int) -> None:
        body_node = self._common(body)
        self.add_edge(node, body_node)
        self._construct_inner(body, body_node, exit_)

    def construct_intra(self, ir: IR) -> None:
        """Build the graph of a whole program rooted at ``ir``."""
        self._prog_entry = self.new_node(NodeKind.PROGRAM_ENTRY)
        self._prog_exit = self.new_node(NodeKind.PROGRAM_EXIT)
        start = self._common(ir)
        self.add_edge(self._prog_entry, start)
        self._construct_inner(ir, start, self._prog_exit)

    def _construct_inner(self, ir: IR, node: int, exit_: int) -> None:
        if isinstance(ir, App):
            self._construct_atom(ir.func)
            for arg in ir.args:
                self._construct_atom(arg)
            self._link_cont(ir.cont, node, exit_)
        elif isinstance(ir, AppCont):
            for arg in ir.args:
                self._construct_atom(arg)
            self._link_cont(ir.cont, node, exit_)
        elif isinstance(ir, Fix):
            for value in ir.values:
                self._construct_atom(value)
            self._construct_chain(ir.body, node, exit_)
        elif isinstance(ir, If):
            self._construct_atom(ir.test)
            then_node = self._common(ir.then)
            else_node = self._common(ir.else_)
            self.add_edge(node, then_node)
            self.add_edge(node, else_node)
            self._construct_inner(ir.then, then_node, exit_)
            self._construct_inner(ir.else_, else_node, exit_)
        elif isinstance(ir, Let):
            for arg in ir.args:
                self._construct_atom(arg)
            self._construct_chain(ir.body, node, exit_)
        elif isinstance(ir, LetVal):
            self._construct_atom(ir.value)
            self._construct_chain(ir.body, node, exit_)
        elif isinstance(ir, LetCont):
            body_node = self._common(ir.body)
            self.add_edge(node, body_node)
            cont_node = self._common(ir.cont_body)
            self._conts[ir.name] = cont_node
            self._construct_inner(ir.body, body_node, exit_)
            self._construct_inner(ir.cont_body, cont_node, exit_)
        else:
            raise TypeError(f"not an IR term: {ir!r}")

    def run_worklist(self) -> None:
        """Propagate facts through the graph until nothing changes."""
        self._worklist = list(range(len(self.nodes)))
        while self._worklist:
            index = self._worklist.pop()
            node = self.nodes[index]
            if node.kind is NodeKind.COMMON:
                result = self._constraint(node.label, node.ir, node.result_in)
            else:
                result = node.result_in
            if result == node.result_out:
                continue
            node.result_out = result
            neighbours = node.successors if self._forward else node.predecessors
            for neighbour in list(neighbours):
                target = self.nodes[neighbour]
                joined = self._lattice.join(target.result_in, result)
                if joined != target.result_in:
                    target.result_in = joined
                    self.push_worklist(neighbour)