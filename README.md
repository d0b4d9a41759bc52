# cicero

A small compiler toolkit built around a continuation-passing-style (CPS)
intermediate representation.

- `cicero.cps`: a surface expression language built from Python calls
  (`v`, `i32`, `i64`, `u32`, `u64`, `bool_`, `char`, `str_`, `lam`, `app`,
  `papp`, `if_`, `let_`, `fix`). `cps` and `quick_cps` convert an
  expression into the IR. `GenTable` supplies fresh labels and fresh names
  of the form `g_cont_N` and `g_var_N`.
- `cicero.ir`: the IR terms `LetCont`, `Let`, `LetVal`, `If`, `App`, `Fix`
  and `AppCont`. Each term carries an integer `label`. `Cont` is either a
  named continuation (`Cont.named(name)`) or `Cont.RETURN`. `normalize`
  moves the `Let`, `LetVal` and `Fix` definitions of a chain in front of
  its `LetCont` definitions.
- `cicero.atom`: the atoms `Var`, `Const` and `Lam`. The runtime values are
  `Const`, `Closure` and `Continuation`. `Const` checks that its value fits
  its `ScalarType`.
- `cicero.builtins`: `BuiltinOp` and `builtin_call`. These cover add, sub,
  mul, div, the comparisons eq/gt/geq/lt/leq, and and/or/xor/not, for
  `i32`, `i64`, `u32` and `u64`. Division truncates toward zero. Division
  by zero and overflow in add, sub, mul or div raise `EvalError`.
  `I32_NOT` reverses the bit order of its operand; the other `NOT`
  operations take the bitwise complement.
- `cicero.interp`: an interpreter with an explicit `Store`. The function
  `evaluate(ir)` runs a closed program.
- `cicero.cfg`: a control-flow graph (`NodePool`) with program and function
  entry and exit nodes, and a generic worklist solver over a `Lattice`.
- `cicero.analysis.available_expression`: an available-expressions analysis
  built on `cicero.cfg`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Example: factorial

```python
from cicero.builtins import BuiltinOp
from cicero.cps import app, fix, i32, if_, lam, papp, quick_cps, v
from cicero.interp import evaluate

fact = lam(
    ["x"],
    if_(
        papp(BuiltinOp.I32_LEQ, [v("x"), i32(1)]),
        i32(1),
        papp(
            BuiltinOp.I32_MUL,
            [app(v("fact"), [papp(BuiltinOp.I32_SUB, [v("x"), i32(1)])]), v("x")],
        ),
    ),
)
program = fix(["fact"], [fact], app(v("fact"), [i32(5)]))

ir = quick_cps(program)
assert evaluate(ir) == i32(120)
```

`evaluate` runs the IR with an empty environment and a fresh `Store`.
Evaluation errors raise `cicero.atom.EvalError`. These include unbound
variables, wrong operand types or counts for builtins, a non-boolean `if`
test, and applying something that is not a function.

## Dataflow analysis

```python
from cicero.analysis.available_expression import make_analysis

pool = make_analysis()
pool.construct_intra(ir)
pool.run_worklist()
print(pool.result_out(pool.prog_exit()))
```

`NodePool(lattice, forward, constraint)` takes three arguments:

- a lattice class that provides `join` and `bottom`;
- the analysis direction;
- a function `constraint(label, ir, fact)` that is applied at every node
  that stands for a term.

`construct_intra` builds the graph for a program. `run_worklist` then
propagates facts until they stop changing. Look up nodes with
`prog_entry()`, `prog_exit()`, `fun_entry(label)`, `fun_exit(label)` and
`cont(name)`.

## What it does not do

The package is a library only:

- it has no command-line program;
- it has no parser for a textual syntax, so programs are built with the
  functions in `cicero.cps` or by constructing IR terms directly;
- the analysis package contains only available expressions.