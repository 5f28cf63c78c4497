# y86kit

Tools for exploring how machines represent and process data:

- **Bit puzzles.** Two's-complement integer and single-precision float
  puzzles (`y86kit.bits`), their straightforward reference versions
  (`y86kit.reference`), and a checker that compares the two
  (`y86kit.btest`).
- **Number inspection.** Show the bit layout of 32-bit integers and floats
  (`y86kit.numshow`).
- **Y86.** An instruction set model (`y86kit.isa`), an instruction-level
  simulator (`y86kit.machine`), an assembler (`y86kit.assembler`), and a
  code generator for HCL expression trees (`y86kit.hcl`, with line
  wrapping from `y86kit.outgen`).
- **Exercise specifications.** Linked-list and block-copy routines
  (`y86kit.examples`).

Everything is pure Python with no runtime dependencies.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command-line tools

### `ishow` and `fshow`

`ishow` shows each 32-bit value in hex, signed and unsigned form. `fshow`
shows how each bit pattern decodes as a single-precision float: sign,
exponent, fraction, and whether it is normalized, denormalized, infinity or
NaN. Values may be given in decimal, octal or hex; `fshow` also accepts
floating-point numbers, which it converts to their bit pattern.

```
ishow 0xffffffff 42
fshow 0x3f800000 1.5 -0.0
```

### `btest`

Checks every puzzle in `y86kit.bits` against its reference in
`y86kit.reference` over a wide range of arguments (windows around zero and
the extremes for integers; zero, the denormal boundary, one and the largest
normal for floats) and prints a score table. The first mismatch of a puzzle
is reported and ends its check.

```
btest                      # check every puzzle
btest -f howManyBits       # check a single puzzle
btest -f negate -1 5       # check one puzzle with a fixed first argument
btest -g                   # compact output for grading
btest -r 2                 # give every puzzle the same weight
```

The `-T <lim>` option is accepted but has no effect: checks always run to
completion.

### `yas`

Assembles a Y86 source file `prog.ys` into an object listing `prog.yo`.
With `-V` it writes Verilog memory initialisation statements to standard
output instead; `-V8` splits them over eight memory banks.

```
yas prog.ys
yas -V prog.ys
```

### `yis`

Loads a `.yo` file, runs it until it halts, faults or reaches the step limit
(10000 by default), and reports the number of steps, the final PC, status
and condition codes, and the registers and memory words that changed.

```
yis prog.yo
yis prog.yo 500
```

## Library use

The puzzles work on 32-bit values, as plain Python integers:

```python
from y86kit import bits, reference

bits.how_many_bits(12)          # 5
bits.how_many_bits(-5)          # 4
bits.float_power2(0)            # 0x3f800000, the bits of 1.0
reference.is_ascii_digit(0x35)  # 1
```

The instruction set model exposes the ALU, condition codes and lookup
tables used by the simulator and the assembler:

```python
from y86kit import isa

isa.find_register("%esp")                            # Register.ESP
isa.cc_name(isa.compute_cc(isa.AluOp.SUB, 3, 3))     # "Z=1 S=0 O=0"
```

`isa.Memory` reads and writes bytes and little-endian words, raising
`isa.AddressError` outside its bounds; `Memory.load` reads an object
listing and raises `isa.LoadError` on a malformed line.

`y86kit.machine.State` holds the program counter, register file, memory and
condition codes; `State.step` executes one instruction and returns a
`Status`, and `run` keeps stepping until the machine stops.
`y86kit.assembler.Assembler.assemble` turns Y86 source text into an object
listing, raising `AssemblyError` with one message per offending line:

```python
from y86kit.assembler import Assembler
from y86kit.isa import Register
from y86kit.machine import State, run

listing = Assembler().assemble("irmovl $5, %eax\nhalt\n")
state = State()
state.mem.load(listing.splitlines())
run(state)                       # (2, Status.HLT)
state.regs.get(Register.EAX)     # 5
```

`y86kit.hcl.HclGenerator` builds HCL expression trees (`make_var`,
`make_and`, `make_case`, ...), declares signals with `add_arg`, and writes
a definition for each signal with `gen_funct` as a C function, a Verilog
assignment or a UCLID definition (`OutputMode`). Type errors are raised as
`HclError`.

`y86kit.examples` has the linked-list and block-copy routines (`sum_list`,
`rsum_list`, `copy_block`) that serve as specifications for Y86 exercises.

## What is not included

- There is no HCL text parser and no HCL command: `HclGenerator` is driven
  by calling its methods to build expressions and generate code.
- There is only the instruction-level simulator; there are no pipelined or
  sequential processor simulators and no graphical interface.