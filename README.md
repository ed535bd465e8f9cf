# simplecomputer

This package emulates a small educational computer in a text terminal. The
computer has 128 memory cells, an accumulator, an instruction counter, five
flags and a five-line processor cache. Two tools build memory images for it:

- `sat`, an assembler that turns assembly source into a memory image;
- `sbt`, a Basic translator that turns a small Basic dialect into assembly and
  can go on to produce the memory image.

It needs a POSIX system: the console uses `termios` and interval timers.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The console

```
simplecomputer
```

The terminal needs more than 25 rows and at least 109 columns; otherwise the
command prints `ERROR: window is too small!` and exits with status 1. The screen
shows the memory, the accumulator, the counter, the flags (`P O M T E` for
overflow, division by zero, range overflow, incorrect command and ignoring
clock pulses), the decoded and enlarged view of the active cell, the IN-OUT log
and the cache.

| Key        | Action                                                        |
|------------|---------------------------------------------------------------|
| arrows     | move the active cell                                          |
| Enter      | edit the active cell                                          |
| `l` / `s`  | load / save a memory image; the file name is read as a line   |
| `r`        | run the program from cell 0, one command every 0.1 s          |
| `t`        | stop running and execute a single command                     |
| `i`        | reset memory, registers and flags                             |
| F5         | set the accumulator                                           |
| F6         | set the instruction counter (three decimal digits, 000–255)   |
| Esc        | quit                                                          |

While a program runs, only `t`, `i` and Esc are acted on. A value is entered as
`+` or `-` followed by four hex digits; a first digit of 0–3 may be typed
directly and then stands for `+`.

Memory images are 128 signed 32-bit little-endian integers.

## Assembler

```
sat program.sa program.o
```

Every line has the form `ADDRESS MNEMONIC OPERAND [;comment]`:

```
00 READ 09
01 LOAD 09
02 ADD 10
03 STORE 11
04 WRITE 11
05 HALT 00
10 = +0005
```

The mnemonics are NOP, CPUINFO, READ, WRITE, LOAD, STORE, ADD, SUB, DIVIDE, MUL,
JUMP, JNEG, JZ, HALT, JNS, JP and SUBC. `=` stores a literal written as a sign
and up to four hex digits; the stored value must lie in 0–65535, so `-` literals
other than zero are rejected. Addresses run from 0 to 127 and operands from 0 to
127. Any error stops assembly with `Invalid syntax: ...` and exit status 1.

From Python, `assemble` returns the 128-cell memory image:

```python
from simplecomputer.assembler import assemble

memory = assemble("00 LOAD 10\n01 HALT 00\n10 = +0005\n")
```

`assemble_line`, `assemble_file` and `mnemonic_code` are also available;
errors raise `AssemblerError`.

## Basic

```
sbt program.sb program.sa -a          # stop after writing the assembly
sbt program.sb program.sa program.o   # also write the memory image
```

Supported statements: `REM`, `INPUT X`, `PRINT X`, `LET X = Y op Z`
(`+ - * /`), `LET X = number`, `IF X < 0 GOTO n` (`<`, `>` or `=`, always against
`0`), `GOTO n` and `END`. Variables are single characters, line numbers must
increase and empty lines are skipped.

```
10 REM difference
20 INPUT A
30 INPUT B
40 LET C = A - B
50 IF C < 0 GOTO 20
60 PRINT C
70 END
```

From Python, `Translator().translate(source)` returns the assembly text and
`compile_basic(source)` returns the assembled memory image; errors raise
`BasicError`.

```python
from simplecomputer.basic import Translator, compile_basic

source = open("program.sb").read()
assembly = Translator().translate(source)
memory = compile_basic(source)
```

## Running programs without the screen

`simplecomputer.cpu.step` executes one command of a `Machine`. `IOPort` is a
headless input/output device: `READ` takes words from `inputs`, `WRITE` appends
`(address, value)` to `outputs`.

```python
from simplecomputer.assembler import assemble
from simplecomputer.cpu import IOPort, step
from simplecomputer.machine import Flag, Machine

machine = Machine()
machine.memory[:] = assemble(open("program.sa").read())
io = IOPort(machine, inputs=[5])
while step(machine, io) and not machine.is_set(Flag.IGNORING_CLOCK_PULSES):
    pass
print(io.outputs)
```

## Limits

The processor executes CPUINFO, READ, WRITE, LOAD, STORE, ADD, SUB, DIVIDE,
MUL, JUMP, JNEG, JNS, JZ, HALT, NOT, JNP, AND and OR. The other opcodes of the
instruction set are accepted as valid commands but do nothing when executed.