"""Simple BASIC translator: BASIC source to assembler text and memory images."""

import argparse
import re
import sys
from dataclasses import dataclass
from pathlib import Path

from simplecomputer.assembler import AssemblerError, assemble, assemble_file
from simplecomputer.machine import MachineError

PROGRAM_SLOTS = 256

_MASK32 = 0xFFFFFFFF

_HEAD = re.compile(r"\s*([+-]?\d+)\s*(\S+)(.*)", re.DOTALL)
_INT = re.compile(r"[+-]?\d+")
_LET_CONSTANT = re.compile(r"(.)=\s*([+-]?\d+)", re.DOTALL)
_LET_EXPRESSION = re.compile(r"(.)=(.)(.)(.)\s*", re.DOTALL)
_IF = re.compile(r"(.)(.)(.)GOTO\s*([+-]?\d+)\s*", re.DOTALL)

_ARITHMETIC = {"+": "ADD", "-": "SUB", "*": "MUL", "/": "DIVIDE"}
_CONDITIONS = {"<": "JNEG", ">": "JNS", "=": "JZ"}
_VARIABLE_OPS = frozenset(
    {"READ", "WRITE", "LOAD", "STORE", "ADD", "SUB", "DIVIDE", "MUL"}
)
_JUMP_OPS = frozenset({"JUMP", "JNEG", "JNS", "JZ"})


class BasicError(ValueError):
    """The BASIC source is invalid."""


@dataclass(frozen=True)
class _Instruction:
    line: int | None
    op: str
    arg: str = ""


def strip_spaces(text: str) -> str:
    """Remove every space character from ``text``; other whitespace stays."""
    return text.replace(" ", "")


class Translator:
    """Translates BASIC programs into assembler text.

    Variables are single characters. A numeric constant in ``LET`` lives in a
    cell named by the first character of its digits.
    """

    def __init__(self):
        self.variables: list[str] = []
        self.constants: dict[int, int] = {}
        self.instructions: list[_Instruction] = []

    def var_address(self, name: str, offset: int) -> int:
        """Return the address of variable ``name``, allocating it on first use."""
        if name not in self.variables:
            self.variables.append(name)
        return offset + self.variables.index(name)

    def var_name(self, address: int, offset: int):
        """Return the variable stored at ``address``, or None."""
        index = address - offset
        if 0 <= index < len(self.variables):
            return self.variables[index]
        return None

    def goto_address(self, line_number: int) -> int:
        """Return the address of the first instruction of BASIC line ``line_number``."""
        for address, instruction in enumerate(self.instructions):
            if instruction.line == line_number:
                return address
        raise BasicError(f"no instructions for line {line_number}")

    def _emit(self, line, op: str, arg: str = "") -> None:
        self.instructions.append(_Instruction(line, op, arg))

    def _parse_let(self, number: int, text: str) -> None:
        match = _LET_CONSTANT.match(text)
        if match is not None:
            self._emit(number, "LOAD", str(int(match[2])))
            self._emit(None, "STORE", match[1])
            return
        match = _LET_EXPRESSION.fullmatch(text)
        if match is None or match[3] not in _ARITHMETIC:
            raise BasicError(f"invalid LET statement: {text!r}")
        target, left, operator, right = match.groups()
        self._emit(number, "LOAD", left)
        self._emit(None, _ARITHMETIC[operator], right)
        self._emit(None, "STORE", target)

    def _parse_if(self, number: int, text: str) -> None:
        match = _IF.fullmatch(text)
        if match is None:
            raise BasicError(f"invalid IF statement: {text!r}")
        variable, condition, zero, target = match.groups()
        if zero != "0" or condition not in _CONDITIONS:
            raise BasicError(f"unsupported condition: {variable}{condition}{zero}")
        self._emit(number, "LOAD", variable)
        self._emit(None, _CONDITIONS[condition], str(int(target)))

    def _parse_line(self, line: str, last: int) -> int:
        match = _HEAD.match(line)
        if match is None:
            raise BasicError(f"invalid syntax: {line!r}")
        number, statement, rest = int(match[1]), match[2], match[3]
        if number <= last:
            raise BasicError(f"line number {number} does not follow {last}")
        if statement == "REM":
            return last
        if statement == "END":
            if rest.strip():
                raise BasicError(f"END takes no arguments: {line!r}")
            self._emit(number, "HALT")
        elif statement in ("INPUT", "PRINT"):
            variable = rest.strip()
            if len(variable) != 1:
                raise BasicError(f"{statement} takes one variable: {line!r}")
            self._emit(number, "READ" if statement == "INPUT" else "WRITE", variable)
        elif statement == "LET":
            self._parse_let(number, strip_spaces(line[line.find("LET") + 4 :]))
        elif statement == "IF":
            self._parse_if(number, strip_spaces(line[line.find("IF") + 2 :]))
        elif statement == "GOTO":
            target = rest.strip()
            if not _INT.fullmatch(target):
                raise BasicError(f"invalid GOTO target: {line!r}")
            self._emit(number, "JUMP", str(int(target)))
        else:
            raise BasicError(f"unknown statement: {statement!r}")
        return number

    def _render(self) -> str:
        offset = len(self.instructions)
        lines = []
        for address, instruction in enumerate(self.instructions):
            op = instruction.op
            if op in _VARIABLE_OPS:
                variable = self.var_address(instruction.arg[0], offset)
                constant = _INT.match(instruction.arg)
                if op == "LOAD" and constant is not None:
                    self.constants[variable] = int(constant.group())
                lines.append(f"{address:02d} {op} {variable:02d}")
            elif op in _JUMP_OPS:
                target = self.goto_address(int(instruction.arg))
                lines.append(f"{address:02d} {op} {target:02d}")
            else:
                lines.append(f"{address:02d} {op} 00")
        end = offset + len(self.variables)
        if end > PROGRAM_SLOTS:
            raise BasicError(f"program needs {end} cells, at most {PROGRAM_SLOTS} fit")
        for address in range(offset, end):
            if self.var_name(address, offset) is not None:
                value = self.constants.get(address, 0) & _MASK32
                lines.append(f"{address:02d} = +{value:04X}")
        return "".join(f"{line}\n" for line in lines)

    def translate(self, source: str) -> str:
        """Translate BASIC ``source`` into assembler text."""
        self.variables = []
        self.constants = {}
        self.instructions = []
        last = 0
        for number, line in enumerate(source.splitlines(), 1):
            if not line:
                continue
            try:
                last = self._parse_line(line, last)
            except BasicError as exc:
                raise BasicError(f"line {number}: {exc}") from None
        return self._render()


def compile_basic(source: str) -> list[int]:
    """Translate BASIC ``source`` and assemble it into a memory image."""
    text = Translator().translate(source)
    try:
        return assemble(text)
    except AssemblerError as exc:
        raise BasicError(str(exc)) from exc


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="sbt", description="Translate a simple BASIC program."
    )
    parser.add_argument("source", help="BASIC source file (.sb)")
    parser.add_argument("assembly", help="assembler file to write (.sa)")
    parser.add_argument("object", nargs="?", help="memory image to write (.o)")
    parser.add_argument(
        "-a", dest="assembly_only", action="store_true",
        help="stop after writing the assembler file",
    )
    args = parser.parse_args(argv)
    if not args.assembly_only and args.object is None:
        parser.error("give either -a or an object file")

    try:
        source = Path(args.source).read_text(encoding="utf-8", errors="replace")
    except OSError:
        print(f"Can`t open '{args.source}' file.")
        return 1
    try:
        text = Translator().translate(source)
    except BasicError as exc:
        print(f"Invalid syntax: {exc}")
        return 1
    try:
        Path(args.assembly).write_text(text, encoding="utf-8")
    except OSError:
        print(f"Can`t create '{args.assembly}' file.")
        return 1
    if args.assembly_only:
        return 0

    try:
        assemble_file(args.assembly, args.object)
    except AssemblerError as exc:
        print(f"Invalid syntax: {exc}")
        return 1
    except MachineError:
        print(f"Can`t create '{args.object}' file.")
        return 1
    except OSError:
        print(f"Can`t open '{args.assembly}' file.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())