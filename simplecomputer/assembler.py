"""Assembler for the simple computer: source text to a memory image."""

import argparse
import re
import sys
from pathlib import Path

from simplecomputer.commands import CommandError, Opcode, encode_command
from simplecomputer.machine import MEMORY_SIZE, Machine, MachineError

MAX_VALUE = 65535
DATA_DIRECTIVE = "="

_MNEMONICS = {
    name: Opcode[name]
    for name in (
        "NOP", "CPUINFO", "READ", "WRITE", "LOAD", "STORE", "ADD", "SUB",
        "DIVIDE", "MUL", "JUMP", "JNEG", "JZ", "HALT", "JNS", "JP", "SUBC",
    )
}

_INT = re.compile(r"[+-]?\d+")
_DATA = re.compile(r"(.)([+-]?[0-9A-Fa-f]{1,4})", re.DOTALL)


class AssemblerError(ValueError):
    """The assembler source is invalid."""


def mnemonic_code(name: str):
    """Return the opcode of a mnemonic, or None for the ``=`` data directive."""
    if name in _MNEMONICS:
        return _MNEMONICS[name]
    if name.startswith(DATA_DIRECTIVE):
        return None
    raise AssemblerError(f"unknown mnemonic: {name!r}")


def _parse_int(text: str, what: str) -> int:
    match = _INT.match(text)
    if match is None:
        raise AssemblerError(f"invalid {what}: {text!r}")
    return int(match.group())


def _data_value(text: str) -> int:
    match = _DATA.match(text)
    if match is None:
        raise AssemblerError(f"invalid data value: {text!r}")
    sign, digits = match.groups()
    value = int(digits, 16)
    return -value if sign == "-" else value


def assemble_line(line: str) -> tuple[int, int]:
    """Translate one ``address MNEMONIC operand [;comment]`` line to ``(address, value)``."""
    tokens = line.split()
    if len(tokens) < 3:
        raise AssemblerError(f"invalid syntax: {line.strip()!r}")
    address = _parse_int(tokens[0], "address")
    code = mnemonic_code(tokens[1])
    if code is None:
        value = _data_value(tokens[2])
    else:
        operand = _parse_int(tokens[2], "operand")
        try:
            value = encode_command(0, code, operand)
        except CommandError as exc:
            raise AssemblerError(str(exc)) from exc
    if not 0 <= address < MEMORY_SIZE:
        raise AssemblerError(f"address out of memory bounds: {address}")
    if not 0 <= value <= MAX_VALUE:
        raise AssemblerError(f"value out of range: {value}")
    return address, value


def assemble(text: str) -> list[int]:
    """Assemble a whole source text into a memory image."""
    memory = [0] * MEMORY_SIZE
    for number, line in enumerate(text.splitlines(), 1):
        try:
            address, value = assemble_line(line)
        except AssemblerError as exc:
            raise AssemblerError(f"line {number}: {exc}") from None
        memory[address] = value
    return memory


def assemble_file(source, target) -> list[int]:
    """Assemble the file ``source`` and save the memory image to ``target``."""
    text = Path(source).read_text(encoding="utf-8", errors="replace")
    memory = assemble(text)
    machine = Machine()
    machine.memory[:] = memory
    machine.save(target)
    return memory


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="sat", description="Assemble a simple computer program."
    )
    parser.add_argument("source", help="assembler source file (.sa)")
    parser.add_argument("target", help="memory image to write (.o)")
    args = parser.parse_args(argv)
    try:
        assemble_file(args.source, args.target)
    except AssemblerError as exc:
        print(f"Invalid syntax: {exc}")
        return 1
    except MachineError:
        print(f"Can`t create '{args.target}' file.")
        return 1
    except OSError:
        print(f"Can`t open '{args.source}' file.")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())