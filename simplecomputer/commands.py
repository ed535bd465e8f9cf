"""Instruction set of the machine and the encoding of command words."""

from enum import IntEnum

SIGN_SHIFT = 14
COMMAND_SHIFT = 7
FIELD_MASK = 0x7F
WORD_MASK = 0x7FFF


class CommandError(ValueError):
    """A command word or one of its fields is invalid."""


class Opcode(IntEnum):
    NOP = 0x0
    CPUINFO = 0x1
    READ = 0xA
    WRITE = 0xB
    LOAD = 0x14
    STORE = 0x15
    ADD = 0x1E
    SUB = 0x1F
    DIVIDE = 0x20
    MUL = 0x21
    JUMP = 0x28
    JNEG = 0x29
    JZ = 0x2A
    HALT = 0x2B
    NOT = 0x33
    AND = 0x34
    OR = 0x35
    XOR = 0x36
    JNS = 0x37
    JC = 0x38
    JNC = 0x39
    JP = 0x3A
    JNP = 0x3B
    CHL = 0x3C
    SHR = 0x3D
    RCL = 0x3E
    RCR = 0x3F
    NEG = 0x40
    ADDC = 0x41
    SUBC = 0x42
    LOGLC = 0x43
    LOGRC = 0x44
    RCCL = 0x45
    RCCR = 0x46
    MOVA = 0x47
    MOVR = 0x48
    MOVCA = 0x49
    MOVCR = 0x4A


_VALID_CODES = frozenset(int(op) for op in Opcode)


def is_valid_command(command: int) -> bool:
    """Return whether ``command`` is a known opcode."""
    return command in _VALID_CODES


def encode_command(sign: int, command: int, operand: int) -> int:
    """Pack sign, opcode and operand into a command word."""
    if sign not in (0, 1):
        raise CommandError(f"invalid sign: {sign}")
    if not 0 <= command <= FIELD_MASK or not is_valid_command(command):
        raise CommandError(f"invalid command: {command:#x}")
    if not 0 <= operand <= FIELD_MASK:
        raise CommandError(f"invalid operand: {operand}")
    return (sign << SIGN_SHIFT) | (command << COMMAND_SHIFT) | operand


def decode_command(value: int) -> tuple[int, int, int]:
    """Split a command word into ``(sign, command, operand)``."""
    if (value & ~WORD_MASK) > 0:
        raise CommandError(f"value does not fit in a command word: {value:#x}")
    sign = (value >> SIGN_SHIFT) & 1
    command = (value >> COMMAND_SHIFT) & FIELD_MASK
    operand = value & FIELD_MASK
    return sign, command, operand