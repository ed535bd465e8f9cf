"""Control unit and arithmetic-logic unit of the simple computer."""

from collections import deque
from dataclasses import dataclass, field

from simplecomputer.commands import CommandError, Opcode, decode_command
from simplecomputer.machine import MEMORY_SIZE, Flag, Machine, MachineError

CPU_INFO = "SimpleComputer CPU: 128 words of memory, 5-line cache"

SIGN_BIT = 1 << 14
_CARRY_BIT = 1 << 15
_ALU_LIMIT = 0x3FFF
_ALU_COMMANDS = range(Opcode.ADD, Opcode.MUL + 1)


def _to_int32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _c_div(dividend: int, divisor: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


def _store(machine: Machine, value: int) -> None:
    """Put a result into the accumulator; a value that does not fit raises the overflow flag."""
    try:
        machine.accumulator = _to_int32(value)
    except MachineError:
        machine.set_flag(Flag.OVERFLOW, 1)


def _cell(machine: Machine, address: int) -> int:
    try:
        return machine.memory_get(address)
    except MachineError:
        return 0


@dataclass
class IOPort:
    """Headless input/output device: reads come from ``inputs``, writes go to ``outputs``."""

    machine: Machine
    inputs: deque = field(default_factory=deque)
    outputs: list = field(default_factory=list)
    info: list = field(default_factory=list)

    def __post_init__(self):
        self.inputs = deque(self.inputs)

    def read_cell(self, address: int) -> None:
        """Store the next queued input word in memory cell ``address``."""
        self.machine.memory_get(address)
        if not self.inputs:
            raise EOFError("no input left for READ")
        self.machine.memory[address] = self.inputs.popleft()

    def write_cell(self, address: int) -> None:
        """Record ``(address, value)`` of memory cell ``address``."""
        self.outputs.append((address, self.machine.memory_get(address)))

    def cpu_info(self) -> None:
        self.info.append(CPU_INFO)


def alu(machine: Machine, command: int, operand: int) -> None:
    """Run an arithmetic command on the accumulator and memory cell ``operand``."""
    machine.set_flag(Flag.OVERFLOW, 1)
    value = _cell(machine, operand)
    acc = machine.accumulator

    if command == Opcode.ADD:
        if acc + value > _ALU_LIMIT:
            _store(machine, acc ^ _CARRY_BIT)
            machine.set_flag(Flag.OVERFLOW, 1)
        else:
            _store(machine, acc + value)
    elif command == Opcode.SUB:
        if acc - value < -_ALU_LIMIT:
            _store(machine, acc ^ SIGN_BIT)
            machine.set_flag(Flag.OVERFLOW, 1)
        else:
            _store(machine, acc - value)
    elif command == Opcode.DIVIDE:
        if value == 0:
            machine.set_flag(Flag.DIVISION_BY_ZERO, 1)
            return
        sign_a = (acc >> 14) & 1
        sign_v = (value >> 14) & 1
        result = _c_div(acc, value)
        if sign_a or sign_v:
            result ^= SIGN_BIT
        _store(machine, result)
    elif command == Opcode.MUL:
        if acc * value > _ALU_LIMIT:
            machine.set_flag(Flag.OVERFLOW, 1)
            return
        sign_a = (acc >> 14) & 1
        sign_v = (value >> 14) & 1
        result = _to_int32(acc * value)
        if sign_a or sign_v:
            result ^= SIGN_BIT
        _store(machine, result)
    else:
        machine.set_flag(Flag.INCORRECT_COMMAND, 1)


def _execute(machine: Machine, io, command: int, operand: int) -> None:
    acc = machine.accumulator
    match command:
        case Opcode.CPUINFO:
            io.cpu_info()
        case Opcode.READ:
            io.read_cell(operand)
        case Opcode.WRITE:
            io.write_cell(operand)
        case Opcode.LOAD:
            _store(machine, machine.memory_get(operand))
        case Opcode.STORE:
            machine.memory_set(operand, acc)
        case Opcode.JUMP:
            machine.counter = operand - 1
        case Opcode.JNEG:
            if acc < 0:
                machine.counter = operand - 1
        case Opcode.JNS:
            if acc > 0:
                machine.counter = operand - 1
        case Opcode.JZ:
            if acc == 0:
                machine.counter = operand - 1
        case Opcode.HALT:
            machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        case Opcode.NOT:
            machine.memory_set(operand, ~acc)
        case Opcode.JNP:
            if acc % 2 != 0:
                machine.counter = operand - 1
        case Opcode.AND:
            _store(machine, machine.memory[operand] & acc)
        case Opcode.OR:
            _store(machine, machine.memory[operand] | acc)


def step(machine: Machine, io) -> bool:
    """Execute the command at the instruction counter and advance it.

    Returns False, with clock pulses no longer ignored, when the word at the
    counter is not a command word; True otherwise.
    """
    word = _cell(machine, machine.counter)
    try:
        _, command, operand = decode_command(word)
    except CommandError:
        machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
        return False

    if command in _ALU_COMMANDS:
        alu(machine, command, operand)
    else:
        _execute(machine, io, command, operand)

    if machine.counter + 1 < MEMORY_SIZE:
        machine.counter += 1
        machine.active_cell = machine.counter
    else:
        machine.set_flag(Flag.RANGE_OVERFLOW, 1)
        machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
    return True