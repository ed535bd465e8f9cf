"""Screen panels of the simple computer console."""

from simplecomputer.bigchars import FONT, print_bigchar
from simplecomputer.commands import CommandError, decode_command, is_valid_command
from simplecomputer.cpu import CPU_INFO
from simplecomputer.keys import read_value
from simplecomputer.machine import Flag, Machine
from simplecomputer.term import Color, Terminal

BOX_ROW_MEMORY = 12
BOX_COLUMN_MEMORY = 61
MINI_BOX_ROW = 3
MINI_BOX_COLUMN = 22

MODE_READ = 0
MODE_WRITE = 1
MODE_ECHO = -1

SIGN_BIT = 1 << 14
_MASK32 = 0xFFFFFFFF
_IO_LINES = 5
_IO_ROW = 19
_IO_COLUMN = 69
_HEX_GLYPHS = "0123456789abcdef"

_FLAG_LETTERS = (
    (Flag.OVERFLOW, "P"),
    (Flag.DIVISION_BY_ZERO, "O"),
    (Flag.RANGE_OVERFLOW, "M"),
    (Flag.INCORRECT_COMMAND, "T"),
    (Flag.IGNORING_CLOCK_PULSES, "E"),
)


def _split(value: int) -> tuple[int, int]:
    return value >> 14, value & ~SIGN_BIT


def _hex(value: int, width: int = 4, upper: bool = True) -> str:
    return format(value & _MASK32, f"0{width}{'X' if upper else 'x'}")


def _signed_hex(value: int, upper: bool = True) -> str:
    sign, magnitude = _split(value)
    return ("-" if sign == 1 else "+") + _hex(magnitude, upper=upper)


def format_cell(value: int) -> str:
    """Render a memory word as sign and four hexadecimal digits."""
    return _signed_hex(value)


def format_decoded(value: int) -> str:
    """Render a word in decimal, octal, hexadecimal and 15-bit binary."""
    sign, magnitude = _split(value)
    minus = "-" if sign else ""
    text = (
        f"dec: {minus}{magnitude} oct: {minus}{format(magnitude & _MASK32, 'o')} "
        f"hex: {minus}{_hex(magnitude)} bin: "
    )
    text += "1" if sign else "0"
    text += "".join("1" if magnitude & (1 << bit) else "0" for bit in range(13, -1, -1))
    if magnitude == 0:
        text += " " * 10
    return text


def format_flags(machine: Machine) -> str:
    """Render the five flags as letters, ``_`` for a clear one."""
    return " ".join(
        letter if machine.is_set(flag) else "_" for flag, letter in _FLAG_LETTERS
    )


def format_cache_line(line) -> str:
    """Render one cache line: its base address and its ten words."""
    if line.address == -1:
        return "-"
    words = "".join(
        f" {'-' if (word >> 14) & 1 else '+'}{_hex(word & 0x3FFF)}" for word in line.data
    )
    return f"{line.address:03d}:{words}"


class Display:
    """Draws the machine state on a terminal and serves as its input/output device."""

    def __init__(self, machine: Machine, term: Terminal, read_key):
        self.machine = machine
        self.term = term
        self.read_key = read_key
        self.font = dict(FONT)
        self.io_buffer = [" "] * _IO_LINES

    def print_cell(self, address: int, fg: Color, bg: Color) -> None:
        value = self.machine.memory_get(address)
        self.term.set_fg(fg)
        self.term.set_bg(bg)
        self.term.write(format_cell(value))
        self.term.set_default_color()
        self.term.write(" ")

    def print_memory(self) -> None:
        row = 2
        self.term.goto(row, 2)
        for address in range(len(self.machine.memory)):
            if address == self.machine.active_cell:
                self.print_cell(address, Color.BLACK, Color.RED)
            else:
                self.print_cell(address, Color.LIGHT_GRAY, Color.BLACK)
            if (address + 1) % 10 == 0:
                row += 1
                self.term.goto(row, 2)

    def print_accumulator(self) -> None:
        acc = self.machine.accumulator
        self.term.set_default_color()
        self.term.goto(2, 88)
        self.term.write(" " * 19)
        self.term.goto(2, 88)
        sign = acc >> 14
        self.term.write(f"sc: {acc} hex: {'-' if sign == 1 else '+'}{format(acc & _MASK32, 'X')}\n")

    def print_counters(self) -> None:
        counter = self.machine.counter
        self.term.set_default_color()
        self.term.goto(5, 67)
        self.term.write("T: %03d" % counter)
        self.term.write(f" IC: +{_hex(counter)}")

    def print_flags(self) -> None:
        self.term.set_default_color()
        self.term.goto(2, 70)
        self.term.write(format_flags(self.machine) + "\n")
        self.term.goto(50, 1)

    def print_decoded_command(self, value: int) -> None:
        self.term.goto(17, 3)
        self.term.set_default_color()
        self.term.write(" " * 59)
        self.term.goto(17, 3)
        self.term.write(format_decoded(value))

    def print_command(self) -> None:
        self.term.goto(5, 87)
        self.term.write(" " * 21)
        self.term.set_default_color()
        value = self.machine.memory_get(self.machine.active_cell)
        try:
            _, command, operand = decode_command(value)
        except CommandError:
            command, operand, valid = (value >> 7) & 0x7F, value & 0x7F, False
        else:
            valid = is_valid_command(command)
        if not valid:
            self.term.goto(5, 91)
            self.term.write("! ")
        self.term.goto(5, 93)
        self.term.write(f"+{_hex(command, 2)} : {_hex(operand, 2)}\n")

    def print_big_cell(self) -> None:
        active = self.machine.active_cell
        value = self.machine.memory_get(active)
        sign, _ = _split(value)
        self.term.set_fg(Color.LIGHT_GRAY)
        self.term.set_bg(Color.BLACK)
        text = _signed_hex(value, upper=False) + " "
        sign_glyph = self.font["-" if sign else "+"]
        print_bigchar(self.term, sign_glyph, 7, 65, Color.BLACK, Color.GREEN)
        column = 56
        for char in text:
            column += 8
            if char in _HEX_GLYPHS:
                glyph = self.font[char.upper()]
                print_bigchar(self.term, glyph, 7, column, Color.BLACK, Color.GREEN)
        self.term.goto(16, 66)
        self.term.set_fg(Color.BLUE)
        self.term.write(f"Номер редактируемой ячейки: {active + 1}  ")
        self.term.goto(50, 1)

    def print_cache(self) -> None:
        for row, line in enumerate(self.machine.cache, 20):
            self.term.goto(row, 3)
            self.term.write(format_cache_line(line))

    def print_all(self) -> None:
        """Redraw every panel."""
        self.print_cache()
        self.print_memory()
        self.print_accumulator()
        self.print_command()
        self.term.set_default_color()
        self.print_counters()
        self.print_flags()
        self.print_decoded_command(self.machine.memory_get(self.machine.active_cell))
        self.print_big_cell()
        self.term.set_default_color()
        self.term.goto(50, 0)

    def _push(self, entry: str) -> None:
        self.io_buffer = [entry] + self.io_buffer[: _IO_LINES - 1]

    def _show(self, width: int) -> None:
        for row, line in enumerate(self.io_buffer, _IO_ROW + 1):
            self.term.goto(row, _IO_COLUMN)
            self.term.write(line[:width].ljust(width))

    def print_term(self, address: int, mode: int) -> None:
        """Log a cell in the IN-OUT panel; in read mode also read its new value."""
        self.machine.memory_get(address)
        self.term.goto(_IO_ROW, _IO_COLUMN)
        if mode in (MODE_WRITE, MODE_ECHO):
            self.term.set_default_color()
            value = self.machine.memory_get(address)
            arrow = ">" if mode == MODE_WRITE else "<"
            entry = f"{address:03d}{arrow} {_signed_hex(value, upper=False)}"
            self._push(entry)
            self._show(len(entry))
        elif mode == MODE_READ:
            self.term.set_default_color()
            self._push(f"{address:03d}<       ")
            self._show(13)
            self.term.goto(_IO_ROW + 1, _IO_COLUMN + 5)
            self.machine.memory[address] = read_value(self.read_key, self.term.write)
            value = self.machine.memory_get(address)
            self.io_buffer[0] = f"{address:03d}< {_signed_hex(value, upper=False)}"
        else:
            raise ValueError(f"unknown IN-OUT mode: {mode}")
        self.term.goto(50, 0)

    def reset_term(self) -> None:
        """Clear the screen and the IN-OUT log, then redraw."""
        self.term.clear()
        self.io_buffer = [" " * 10] * _IO_LINES
        self.print_all()

    def read_cell(self, address: int) -> None:
        self.print_term(address, MODE_READ)

    def write_cell(self, address: int) -> None:
        self.print_term(address, MODE_WRITE)

    def cpu_info(self) -> None:
        self.term.goto(30, 1)
        self.term.write(CPU_INFO)