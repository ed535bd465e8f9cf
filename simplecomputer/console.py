"""Interactive console of the simple computer."""

import argparse
import signal
import sys

from simplecomputer.bigchars import draw_box
from simplecomputer.cpu import step
from simplecomputer.display import MODE_ECHO, Display
from simplecomputer.keys import Key, KeyReader, read_value
from simplecomputer.machine import MEMORY_SIZE, Flag, Machine, MachineError
from simplecomputer.term import Color, Terminal, get_screen_size

MIN_ROWS = 25
MIN_COLUMNS = 109
LAST_CELL = MEMORY_SIZE - 1
LAST_ROW_START = 120
RUN_INTERVAL = 0.1

_FILENAME_LIMIT = 63

_BOXES = (
    (1, 86, 3, 24, " Аккумулятор ", Color.RED, Color.BLACK),
    (1, 1, 15, 62, " Память ", Color.RED, Color.BLACK),
    (4, 86, 3, 24, " Команда ", Color.RED, Color.BLACK),
    (4, 63, 3, 23, " Счетчик ", Color.RED, Color.BLACK),
    (1, 63, 3, 23, " Флаги ", Color.RED, Color.BLACK),
    (19, 68, 7, 13, " IN-OUT ", Color.GREEN, Color.LIGHT_GRAY),
    (16, 1, 3, 62, " Редактируемая ячейка (формат) ", Color.RED, Color.BLACK),
    (7, 63, 12, 47, " Редактируемая ячейка (увеличено) ", Color.RED, Color.BLACK),
    (19, 81, 7, 29, " Управление ", Color.GREEN, Color.LIGHT_GRAY),
    (19, 1, 7, 67, " Кэш процессора ", Color.RED, Color.BLACK),
)

_HELP = (
    (20, "l - load s - save i - reset"),
    (21, "r - run t - step"),
    (22, "ESC - exit"),
    (23, "F5 - accumulator"),
    (24, "F6 - counter"),
)


def console_fits(rows: int, cols: int) -> bool:
    """Return whether a terminal of this size can hold the console."""
    return rows > MIN_ROWS and cols >= MIN_COLUMNS


def next_cell_right(cell: int) -> int:
    if cell == LAST_CELL:
        return LAST_ROW_START
    if cell % 10 == 9:
        return cell - 9
    return cell + 1


def next_cell_left(cell: int) -> int:
    if cell % 10 == 0:
        return LAST_CELL if cell == LAST_ROW_START else cell + 9
    return cell - 1


def next_cell_up(cell: int) -> int:
    if 0 <= cell <= 9:
        return min(LAST_ROW_START + cell, LAST_CELL)
    return cell - 10


def next_cell_down(cell: int) -> int:
    if cell < LAST_ROW_START:
        return min(cell + 10, LAST_CELL)
    return cell % 10


def _read_digit(read_key, limit: Key) -> int:
    while True:
        key = read_key()
        if Key.K0 <= key <= limit:
            return int(key)


def read_counter(read_key, echo) -> int:
    """Read a three-digit decimal counter value from 000 to 255, echoing each digit."""
    hundreds = _read_digit(read_key, Key.K2)
    echo(str(hundreds))
    limit = Key.K5 if hundreds == 2 else Key.K9
    tens = _read_digit(read_key, limit)
    echo(str(tens))
    units = _read_digit(read_key, limit)
    echo(str(units))
    return hundreds * 100 + tens * 10 + units


def _read_stdin_line() -> str:
    return sys.stdin.readline()


class Console:
    """Keyboard-driven front end: draws the machine and runs its programs."""

    def __init__(self, machine: Machine, term: Terminal, reader):
        self.machine = machine
        self.term = term
        self.reader = reader
        self.display = Display(machine, term, reader.read_key)
        self.read_line = _read_stdin_line

    def _read_filename(self) -> str:
        words = self.read_line().split()
        return words[0][:_FILENAME_LIMIT] if words else ""

    def draw_frame(self) -> None:
        """Draw every panel frame and the help text."""
        for x1, y1, rows, cols, header, header_fg, header_bg in _BOXES:
            draw_box(
                self.term, x1, y1, rows, cols,
                Color.LIGHT_GRAY, Color.BLACK, header, header_fg, header_bg,
            )
        self.term.set_default_color()
        for row, text in _HELP:
            self.term.goto(row, 82)
            self.term.write(text)

    def reset(self) -> None:
        """Clear memory, registers and flags and stop the clock."""
        machine = self.machine
        machine.accumulator = 0
        machine.counter = 0
        self.term.set_default_color()
        machine.active_cell = 0
        machine.reg_init()
        machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        machine.memory_init()

    def _step(self) -> None:
        step(self.machine, self.display)
        self.display.print_all()

    def on_timer(self, signum, frame) -> None:
        """Clock tick: execute one command unless clock pulses are ignored."""
        if not self.machine.is_set(Flag.IGNORING_CLOCK_PULSES):
            self._step()
            self.term.goto(24, 1)

    def start_timer(self, interval: float) -> None:
        """Tick every ``interval`` seconds; 0 stops the clock."""
        signal.setitimer(signal.ITIMER_REAL, interval, interval)

    def key_reset(self) -> None:
        machine = self.machine
        self.term.set_default_color()
        machine.memory_init()
        machine.reg_init()
        machine.accumulator = 0
        machine.counter = 0
        self.term.clear()
        self.draw_frame()
        self.display.print_all()
        machine.set_flag(Flag.INCORRECT_COMMAND, 1)
        self.start_timer(0)
        self.reset()

    def key_save(self) -> None:
        self.term.goto(26, 2)
        self.term.write("Save file as:      ")
        try:
            self.machine.save(self._read_filename())
        except MachineError:
            self.term.goto(26, 2)
            self.term.write("Error saving file ")
        self.display.print_all()

    def key_load(self) -> None:
        self.term.goto(26, 2)
        self.term.write("Load file:         ")
        self.term.goto(26, 13)
        try:
            self.machine.load(self._read_filename())
        except MachineError:
            self.term.goto(26, 2)
            self.term.write("Error loading file ")
        self.display.print_all()

    def key_enter(self) -> None:
        """Edit the active memory cell."""
        active = self.machine.active_cell
        row, col = 2 + active // 10, 2 + (active % 10) * 6
        self.term.goto(row, col)
        self.term.set_bg(Color.RED)
        self.term.set_fg(Color.BLACK)
        self.term.write("     ")
        self.term.goto(row, col)
        value = read_value(self.reader.read_key, self.term.write)
        self.machine.memory_set(active, value)
        self.term.goto(row, col)
        self.display.print_cell(active, Color.BLACK, Color.RED)
        self.display.print_term(active, MODE_ECHO)
        self.display.print_big_cell()
        self.display.print_decoded_command(value)
        self.display.print_cache()
        self.display.print_command()
        self.term.goto(50, 0)

    def key_f5(self) -> None:
        """Enter a new accumulator value."""
        self.term.goto(2, 88)
        self.term.write("hex:" + " " * 17)
        self.term.goto(2, 92)
        self.machine.accumulator = read_value(self.reader.read_key, self.term.write)
        self.display.print_accumulator()

    def key_f6(self) -> None:
        """Enter a new instruction counter value."""
        self.term.goto(5, 67)
        self.term.write("T:" + " " * 15)
        self.term.goto(5, 69)
        self.machine.counter = read_counter(self.reader.read_key, self.term.write)
        self.display.print_all()

    def _move(self, how) -> None:
        self.machine.active_cell = how(self.machine.active_cell)
        self.display.print_all()

    def key_right(self) -> None:
        self._move(next_cell_right)

    def key_left(self) -> None:
        self._move(next_cell_left)

    def key_up(self) -> None:
        self._move(next_cell_up)

    def key_down(self) -> None:
        self._move(next_cell_down)

    def _key_run(self) -> None:
        self.machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
        self.machine.counter = 0
        self.machine.active_cell = 0
        self.start_timer(RUN_INTERVAL)

    def run(self) -> None:
        """Initialise the machine and serve key presses until ESC."""
        machine = self.machine
        machine.reg_init()
        machine.memory_init()
        machine.counter = 0
        machine.accumulator = 0
        machine.init_cache()
        machine.active_cell = 0
        self.term.clear()
        self.draw_frame()
        previous = signal.signal(signal.SIGALRM, self.on_timer)
        machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
        self.display.print_all()
        actions = {
            Key.ENTER: self.key_enter,
            Key.L: self.key_load,
            Key.S: self.key_save,
            Key.R: self._key_run,
            Key.T: self._step,
            Key.I: self.key_reset,
            Key.F5: self.key_f5,
            Key.F6: self.key_f6,
            Key.UP: self.key_up,
            Key.DOWN: self.key_down,
            Key.RIGHT: self.key_right,
            Key.LEFT: self.key_left,
        }
        try:
            while True:
                key = self.reader.read_key()
                if key == Key.I:
                    self.start_timer(0)
                    self.reset()
                if key == Key.T:
                    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
                if key == Key.ESC:
                    break
                if machine.is_set(Flag.IGNORING_CLOCK_PULSES):
                    action = actions.get(key)
                    if action is not None:
                        action()
        finally:
            self.start_timer(0)
            signal.signal(
                signal.SIGALRM, previous if previous is not None else signal.SIG_DFL
            )
            self.reader.set_regime(1, 0, 1, 0, 0)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="simplecomputer", description="Interactive simple computer console."
    )
    parser.parse_args(argv)
    try:
        rows, cols = get_screen_size()
    except (OSError, ValueError):
        rows = cols = 0
    if not console_fits(rows, cols):
        print("ERROR: window is too small!")
        return 1
    Console(Machine(), Terminal(), KeyReader()).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())