import io
import signal
import time
from collections import deque

import pytest

from simplecomputer.commands import Opcode, encode_command
from simplecomputer.console import (
    Console,
    console_fits,
    main,
    next_cell_down,
    next_cell_left,
    next_cell_right,
    next_cell_up,
    read_counter,
)
from simplecomputer.keys import Key
from simplecomputer.machine import MEMORY_SIZE, Flag, Machine
from simplecomputer.term import Terminal


class FakeReader:
    def __init__(self, keys=()):
        self.keys = deque(keys)
        self.regimes = []

    def read_key(self):
        if not self.keys:
            raise EOFError("no more keys")
        return self.keys.popleft()

    def set_regime(self, *args):
        self.regimes.append(args)


def make_console(keys=()):
    machine = Machine()
    out = io.StringIO()
    reader = FakeReader(keys)
    return Console(machine, Terminal(out), reader), machine, out, reader


def keys_from(seq):
    it = iter(seq)
    return lambda: next(it)


def test_console_fits():
    assert console_fits(26, 109) is True
    assert console_fits(25, 109) is False
    assert console_fits(26, 108) is False


@pytest.mark.parametrize(
    "move", [next_cell_right, next_cell_left, next_cell_up, next_cell_down]
)
def test_navigation_stays_in_memory(move):
    assert all(0 <= move(cell) < MEMORY_SIZE for cell in range(MEMORY_SIZE))


def test_left_undoes_right():
    assert [next_cell_left(next_cell_right(c)) for c in range(MEMORY_SIZE)] == list(
        range(MEMORY_SIZE)
    )


def test_navigation_wraps_at_last_row():
    assert next_cell_right(127) == 120
    assert next_cell_left(120) == 127
    assert next_cell_up(8) == 127
    assert next_cell_down(119) == 127


def test_up_then_down_in_middle():
    assert next_cell_down(next_cell_up(55)) == 55


def test_read_counter_skips_invalid_first_digit():
    echoed = []
    value = read_counter(keys_from([Key.K5, Key.K1, Key.K2, Key.K7]), echoed.append)
    assert "".join(echoed) == "127"
    assert value == int("".join(echoed))


def test_read_counter_limits_after_two():
    echoed = []
    value = read_counter(keys_from([Key.K2, Key.K9, Key.K5, Key.K5]), echoed.append)
    assert "".join(echoed) == "255"
    assert value == 255


def test_key_right_moves_active_cell():
    console, machine, out, _ = make_console()
    machine.active_cell = 127
    console.key_right()
    assert machine.active_cell == 120
    assert out.getvalue()


def test_key_f5_sets_accumulator():
    console, machine, out, _ = make_console([Key.PLUS, Key.K0, Key.K1, Key.A, Key.F])
    console.key_f5()
    assert machine.accumulator == 0x01AF
    assert "+01af" in out.getvalue()


def test_key_f6_sets_counter():
    console, machine, out, _ = make_console([Key.K1, Key.K2, Key.K3])
    console.key_f6()
    assert machine.counter == 123
    assert "123" in out.getvalue()


def test_key_enter_stores_value_in_active_cell():
    console, machine, _, _ = make_console([Key.MINUS, Key.K1, Key.K2, Key.K3, Key.K4])
    machine.active_cell = 5
    console.key_enter()
    assert machine.memory[5] == (1 << 14) | 0x1234
    assert machine.in_cache(5)


def test_reset_clears_state():
    console, machine, _, _ = make_console()
    machine.accumulator = 5
    machine.counter = 7
    machine.memory_set(3, 1)
    machine.set_flag(Flag.OVERFLOW, 1)
    machine.active_cell = 4
    console.reset()
    assert (machine.accumulator, machine.counter, machine.active_cell) == (0, 0, 0)
    assert machine.memory == [0] * MEMORY_SIZE
    assert machine.is_set(Flag.IGNORING_CLOCK_PULSES)
    assert not machine.is_set(Flag.OVERFLOW)


def test_key_reset_redraws_and_resets():
    console, machine, out, _ = make_console()
    machine.memory_set(2, 9)
    console.key_reset()
    assert machine.memory == [0] * MEMORY_SIZE
    assert not machine.is_set(Flag.INCORRECT_COMMAND)
    assert machine.is_set(Flag.IGNORING_CLOCK_PULSES)
    assert "Память" in out.getvalue()


def test_draw_frame_contains_help():
    console, _, out, _ = make_console()
    console.draw_frame()
    text = out.getvalue()
    assert "Управление" in text
    assert "ESC - exit" in text


def test_on_timer_executes_command():
    console, machine, _, _ = make_console()
    machine.memory_set(0, encode_command(0, Opcode.LOAD, 10))
    machine.memory_set(10, 7)
    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
    console.on_timer(signal.SIGALRM, None)
    assert machine.accumulator == 7
    assert machine.counter == 1
    assert machine.active_cell == 1


def test_on_timer_ignored_when_flag_set():
    console, machine, _, _ = make_console()
    machine.memory_set(0, encode_command(0, Opcode.LOAD, 10))
    machine.memory_set(10, 7)
    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 1)
    console.on_timer(signal.SIGALRM, None)
    assert machine.accumulator == 0
    assert machine.counter == 0


def test_on_timer_halt_stops_clock():
    console, machine, _, _ = make_console()
    machine.memory_set(0, encode_command(0, Opcode.HALT, 0))
    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
    console.on_timer(signal.SIGALRM, None)
    assert machine.is_set(Flag.IGNORING_CLOCK_PULSES)


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "memory.o"
    console, machine, _, _ = make_console()
    console.read_line = lambda: f"{path}\n"
    machine.memory_set(3, 42)
    machine.memory_set(77, 5)
    console.key_save()
    other, other_machine, _, _ = make_console()
    other.read_line = lambda: f"{path}\n"
    other.key_load()
    assert other_machine.memory == machine.memory


def test_load_missing_file_reports_error(tmp_path):
    console, _, out, _ = make_console()
    console.read_line = lambda: str(tmp_path / "missing.o")
    console.key_load()
    assert "Error loading file" in out.getvalue()


def test_start_timer_and_stop():
    console, machine, _, _ = make_console()
    machine.memory_set(0, encode_command(0, Opcode.LOAD, 10))
    machine.memory_set(10, 7)
    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, 0)
    before = signal.signal(signal.SIGALRM, console.on_timer)
    try:
        console.start_timer(0.01)
        deadline = time.monotonic() + 5
        while machine.counter == 0 and time.monotonic() < deadline:
            time.sleep(0.005)
        console.start_timer(0)
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, before)
    assert machine.accumulator == 7
    assert machine.counter >= 1
    assert signal.getitimer(signal.ITIMER_REAL) == (0.0, 0.0)


def test_run_moves_cursor_and_restores_terminal():
    before = signal.getsignal(signal.SIGALRM)
    console, machine, _, reader = make_console([Key.RIGHT, Key.RIGHT, Key.ESC])
    console.run()
    assert machine.active_cell == 2
    assert reader.regimes == [(1, 0, 1, 0, 0)]
    assert signal.getsignal(signal.SIGALRM) == before


def test_run_initialises_machine():
    console, machine, _, _ = make_console([Key.ESC])
    machine.memory_set(4, 9)
    console.run()
    assert machine.memory == [0] * MEMORY_SIZE
    assert machine.is_set(Flag.IGNORING_CLOCK_PULSES)
    assert not machine.is_set(Flag.OVERFLOW)


def test_run_f5_sets_accumulator():
    console, machine, _, _ = make_console(
        [Key.F5, Key.PLUS, Key.K0, Key.K0, Key.K1, Key.K2, Key.ESC]
    )
    console.run()
    assert machine.accumulator == 0x12


def test_main_refuses_small_window(capsys):
    assert main([]) == 1
    assert "window is too small" in capsys.readouterr().out