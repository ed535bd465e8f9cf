import struct

import pytest

from simplecomputer.machine import (
    CACHE_LINE_SIZE,
    CACHE_SIZE,
    MEMORY_SIZE,
    CacheLine,
    Flag,
    Machine,
    MachineError,
)


@pytest.fixture
def machine():
    return Machine()


def test_initial_state(machine):
    assert machine.memory == [0] * MEMORY_SIZE
    assert machine.flags == 0
    assert machine.accumulator == 0
    assert machine.counter == 0
    assert len(machine.cache) == CACHE_SIZE
    assert all(line.address == -1 for line in machine.cache)


def test_cache_line_defaults():
    line = CacheLine()
    assert line.address == -1
    assert line.data == [0] * CACHE_LINE_SIZE
    assert line.last_access == 0


def test_memory_set_get_round_trip(machine):
    machine.memory_set(42, 0x1234)
    assert machine.memory_get(42) == 0x1234


@pytest.mark.parametrize("address", [-1, MEMORY_SIZE, 1000])
def test_memory_out_of_range(machine, address):
    with pytest.raises(MachineError):
        machine.memory_get(address)
    with pytest.raises(MachineError):
        machine.memory_set(address, 1)


def test_memory_init_clears(machine):
    machine.memory_set(3, 9)
    machine.memory_init()
    assert machine.memory == [0] * MEMORY_SIZE


def test_memory_set_loads_cache_line(machine):
    machine.memory_set(23, 77)
    assert machine.in_cache(23)
    assert machine.in_cache(20)
    assert not machine.in_cache(30)
    line = next(line for line in machine.cache if line.address == 20)
    assert line.data[3] == 77


def test_cache_hit_reuses_line(machine):
    first = machine.memory_set(11, 1) or machine.update_cache(11)
    second = machine.update_cache(15)
    assert first == second
    assert sum(line.address == 10 for line in machine.cache) == 1


def test_cache_fills_lines_in_order(machine):
    indices = [machine.update_cache(base) for base in range(0, 50, 10)]
    assert indices == list(range(CACHE_SIZE))


def test_last_line_is_padded(machine):
    machine.memory_set(127, 5)
    line = next(line for line in machine.cache if line.address == 120)
    assert len(line.data) == CACHE_LINE_SIZE
    assert line.data[7] == 5
    assert line.data[8:] == [0, 0]


def test_lru_index_picks_oldest(machine):
    for i, line in enumerate(machine.cache):
        line.last_access = 100 + i
    machine.cache[3].last_access = 1
    assert machine.lru_index() == 3


def test_lru_index_tie_picks_first(machine):
    for line in machine.cache:
        line.last_access = 7
    assert machine.lru_index() == 0


def test_eviction_writes_line_back(machine):
    for base in range(0, 50, 10):
        machine.memory_set(base, base + 1)
    for i, line in enumerate(machine.cache):
        line.last_access = 100 + i
    machine.cache[2].last_access = 1
    cached = machine.memory[20]
    machine.memory[20] = cached + 500
    index = machine.update_cache(50)
    assert index == 2
    assert machine.memory[20] == cached
    assert machine.cache[2].address == 50
    assert not machine.in_cache(20)


def test_init_cache_resets(machine):
    machine.memory_set(5, 1)
    machine.init_cache()
    assert not machine.in_cache(5)
    assert machine.update_cache(30) == 0


def test_flags_set_and_clear(machine):
    machine.set_flag(Flag.OVERFLOW, 1)
    machine.set_flag(Flag.IGNORING_CLOCK_PULSES, True)
    assert machine.is_set(Flag.OVERFLOW)
    assert machine.is_set(Flag.IGNORING_CLOCK_PULSES)
    assert not machine.is_set(Flag.DIVISION_BY_ZERO)
    machine.set_flag(Flag.OVERFLOW, 0)
    assert not machine.is_set(Flag.OVERFLOW)
    assert machine.flags == 1 << (Flag.IGNORING_CLOCK_PULSES - 1)


def test_flag_accepts_plain_numbers(machine):
    machine.set_flag(3, 1)
    assert machine.is_set(Flag.RANGE_OVERFLOW)


def test_reg_init_clears_flags(machine):
    for flag in Flag:
        machine.set_flag(flag, 1)
    machine.reg_init()
    assert not any(machine.is_set(flag) for flag in Flag)


@pytest.mark.parametrize("flag", [0, 6, -1])
def test_invalid_flag(machine, flag):
    with pytest.raises(MachineError):
        machine.set_flag(flag, 1)
    with pytest.raises(MachineError):
        machine.is_set(flag)


def test_invalid_flag_value(machine):
    with pytest.raises(MachineError):
        machine.set_flag(Flag.OVERFLOW, 2)
    assert machine.flags == 0


@pytest.mark.parametrize("value", [32767, -32767, 0])
def test_accumulator_in_range(machine, value):
    machine.accumulator = value
    assert machine.accumulator == value


@pytest.mark.parametrize("value", [32768, -32768])
def test_accumulator_out_of_range(machine, value):
    with pytest.raises(MachineError):
        machine.accumulator = value
    assert machine.accumulator == 0


@pytest.mark.parametrize("value", [32767, -32767, 17])
def test_counter_in_range(machine, value):
    machine.counter = value
    assert machine.counter == value


@pytest.mark.parametrize("value", [32768, -32768])
def test_counter_out_of_range(machine, value):
    with pytest.raises(MachineError):
        machine.counter = value
    assert machine.counter == 0


def test_save_load_round_trip(machine, tmp_path):
    path = tmp_path / "memory.o"
    for address in range(0, MEMORY_SIZE, 7):
        machine.memory[address] = address * 3 - 50
    machine.save(path)
    assert path.stat().st_size == MEMORY_SIZE * 4
    other = Machine()
    other.load(path)
    assert other.memory == machine.memory


def test_load_short_file_replaces_prefix(machine, tmp_path):
    path = tmp_path / "short.o"
    path.write_bytes(struct.pack("<2i", 11, -3))
    machine.memory[5] = 99
    machine.load(path)
    assert machine.memory[:2] == [11, -3]
    assert machine.memory[5] == 99


def test_load_missing_file(machine, tmp_path):
    with pytest.raises(MachineError):
        machine.load(tmp_path / "absent.o")


def test_save_to_missing_directory(machine, tmp_path):
    with pytest.raises(MachineError):
        machine.save(tmp_path / "no" / "such" / "file.o")