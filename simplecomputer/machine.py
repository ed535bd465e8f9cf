"""Memory, registers and cache of the simple computer."""

import struct
import time
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path

MEMORY_SIZE = 128
CACHE_SIZE = 5
CACHE_LINE_SIZE = 10
WORD_LIMIT = 32767

_INT_BYTES = 4


class MachineError(Exception):
    """An operation on the machine state failed."""


class Flag(IntEnum):
    OVERFLOW = 1
    DIVISION_BY_ZERO = 2
    RANGE_OVERFLOW = 3
    INCORRECT_COMMAND = 4
    IGNORING_CLOCK_PULSES = 5


@dataclass
class CacheLine:
    address: int = -1
    data: list[int] = field(default_factory=lambda: [0] * CACHE_LINE_SIZE)
    last_access: int = 0


def _line_base(address: int) -> int:
    return int(address / CACHE_LINE_SIZE) * CACHE_LINE_SIZE


def _check_word(value: int, what: str) -> int:
    if not -WORD_LIMIT <= value <= WORD_LIMIT:
        raise MachineError(f"{what} out of range: {value}")
    return value


def _to_int32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _flag(flag: int) -> Flag:
    try:
        return Flag(flag)
    except ValueError:
        raise MachineError(f"no such flag: {flag}") from None


class Machine:
    """State of the simple computer: memory, flags, accumulator, counter and cache."""

    def __init__(self):
        self.memory: list[int] = [0] * MEMORY_SIZE
        self.flags = 0
        self._accumulator = 0
        self._counter = 0
        self.active_cell = 0
        self.cache: list[CacheLine] = []
        self._filled = 0
        self.init_cache()

    # memory

    def memory_init(self) -> None:
        """Zero every memory cell."""
        self.memory = [0] * MEMORY_SIZE

    def _check_address(self, address: int) -> None:
        if not 0 <= address < MEMORY_SIZE:
            raise MachineError(f"address out of range: {address}")

    def memory_get(self, address: int) -> int:
        self._check_address(address)
        return self.memory[address]

    def memory_set(self, address: int, value: int) -> None:
        """Store a value and bring its line into the cache."""
        self._check_address(address)
        self.memory[address] = value
        self.update_cache(address)

    def save(self, path) -> None:
        """Write memory to ``path`` as 32-bit little-endian integers."""
        data = struct.pack(f"<{MEMORY_SIZE}i", *(_to_int32(v) for v in self.memory))
        try:
            Path(path).write_bytes(data)
        except OSError as exc:
            raise MachineError(f"cannot save memory to {path}: {exc}") from exc

    def load(self, path) -> None:
        """Read memory from ``path``; a short file replaces only the cells it holds."""
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise MachineError(f"cannot load memory from {path}: {exc}") from exc
        count = min(len(data) // _INT_BYTES, MEMORY_SIZE)
        values = struct.unpack(f"<{count}i", data[: count * _INT_BYTES])
        self.memory[:count] = values

    # registers

    def reg_init(self) -> None:
        self.flags = 0

    def set_flag(self, flag: int, value) -> None:
        """Set (1/True) or clear (0/False) a flag."""
        bit = 1 << (_flag(flag) - 1)
        if value not in (0, 1):
            raise MachineError(f"flag value must be 0 or 1: {value!r}")
        if value:
            self.flags |= bit
        else:
            self.flags &= ~bit

    def is_set(self, flag: int) -> bool:
        return bool((self.flags >> (_flag(flag) - 1)) & 1)

    @property
    def accumulator(self) -> int:
        return self._accumulator

    @accumulator.setter
    def accumulator(self, value: int) -> None:
        self._accumulator = _check_word(value, "accumulator")

    @property
    def counter(self) -> int:
        return self._counter

    @counter.setter
    def counter(self, value: int) -> None:
        self._counter = _check_word(value, "instruction counter")

    # cache

    def init_cache(self) -> None:
        """Empty every cache line."""
        self.cache = [CacheLine() for _ in range(CACHE_SIZE)]
        self._filled = 0

    def in_cache(self, address: int) -> bool:
        base = _line_base(address)
        return any(line.address == base for line in self.cache)

    def lru_index(self) -> int:
        """Index of the least recently used line; the first one wins ties."""
        return min(range(CACHE_SIZE), key=lambda i: self.cache[i].last_access)

    def _line_data(self, base: int) -> list[int]:
        return [
            self.memory[a] if 0 <= a < MEMORY_SIZE else 0
            for a in range(base, base + CACHE_LINE_SIZE)
        ]

    def _write_back(self, line: CacheLine) -> None:
        if line.address < 0:
            return
        for offset, value in enumerate(line.data):
            address = line.address + offset
            if 0 <= address < MEMORY_SIZE:
                self.memory[address] = value

    def update_cache(self, address: int) -> int:
        """Refresh or load the cache line holding ``address``; return its index.

        When the cache is full the least recently used line is written back
        to memory before it is replaced.
        """
        base = _line_base(address)
        for index, line in enumerate(self.cache):
            if line.address == base:
                break
        else:
            if self._filled < CACHE_SIZE:
                index = self._filled
                self._filled += 1
            else:
                index = self.lru_index()
                self._write_back(self.cache[index])
            self.cache[index].address = base
        line = self.cache[index]
        line.data = self._line_data(base)
        line.last_access = int(time.time())
        return index