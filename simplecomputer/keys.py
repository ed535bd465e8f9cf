"""Keyboard input: key decoding, terminal modes and hexadecimal value entry."""

import os
import sys
import termios
from enum import IntEnum

SIGN_BIT = 1 << 14


class Key(IntEnum):
    K0 = 0
    K1 = 1
    K2 = 2
    K3 = 3
    K4 = 4
    K5 = 5
    K6 = 6
    K7 = 7
    K8 = 8
    K9 = 9
    A = 10
    B = 11
    C = 12
    D = 13
    E = 14
    F = 15
    UP = 16
    DOWN = 17
    RIGHT = 18
    LEFT = 19
    F5 = 20
    F6 = 21
    L = 22
    S = 23
    R = 24
    T = 25
    I = 26  # noqa: E741
    ESC = 27
    ENTER = 28
    OTHER = 29
    PLUS = 30
    MINUS = 31
    NUM = 32


_SEQUENCES = {
    b"\x1b[A": Key.UP,
    b"\x1b[B": Key.DOWN,
    b"\x1b[C": Key.RIGHT,
    b"\x1b[D": Key.LEFT,
    b"\n": Key.ENTER,
    b"\x1b[15~": Key.F5,
    b"\x1b[17~": Key.F6,
}

_FIRST_BYTE = {
    ord("l"): Key.L,
    ord("s"): Key.S,
    ord("r"): Key.R,
    ord("t"): Key.T,
    ord("i"): Key.I,
}


def parse_key(data) -> Key:
    """Decode the bytes of one key press."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    data = bytes(data).split(b"\0", 1)[0]
    if data in _SEQUENCES:
        return _SEQUENCES[data]
    if not data:
        return Key.OTHER
    first = data[0]
    if first in _FIRST_BYTE:
        return _FIRST_BYTE[first]
    if ord("0") <= first <= ord("9"):
        return Key(first - ord("0"))
    if ord("a") <= first <= ord("f"):
        return Key(first - ord("a") + 10)
    if first == 0x1B:
        return Key.ESC
    if first == ord("+"):
        return Key.PLUS
    if first == ord("-"):
        return Key.MINUS
    return Key.OTHER


def _read_digit(read_key, limit: Key) -> Key:
    while True:
        key = read_key()
        if Key.K0 <= key <= limit:
            return key


def read_value(read_key, echo) -> int:
    """Read a signed four-digit hexadecimal word key by key, echoing it.

    The sign key is optional: a leading digit 0-3 implies ``+``.
    """
    value = 0
    while True:
        key = read_key()
        if key == Key.PLUS:
            echo("+")
            high = None
            break
        if key == Key.MINUS:
            value |= SIGN_BIT
            echo("-")
            high = None
            break
        if Key.K0 <= key <= Key.K3:
            echo("+")
            high = key
            break
    if high is None:
        high = _read_digit(read_key, Key.K3)
    value |= int(high) << 12
    echo(format(int(high), "x"))
    for shift in (8, 4, 0):
        key = _read_digit(read_key, Key.F)
        value |= int(key) << shift
        echo(format(int(key), "x"))
    return value


_LFLAG = 3
_CC = 6


class KeyReader:
    """Reads single key presses from a terminal in non-canonical mode."""

    def __init__(self, fd=None):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self._saved = None

    def save(self) -> None:
        """Remember the current terminal attributes."""
        self._saved = termios.tcgetattr(self.fd)

    def restore(self) -> None:
        """Put back the attributes remembered by the last save."""
        if self._saved is None:
            raise RuntimeError("terminal attributes were never saved")
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, self._saved)

    def set_regime(self, regime: int, vtime: int, vmin: int, echo: int, sigint: int) -> None:
        """Switch to canonical (0) or non-canonical (1) input.

        In non-canonical mode ``echo`` 1 turns echo off and 0 on, ``sigint``
        1 turns signal keys off and 0 on, and VTIME/VMIN are set.
        """
        self.save()
        attrs = [list(a) if isinstance(a, list) else a for a in self._saved]
        lflag = attrs[_LFLAG]
        if regime == 0:
            lflag |= termios.ICANON
        elif regime == 1:
            lflag &= ~termios.ICANON
            if echo == 0:
                lflag |= termios.ECHO
            elif echo == 1:
                lflag &= ~termios.ECHO
            if sigint == 0:
                lflag |= termios.ISIG
            elif sigint == 1:
                lflag &= ~termios.ISIG
            attrs[_CC][termios.VTIME] = vtime
            attrs[_CC][termios.VMIN] = vmin
        attrs[_LFLAG] = lflag
        termios.tcsetattr(self.fd, termios.TCSAFLUSH, attrs)

    def read_key(self) -> Key:
        """Wait for one key press and decode it."""
        self.set_regime(1, 0, 1, 1, 0)
        try:
            data = os.read(self.fd, 8)
        finally:
            self.restore()
        return parse_key(data)