"""ANSI terminal control: cursor movement, colours and screen size."""

import os
import sys
from enum import IntEnum

ESC = "\x1b"


class Color(IntEnum):
    BLACK = 0
    RED = 1
    GREEN = 2
    BROWN = 3
    BLUE = 4
    PURPLE = 5
    CYAN = 6
    LIGHT_GRAY = 7


class Terminal:
    """Writes ANSI control sequences and text to a text stream."""

    def __init__(self, stream=None):
        self.stream = sys.stdout if stream is None else stream

    def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def clear(self) -> None:
        """Move the cursor home and clear the screen."""
        self.write(f"{ESC}[H{ESC}[J")

    def goto(self, y: int, x: int) -> None:
        """Move the cursor to row ``y``, column ``x``."""
        self.write(f"{ESC}[{y};{x}H")

    def set_fg(self, color: Color) -> None:
        self.write(f"{ESC}[3{int(color)}m")

    def set_bg(self, color: Color) -> None:
        self.write(f"{ESC}[4{int(color)}m")

    def set_default_color(self) -> None:
        self.write(f"{ESC}[0m")

    def set_cursor_visible(self, visible: bool) -> None:
        if visible:
            self.write(f"{ESC}[?25h{ESC}[?8c")
        else:
            self.write(f"{ESC}[?25l{ESC}[?1c")

    def del_line(self) -> None:
        """Erase the line the cursor is on."""
        self.write(f"{ESC}[2K")


def get_screen_size(fd=None) -> tuple[int, int]:
    """Return ``(rows, columns)`` of the terminal on ``fd``; raise OSError if none."""
    if fd is None:
        fd = sys.stdout.fileno()
    size = os.get_terminal_size(fd)
    return size.lines, size.columns