"""Emulator of a small educational computer, with its assembler and Basic translator."""

__version__ = "0.1.0"