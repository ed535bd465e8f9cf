"""Binary, octal and hexadecimal digit helpers."""

_INT_BITS = 32
_HEX_DIGITS = "0123456789ABCDEF"

_HEX_TABLE = {format(i, "04b"): digit for i, digit in enumerate(_HEX_DIGITS)}
_OCT_TABLE = {format(i, "03b"): str(i) for i in range(8)}


def int2bin(value: int, size: int = _INT_BITS) -> str:
    """Return the low ``size`` bits of the 32-bit two's-complement form of ``value``.

    Bits above the 32nd are always ``0``.
    """
    if size < 0:
        raise ValueError(f"size must not be negative: {size}")
    if size == 0:
        return ""
    bits = value & ((1 << _INT_BITS) - 1)
    return format(bits & ((1 << size) - 1), f"0{size}b")


def hex_char(tetrad: str) -> str:
    """Map a four-digit binary string to its hexadecimal digit, or a space."""
    return _HEX_TABLE.get(tetrad, " ")


def oct_char(triad: str) -> str:
    """Map a three-digit binary string to its octal digit, or a space."""
    return _OCT_TABLE.get(triad, " ")