"""LEB128 variable-length encoding of unsigned 128-bit integers."""

from __future__ import annotations

__all__ = [
    "MAX_VALUE",
    "MAX_LENGTH",
    "VarIntError",
    "OverlongError",
    "VarIntOverflowError",
    "UnterminatedError",
    "encode",
    "decode",
]

MAX_VALUE = (1 << 128) - 1
"""Largest value that can be encoded."""

MAX_LENGTH = 19
"""Largest number of bytes a valid encoding may occupy."""

_CONTINUATION = 0b1000_0000
_PAYLOAD = 0b0111_1111


class VarIntError(ValueError):
    """Raised when a byte sequence is not a valid LEB128 integer."""


class OverlongError(VarIntError):
    """The encoding is longer than 19 bytes."""

    def __init__(self) -> None:
        super().__init__("too long")


class VarIntOverflowError(VarIntError):
    """The encoded value does not fit in 128 bits."""

    def __init__(self) -> None:
        super().__init__("overflow")


class UnterminatedError(VarIntError):
    """The input ended before the final byte of the encoding."""

    def __init__(self) -> None:
        super().__init__("unterminated")


def encode(n: int) -> bytes:
    """Return the LEB128 encoding of an unsigned 128-bit integer."""
    if not 0 <= n <= MAX_VALUE:
        raise ValueError(f"value out of range for a 128-bit unsigned integer: {n}")
    out = bytearray()
    while n >> 7:
        out.append((n & _PAYLOAD) | _CONTINUATION)
        n >>= 7
    out.append(n)
    return bytes(out)


def decode(buffer: bytes) -> tuple[int, int]:
    """Decode a LEB128 integer from the start of ``buffer``.

    Returns the value and the number of bytes it occupied.
    """
    n = 0
    for i, byte in enumerate(buffer):
        if i >= MAX_LENGTH:
            raise OverlongError()
        value = byte & _PAYLOAD
        if i == MAX_LENGTH - 1 and value & 0b0111_1100:
            raise VarIntOverflowError()
        n |= value << (7 * i)
        if not byte & _CONTINUATION:
            return n, i + 1
    raise UnterminatedError()