"""Building and parsing raw Bitcoin scripts."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

__all__ = [
    "MAX_SCRIPT_ELEMENT_SIZE",
    "Opcode",
    "PushBytes",
    "Instruction",
    "ScriptError",
    "ScriptBuilder",
    "iter_instructions",
    "is_op_return",
]

MAX_SCRIPT_ELEMENT_SIZE = 520
"""Largest number of bytes a single data push may carry under consensus rules."""

_MAX_PUSH_LENGTH = (1 << 32) - 1
_MAX_DIRECT_PUSH = 0x4B


class Opcode(IntEnum):
    """Script opcodes that this package names."""

    OP_0 = 0x00
    OP_FALSE = 0x00
    OP_PUSHDATA1 = 0x4C
    OP_PUSHDATA2 = 0x4D
    OP_PUSHDATA4 = 0x4E
    OP_1NEGATE = 0x4F
    OP_RESERVED = 0x50
    OP_1 = 0x51
    OP_TRUE = 0x51
    OP_2 = 0x52
    OP_3 = 0x53
    OP_4 = 0x54
    OP_5 = 0x55
    OP_6 = 0x56
    OP_7 = 0x57
    OP_8 = 0x58
    OP_9 = 0x59
    OP_10 = 0x5A
    OP_11 = 0x5B
    OP_12 = 0x5C
    OP_13 = 0x5D
    OP_14 = 0x5E
    OP_15 = 0x5F
    OP_16 = 0x60
    OP_NOP = 0x61
    OP_IF = 0x63
    OP_NOTIF = 0x64
    OP_ELSE = 0x67
    OP_ENDIF = 0x68
    OP_VERIFY = 0x69
    OP_RETURN = 0x6A
    OP_DROP = 0x75
    OP_DUP = 0x76
    OP_EQUAL = 0x87
    OP_EQUALVERIFY = 0x88
    OP_HASH160 = 0xA9
    OP_CHECKSIG = 0xAC
    OP_CHECKSIGVERIFY = 0xAD
    OP_CHECKMULTISIG = 0xAE


@dataclass(frozen=True)
class PushBytes:
    """A data push found in a script."""

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)


Instruction = Union[PushBytes, int]
"""A parsed instruction: a data push or an opcode value."""


class ScriptError(ValueError):
    """Raised when a script cannot be built or parsed."""


class ScriptBuilder:
    """Accumulates opcodes and data pushes into a script."""

    def __init__(self) -> None:
        self._script = bytearray()

    def push_opcode(self, opcode: int) -> ScriptBuilder:
        """Append a single opcode and return the builder."""
        if not 0 <= opcode <= 0xFF:
            raise ScriptError(f"opcode out of range: {opcode}")
        self._script.append(opcode)
        return self

    def push_slice(self, data: bytes) -> ScriptBuilder:
        """Append a data push using the shortest push opcode, and return the builder."""
        data = bytes(data)
        size = len(data)
        if size > _MAX_PUSH_LENGTH:
            raise ScriptError("data push exceeds 2^32 - 1 bytes")
        if size <= _MAX_DIRECT_PUSH:
            self._script.append(size)
        elif size <= 0xFF:
            self._script.append(Opcode.OP_PUSHDATA1)
            self._script += size.to_bytes(1, "little")
        elif size <= 0xFFFF:
            self._script.append(Opcode.OP_PUSHDATA2)
            self._script += size.to_bytes(2, "little")
        else:
            self._script.append(Opcode.OP_PUSHDATA4)
            self._script += size.to_bytes(4, "little")
        self._script += data
        return self

    def to_bytes(self) -> bytes:
        """Return the script built so far."""
        return bytes(self._script)

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __len__(self) -> int:
        return len(self._script)


def _as_opcode(value: int) -> int:
    try:
        return Opcode(value)
    except ValueError:
        return value


_PUSHDATA_WIDTHS = {
    Opcode.OP_PUSHDATA1: 1,
    Opcode.OP_PUSHDATA2: 2,
    Opcode.OP_PUSHDATA4: 4,
}


def iter_instructions(script: bytes) -> Iterator[Instruction]:
    """Yield the instructions of a script in order.

    Raises :class:`ScriptError` when a push runs past the end of the script;
    the instructions before it have been yielded by then.
    """
    script = bytes(script)
    end = len(script)
    position = 0
    while position < end:
        opcode = script[position]
        position += 1
        if opcode <= _MAX_DIRECT_PUSH:
            size = opcode
        elif opcode in _PUSHDATA_WIDTHS:
            width = _PUSHDATA_WIDTHS[opcode]
            if position + width > end:
                raise ScriptError("early end of script")
            size = int.from_bytes(script[position : position + width], "little")
            position += width
        else:
            yield _as_opcode(opcode)
            continue
        if position + size > end:
            raise ScriptError("early end of script")
        yield PushBytes(script[position : position + size])
        position += size


def is_op_return(script: bytes) -> bool:
    """Return whether the script starts with ``OP_RETURN``."""
    return len(script) > 0 and script[0] == Opcode.OP_RETURN