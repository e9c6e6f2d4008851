"""Envelopes of data pushes hidden in ``OP_FALSE OP_IF ... OP_ENDIF`` blocks."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from .script import (
    MAX_SCRIPT_ELEMENT_SIZE,
    Instruction,
    Opcode,
    PushBytes,
    ScriptBuilder,
    ScriptError,
    iter_instructions,
)

__all__ = [
    "Envelope",
    "append_to_builder",
    "append_bytes_to_builder",
    "from_script",
]

Envelope = list[bytes]
"""A series of data pushes."""

_EMPTY_PUSH = PushBytes(b"")

_PUSHNUM_VALUES = {Opcode.OP_1NEGATE: b"\x81"}
_PUSHNUM_VALUES.update(
    (Opcode(Opcode.OP_1 + offset), bytes([offset + 1])) for offset in range(16)
)


def append_to_builder(envelope: Iterable[bytes], builder: ScriptBuilder) -> ScriptBuilder:
    """Append an envelope to ``builder``, splitting data into pushes of at most 520 bytes."""
    builder.push_opcode(Opcode.OP_FALSE).push_opcode(Opcode.OP_IF)
    for data in envelope:
        data = bytes(data)
        for start in range(0, len(data), MAX_SCRIPT_ELEMENT_SIZE):
            builder.push_slice(data[start : start + MAX_SCRIPT_ELEMENT_SIZE])
    return builder.push_opcode(Opcode.OP_ENDIF)


def append_bytes_to_builder(data: bytes, builder: ScriptBuilder) -> ScriptBuilder:
    """Append ``data`` to ``builder`` as a single envelope."""
    return append_to_builder([data], builder)


def _valid_instructions(script: bytes) -> list[Instruction]:
    instructions: list[Instruction] = []
    try:
        for instruction in iter_instructions(script):
            instructions.append(instruction)
    except ScriptError:
        pass
    return instructions


def _read_envelope(pending: deque[Instruction]) -> Envelope | None:
    payload: Envelope = []
    while pending:
        instruction = pending.popleft()
        if isinstance(instruction, PushBytes):
            payload.append(instruction.data)
        elif instruction == Opcode.OP_ENDIF:
            return payload
        elif instruction in _PUSHNUM_VALUES:
            payload.append(_PUSHNUM_VALUES[instruction])
        else:
            return None
    return None


def from_script(script: bytes) -> list[Envelope]:
    """Extract every well-formed envelope from a script, in order."""
    pending: deque[Instruction] = deque(_valid_instructions(script))
    envelopes: list[Envelope] = []
    while pending:
        instruction = pending.popleft()
        if instruction != _EMPTY_PUSH:
            continue
        if not pending or pending[0] != Opcode.OP_IF:
            continue
        pending.popleft()
        envelope = _read_envelope(pending)
        if envelope is not None:
            envelopes.append(envelope)
    return envelopes