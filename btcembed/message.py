"""Tag-length-value message encoding."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from . import varint

__all__ = [
    "REPEAT_TAG",
    "MAX_TAG",
    "MAX_BODY_LENGTH",
    "MessageError",
    "InvalidTagError",
    "InvalidVarIntError",
    "InvalidByteCountError",
    "InvalidFinalSizeByteError",
    "MissingBytesError",
    "Message",
    "encode_messages",
    "decode_messages",
]

REPEAT_TAG = 0
"""Tag used on the wire to repeat the previous tag."""

MAX_TAG = (1 << 127) - 1
MAX_BODY_LENGTH = (1 << 32) - 1


class MessageError(ValueError):
    """Raised when messages cannot be built or decoded."""


class InvalidTagError(MessageError):
    """Zero tags and repeated tags are invalid."""

    def __init__(self) -> None:
        super().__init__("Invalid tag")


class InvalidVarIntError(MessageError):
    """Invalid LEB128 encoding."""

    def __init__(self) -> None:
        super().__init__("Invalid variable integer encoding")


class InvalidByteCountError(MessageError):
    """Byte count exceeds 2^32 - 1."""

    def __init__(self) -> None:
        super().__init__("Byte count exceeds 2^32 - 1")


class InvalidFinalSizeByteError(MessageError):
    """The final size byte must be zero."""

    def __init__(self) -> None:
        super().__init__("Final size byte must be zero")


class MissingBytesError(MessageError):
    """A length prefix points past the end of the data."""

    def __init__(self) -> None:
        super().__init__("Variable-length encoding indicates bytes are missing")


@dataclass(frozen=True)
class Message:
    """A tag together with a body of bytes."""

    tag: int
    body: bytes

    def __post_init__(self) -> None:
        if self.tag == REPEAT_TAG or not 0 < self.tag <= MAX_TAG:
            raise InvalidTagError()
        if len(self.body) > MAX_BODY_LENGTH:
            raise InvalidByteCountError()
        object.__setattr__(self, "body", bytes(self.body))


def encode_messages(messages: Iterable[Message]) -> bytes:
    """Encode messages as raw bytes.

    Tags are written as ``2 * tag + is_last``; a tag equal to the previous one
    is written as zero. Every body but the last is prefixed by its length.
    """
    items = list(messages)
    out = bytearray()
    last_tag = REPEAT_TAG
    for position, message in enumerate(items, start=1):
        is_last = position == len(items)
        if message.tag == last_tag:
            out.append(int(is_last))
        else:
            out += varint.encode(2 * message.tag + int(is_last))
            last_tag = message.tag
        if not is_last:
            out += varint.encode(len(message.body))
        out += message.body
    return bytes(out)


def _read_varint(data: bytes, index: int) -> tuple[int, int]:
    try:
        return varint.decode(data[index:])
    except varint.VarIntError as exc:
        raise InvalidVarIntError() from exc


def decode_messages(data: bytes) -> list[Message]:
    """Decode messages from raw bytes produced by :func:`encode_messages`."""
    data = bytes(data)
    messages: list[Message] = []
    index = 0
    last_tag = REPEAT_TAG

    while index < len(data):
        value, size = _read_varint(data, index)
        index += size

        is_last = value % 2 == 1
        tag = value // 2

        if tag == last_tag:
            raise InvalidTagError()
        if tag == REPEAT_TAG:
            tag = last_tag
        else:
            last_tag = tag

        if is_last:
            messages.append(Message(tag, data[index:]))
            break

        if index >= len(data):
            raise MissingBytesError()

        n, size = _read_varint(data, index)
        index += size

        if n == 0:
            length = len(data) - index
        elif n > MAX_BODY_LENGTH:
            raise InvalidByteCountError()
        else:
            length = n

        end = index + length
        if end > len(data):
            raise MissingBytesError()
        if n > 0 and end == len(data):
            raise InvalidFinalSizeByteError()

        messages.append(Message(tag, data[index:end]))
        index = end

    return messages