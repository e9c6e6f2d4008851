import pytest

from btcembed.message import (
    REPEAT_TAG,
    InvalidByteCountError,
    InvalidFinalSizeByteError,
    InvalidTagError,
    InvalidVarIntError,
    Message,
    MessageError,
    MissingBytesError,
    decode_messages,
    encode_messages,
)
from btcembed.varint import encode as encode_varint


class _HugeBody:
    def __len__(self):
        return 2**32


def test_new_valid():
    message = Message(123, [1, 2, 3])
    assert message.tag == 123
    assert message.body == bytes([1, 2, 3])


def test_new_invalid_tag():
    with pytest.raises(InvalidTagError):
        Message(REPEAT_TAG, b"\x01\x02\x03")
    with pytest.raises(InvalidTagError):
        Message(1 << 127, b"\x01\x02\x03")


def test_new_invalid_byte_count():
    with pytest.raises(InvalidByteCountError):
        Message(1, _HugeBody())


def test_encode_single_chunk():
    assert encode_messages([Message(1, b"\x05\x06\x07")]) == bytes([3, 5, 6, 7])


def test_encode_multiple_chunks():
    encoded = encode_messages([Message(1, b"\x01\x02"), Message(2, b"\x03\x04\x05")])
    assert encoded == bytes([2, 2, 1, 2, 5, 3, 4, 5])


def test_encode_repeated_tag():
    encoded = encode_messages(
        [Message(1, b"\x01\x02"), Message(1, b"\x03\x04"), Message(2, b"\x05\x06")]
    )
    assert encoded == bytes([2, 2, 1, 2, 0, 2, 3, 4, 5, 5, 6])


def test_encode_empty_list():
    assert encode_messages([]) == b""
    assert decode_messages(b"") == []


def test_decode_valid():
    decoded = decode_messages(bytes([2, 2, 1, 2, 5, 3, 4, 5]))
    assert decoded == [Message(1, b"\x01\x02"), Message(2, b"\x03\x04\x05")]


def test_decode_repeated_tag():
    decoded = decode_messages(bytes([2, 2, 1, 2, 0, 2, 3, 4, 5, 5, 6]))
    assert [m.tag for m in decoded] == [1, 1, 2]
    assert [m.body for m in decoded] == [b"\x01\x02", b"\x03\x04", b"\x05\x06"]


def test_decode_invalid_varint():
    with pytest.raises(InvalidVarIntError):
        decode_messages(bytes([0xFF]))


def test_decode_missing_bytes():
    with pytest.raises(MissingBytesError):
        decode_messages(bytes([2, 10, 1, 2, 3]))


def test_decode_missing_length():
    with pytest.raises(MissingBytesError):
        decode_messages(bytes([2]))


def test_decode_invalid_final_size_byte():
    with pytest.raises(InvalidFinalSizeByteError):
        decode_messages(bytes([2, 3, 1, 2, 3]))


def test_decode_byte_count_too_large():
    data = bytes([2]) + encode_varint(2**32) + b"\x01"
    with pytest.raises(InvalidByteCountError):
        decode_messages(data)


def test_decode_repeat_tag_first_is_invalid():
    with pytest.raises(InvalidTagError):
        decode_messages(bytes([1]))


def test_decode_same_tag_twice_is_invalid():
    with pytest.raises(InvalidTagError):
        decode_messages(bytes([2, 1, 9, 3]))


def test_zero_length_takes_remaining_bytes():
    decoded = decode_messages(bytes([2, 0, 7, 8]))
    assert decoded == [Message(1, b"\x07\x08")]


def test_empty_final_body():
    encoded = encode_messages([Message(3, b"")])
    assert encoded == bytes([7])
    decoded = decode_messages(encoded)
    assert decoded == [Message(3, b"")]


def test_decode_with_termination_only():
    decoded = decode_messages(bytes([11]))
    assert len(decoded) == 1
    assert decoded[0].tag == 5
    assert decoded[0].body == b""


def test_roundtrip_encode_decode():
    original = [Message(1, b"\x01\x02"), Message(2, b"\x03\x04\x05")]
    assert decode_messages(encode_messages(original)) == original


def test_large_tag_values():
    large_tag = (1 << 127) - 1
    decoded = decode_messages(encode_messages([Message(large_tag, b"\x09\x08\x07")]))
    assert len(decoded) == 1
    assert decoded[0].tag == large_tag
    assert decoded[0].body == b"\x09\x08\x07"


def test_multi_chunk_with_repeated_tag():
    chunks = [
        Message(10, b"\x01\x02"),
        Message(10, b"\x03\x04"),
        Message(10, b"\x05\x06"),
        Message(20, b"\x07\x08\x09"),
    ]
    assert decode_messages(encode_messages(chunks)) == chunks


def test_error_messages():
    with pytest.raises(MessageError, match="Invalid tag"):
        Message(0, b"")
    with pytest.raises(MessageError, match="Final size byte must be zero"):
        decode_messages(bytes([2, 3, 1, 2, 3]))