from itertools import chain

from btcembed.envelope import (
    append_bytes_to_builder,
    append_to_builder,
    from_script,
)
from btcembed.script import (
    MAX_SCRIPT_ELEMENT_SIZE,
    Opcode,
    PushBytes,
    ScriptBuilder,
    iter_instructions,
)


def _envelope_builder():
    return ScriptBuilder().push_opcode(Opcode.OP_FALSE).push_opcode(Opcode.OP_IF)


def test_empty_script():
    assert from_script(b"") == []


def test_script_without_envelopes():
    script = (
        ScriptBuilder()
        .push_opcode(Opcode.OP_FALSE)
        .push_opcode(Opcode.OP_CHECKSIG)
        .to_bytes()
    )
    assert from_script(script) == []


def test_single_empty_envelope():
    script = _envelope_builder().push_opcode(Opcode.OP_ENDIF).to_bytes()
    assert from_script(script) == [[]]


def test_envelope_with_single_push():
    data = b"test data"
    script = _envelope_builder().push_slice(data).push_opcode(Opcode.OP_ENDIF).to_bytes()
    assert from_script(script) == [[data]]


def test_envelope_with_multiple_pushes():
    data1 = b"first"
    data2 = b"second"
    script = (
        _envelope_builder()
        .push_slice(data1)
        .push_slice(data2)
        .push_opcode(Opcode.OP_ENDIF)
        .to_bytes()
    )
    assert from_script(script) == [[data1, data2]]


def test_multiple_envelopes():
    data1 = b"envelope1"
    data2 = b"envelope2"
    script = (
        _envelope_builder()
        .push_slice(data1)
        .push_opcode(Opcode.OP_ENDIF)
        .push_opcode(Opcode.OP_FALSE)
        .push_opcode(Opcode.OP_IF)
        .push_slice(data2)
        .push_opcode(Opcode.OP_ENDIF)
        .to_bytes()
    )
    assert from_script(script) == [[data1], [data2]]


def test_pushnum_opcodes():
    pushnums = [
        (Opcode.OP_1NEGATE, b"\x81"),
        (Opcode.OP_1, bytes([1])),
        (Opcode.OP_2, bytes([2])),
        (Opcode.OP_16, bytes([16])),
    ]
    for opcode, expected in pushnums:
        script = (
            _envelope_builder()
            .push_opcode(opcode)
            .push_opcode(Opcode.OP_ENDIF)
            .to_bytes()
        )
        assert from_script(script) == [[expected]]


def test_large_data_chunking():
    large_data = bytes([0xAA]) * 100_000
    script = append_bytes_to_builder(large_data, ScriptBuilder()).to_bytes()

    extracted = from_script(script)
    assert len(extracted) == 1
    assert b"".join(chain(extracted[0])) == large_data
    assert all(len(push) <= MAX_SCRIPT_ELEMENT_SIZE for push in extracted[0])


def test_append_to_builder():
    envelope = [bytes([1, 2, 3]), bytes([4, 5, 6])]
    script = append_to_builder(envelope, ScriptBuilder()).to_bytes()
    assert from_script(script) == [envelope]


def test_append_bytes_to_builder():
    data = b"test data"
    script = append_bytes_to_builder(data, ScriptBuilder()).to_bytes()
    assert from_script(script) == [[data]]


def test_append_wraps_pushes_in_conditional():
    script = append_bytes_to_builder(b"test data", ScriptBuilder()).to_bytes()
    assert list(iter_instructions(script)) == [
        PushBytes(b""),
        Opcode.OP_IF,
        PushBytes(b"test data"),
        Opcode.OP_ENDIF,
    ]


def test_nested_invalid_instructions():
    script = (
        _envelope_builder()
        .push_slice(bytes([0x01]))
        .push_opcode(Opcode.OP_IF)
        .push_opcode(Opcode.OP_ENDIF)
        .to_bytes()
    )
    assert from_script(script) == []


def test_incomplete_envelope():
    script = _envelope_builder().push_slice(b"data").to_bytes()
    assert from_script(script) == []


def test_truncated_push_discards_envelope():
    script = _envelope_builder().push_slice(b"data").to_bytes() + bytes([5, 1])
    assert from_script(script) == []


def test_surrounding_opcodes():
    data = b"test data"
    script = (
        ScriptBuilder()
        .push_opcode(Opcode.OP_DUP)
        .push_opcode(Opcode.OP_FALSE)
        .push_opcode(Opcode.OP_IF)
        .push_slice(data)
        .push_opcode(Opcode.OP_ENDIF)
        .push_opcode(Opcode.OP_EQUALVERIFY)
        .to_bytes()
    )
    assert from_script(script) == [[data]]


def test_roundtrip():
    original = [bytes([1, 2, 3]), bytes([4, 5, 6]), bytes([7, 8, 9])]
    script = append_to_builder(original, ScriptBuilder()).to_bytes()
    assert from_script(script) == [original]


def test_appended_envelopes_accumulate_on_one_builder():
    builder = append_bytes_to_builder(b"data", ScriptBuilder())
    builder = append_bytes_to_builder(b"data-two", builder)
    assert from_script(builder.to_bytes()) == [[b"data"], [b"data-two"]]