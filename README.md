# btcembed

Embed arbitrary data and tag-length-value (TLV) messages in Bitcoin transactions, and extract them again. It needs nothing outside the standard library.

Data can sit in three places in a transaction:

- **OP_RETURN outputs**: everything after the leading `OP_RETURN` byte of the output script.
- **Witness envelopes**: `OP_FALSE OP_IF <pushes...> OP_ENDIF`, inside tapscript leaf scripts (P2TR script-path spends) or P2WSH witness scripts of inputs with at least two witness elements and no annex.
- **Taproot annexes** longer than two bytes whose second byte is the data tag `0x00` (`TAPROOT_ANNEX_DATA_TAG`).

## Installation

```
pip install btcembed
```

## Varints

`btcembed.varint` encodes and decodes unsigned LEB128 integers of up to 128 bits.

```python
from btcembed.varint import encode, decode

data = encode(300)          # b"\xac\x02"
value, size = decode(data)  # (300, 2)
```

`encode` raises `ValueError` for a negative value or one of 2**128 or more. `decode` reads from the start of the buffer and ignores any bytes after the varint. A malformed encoding raises a subclass of `VarIntError` (itself a `ValueError`):

- `OverlongError`: the encoding is longer than 19 bytes.
- `VarIntOverflowError`: the value does not fit in 128 bits.
- `UnterminatedError`: the input ends before the last byte of the varint.

## Messages

`btcembed.message.Message` is a frozen dataclass with a `tag` and a `body`. The tag must be non-zero and at most 2**127 - 1 (`MAX_TAG`), and the body can be at most 2**32 - 1 bytes (`MAX_BODY_LENGTH`). A list of messages is encoded into one compact byte string:

- Each tag is written as the varint `2 * tag + 1` on the last message and `2 * tag` on the others.
- A tag that repeats the previous one is written as `0` (`REPEAT_TAG`), or `1` on the last message.
- Every body except the last is preceded by its length as a varint. The last body runs to the end of the data.

```python
from btcembed.message import Message, encode_messages, decode_messages

data = encode_messages([Message(1, b"\x01\x02"), Message(2, b"\x03\x04\x05")])
assert data == bytes([2, 2, 1, 2, 5, 3, 4, 5])
assert decode_messages(data) == [Message(1, b"\x01\x02"), Message(2, b"\x03\x04\x05")]
```

When decoding, a length of zero on a non-final message means that its body runs to the end of the data. Invalid tags or data raise a subclass of `MessageError` (itself a `ValueError`):

- `InvalidTagError`: a zero or out-of-range tag, or the same tag written out twice in a row.
- `InvalidVarIntError`: a tag or length is not a valid varint.
- `InvalidByteCountError`: a body is longer than 2**32 - 1 bytes.
- `InvalidFinalSizeByteError`: a non-zero length reaches exactly to the end of the data, so the message should have been marked as the last one.
- `MissingBytesError`: a length is missing, or it points past the end of the data.

## Scripts and envelopes

`btcembed.script` provides:

- `ScriptBuilder`, whose `push_opcode` and `push_slice` methods return the builder so that calls can be chained. `push_slice` chooses the shortest push encoding. `to_bytes()` (or `bytes(builder)`) returns the script.
- `Opcode`, an `IntEnum` of the opcodes the package uses.
- `iter_instructions(script)`, which yields each instruction as either a `PushBytes` or an opcode value. It raises `ScriptError` when a push runs past the end of the script.
- `is_op_return(script)`.

`btcembed.envelope` builds witness envelopes and extracts them from scripts. Data longer than 520 bytes (`MAX_SCRIPT_ELEMENT_SIZE`) is split across several pushes. When reading, `OP_1NEGATE` and `OP_1` through `OP_16` inside an envelope stand for the bytes `0x81` and `1` through `16`. An envelope that holds any other opcode, or that has no `OP_ENDIF`, is skipped. If the script is truncated partway through, the envelopes before the bad push are still returned.

```python
from btcembed.script import ScriptBuilder
from btcembed.envelope import append_bytes_to_builder, append_to_builder, from_script

builder = append_bytes_to_builder(b"hello", ScriptBuilder())
builder = append_to_builder([b"multi", b"part"], builder)
assert from_script(builder.to_bytes()) == [[b"hello"], [b"multi", b"part"]]
```

## Transactions and embeddings

`btcembed.transaction` models the parts of a transaction that are needed to find embedded data and to compute its txid:

- `Transaction`, with `inputs` and `outputs`, `serialize()` and `compute_txid()`.
- `TxIn` and `TxOut`.
- `OutPoint`, including `OutPoint.null()`.
- `Witness`, a sequence of byte strings with `taproot_annex()`, `taproot_leaf_script()` and `witness_script()`.
- `LeafScript`.
- `Txid`, with `from_hex()` and `all_zeros()`. Its `str()` is the usual reversed hex form.

`btcembed.embedding.Embedding.from_transaction(tx)` returns every embedding in a transaction. They come in this order: first the OP_RETURN outputs, then the witness envelopes, and finally the taproot annexes. Each `Embedding` has these fields:

- `data`: the embedded bytes; for an envelope, its pushes joined together.
- `txid`: the id of the transaction.
- `location`: an `OpReturnLocation`, `TaprootAnnexLocation` or `WitnessEnvelopeLocation`. A `WitnessEnvelopeLocation` records the input, the envelope's index within the script, the size of each push, and the `ScriptType`.

```python
from btcembed.embedding import Embedding, EmbeddingId
from btcembed.transaction import Transaction, TxOut

tx = Transaction(
    version=1,
    lock_time=0,
    inputs=[],
    outputs=[TxOut(value=0, script_pubkey=bytes.fromhex("6a48656c6c6f"))],
)
(embedding,) = Embedding.from_transaction(tx)
assert embedding.data == b"Hello"

text = str(embedding.id())       # "<txid>:rt:0"
assert EmbeddingId.parse(text) == embedding.id()
```

An embedding id has the form `<txid>:<type>:<index>[:<sub_index>]`. The type is one of:

| Type | `EmbeddingType` | Meaning |
|------|-----------------|---------|
| `rt` | `OP_RETURN` | OP_RETURN output |
| `ta` | `TAPROOT_ANNEX` | taproot annex |
| `le` | `LEGACY_ENVELOPE` | legacy P2WSH envelope |
| `te` | `TAPSCRIPT_ENVELOPE` | tapscript envelope |

The index is the output number for OP_RETURN and the input number otherwise. The sub-index is allowed only for envelopes, where it is the envelope's index within the script. When it is zero, it is left out of the text, and parsing an envelope id without one gives zero.

If parsing fails, `EmbeddingId.parse` raises a subclass of `EmbeddingIdError` (itself a `ValueError`):

- `InvalidFormatError`: the id does not have three or four parts, or it has a sub-index on a type that is not an envelope.
- `InvalidTxidError`: the txid is not 64 hex digits.
- `InvalidTypeError`: the type code is not one of the four above.
- `InvalidIndexError`: an index is not an unsigned integer below 2**64.

## What it does not do

The package has no command-line tool and does not talk to a node or the network. Transactions are built from `Transaction`, `TxIn` and `TxOut` objects; the package can serialize them, but it cannot parse a transaction from raw bytes or hex.