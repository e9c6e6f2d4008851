"""Locating data embedded in Bitcoin transactions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .envelope import from_script
from .script import is_op_return
from .transaction import TAPROOT_LEAF_TAPSCRIPT, Transaction, Txid

__all__ = [
    "TAPROOT_ANNEX_DATA_TAG",
    "ScriptType",
    "EmbeddingType",
    "OpReturnLocation",
    "TaprootAnnexLocation",
    "WitnessEnvelopeLocation",
    "EmbeddingLocation",
    "EmbeddingIdError",
    "InvalidFormatError",
    "InvalidTxidError",
    "InvalidTypeError",
    "InvalidIndexError",
    "EmbeddingId",
    "Embedding",
]

TAPROOT_ANNEX_DATA_TAG = 0
"""The byte after the annex prefix that marks a data-carrying taproot annex."""

_MAX_INDEX = (1 << 64) - 1
_INDEX_PATTERN = re.compile(r"\+?[0-9]+")


class ScriptType(Enum):
    """The script type in which an envelope was found."""

    LEGACY = "Legacy P2WSH"
    TAPSCRIPT = "Tapscript"

    def __str__(self) -> str:
        return self.value


class EmbeddingType(Enum):
    """The kind of place in a transaction where data may be embedded."""

    OP_RETURN = "rt"
    TAPROOT_ANNEX = "ta"
    LEGACY_ENVELOPE = "le"
    TAPSCRIPT_ENVELOPE = "te"

    @property
    def code(self) -> str:
        """The short code used in embedding ids."""
        return self.value

    @property
    def script_type(self) -> ScriptType | None:
        """The script type of an envelope type, or None for other types."""
        if self is EmbeddingType.LEGACY_ENVELOPE:
            return ScriptType.LEGACY
        if self is EmbeddingType.TAPSCRIPT_ENVELOPE:
            return ScriptType.TAPSCRIPT
        return None

    @classmethod
    def envelope(cls, script_type: ScriptType) -> EmbeddingType:
        """Return the envelope type for a script type."""
        if script_type is ScriptType.LEGACY:
            return cls.LEGACY_ENVELOPE
        return cls.TAPSCRIPT_ENVELOPE

    def __str__(self) -> str:
        if self is EmbeddingType.OP_RETURN:
            return "OP_RETURN"
        if self is EmbeddingType.TAPROOT_ANNEX:
            return "Taproot Annex"
        return f"{self.script_type} Envelope"


@dataclass(frozen=True)
class OpReturnLocation:
    """An ``OP_RETURN`` output."""

    output: int

    def to_type(self) -> EmbeddingType:
        return EmbeddingType.OP_RETURN

    def __str__(self) -> str:
        return f"OP_RETURN at output {self.output}"


@dataclass(frozen=True)
class TaprootAnnexLocation:
    """A taproot annex of an input."""

    input: int

    def to_type(self) -> EmbeddingType:
        return EmbeddingType.TAPROOT_ANNEX

    def __str__(self) -> str:
        return f"Taproot Annex at input {self.input}"


@dataclass(frozen=True)
class WitnessEnvelopeLocation:
    """An ``OP_FALSE OP_IF ... OP_ENDIF`` envelope in a witness script.

    ``index`` is the position of the envelope within the script and
    ``pushes`` the sizes of its data pushes.
    """

    input: int
    index: int
    pushes: tuple[int, ...]
    script_type: ScriptType

    def __post_init__(self) -> None:
        object.__setattr__(self, "pushes", tuple(self.pushes))

    def to_type(self) -> EmbeddingType:
        return EmbeddingType.envelope(self.script_type)

    def __str__(self) -> str:
        return f"{self.script_type} Envelope at input {self.input} (index {self.index})"


EmbeddingLocation = Union[OpReturnLocation, TaprootAnnexLocation, WitnessEnvelopeLocation]


class EmbeddingIdError(ValueError):
    """Raised when an embedding id cannot be parsed."""


class InvalidFormatError(EmbeddingIdError):
    """The id does not have the expected number of parts."""

    def __init__(self) -> None:
        super().__init__("invalid embedding id format")


class InvalidTxidError(EmbeddingIdError):
    """The transaction id part is invalid."""

    def __init__(self) -> None:
        super().__init__("invalid transaction id")


class InvalidTypeError(EmbeddingIdError):
    """The embedding type code is unknown."""

    def __init__(self) -> None:
        super().__init__("invalid embedding type")


class InvalidIndexError(EmbeddingIdError):
    """An index part is not an unsigned integer."""

    def __init__(self) -> None:
        super().__init__("invalid index")


def _parse_index(text: str) -> int:
    if not _INDEX_PATTERN.fullmatch(text):
        raise InvalidIndexError()
    value = int(text)
    if value > _MAX_INDEX:
        raise InvalidIndexError()
    return value


@dataclass(frozen=True)
class EmbeddingId:
    """A unique identifier for an embedding, written ``txid:type:index[:sub_index]``."""

    txid: Txid
    embedding_type: EmbeddingType
    index: int
    sub_index: int | None = None

    @classmethod
    def parse(cls, text: str) -> EmbeddingId:
        """Parse an id from its string form."""
        parts = text.split(":")
        if not 3 <= len(parts) <= 4:
            raise InvalidFormatError()

        try:
            txid = Txid.from_hex(parts[0])
        except ValueError as exc:
            raise InvalidTxidError() from exc

        try:
            embedding_type = EmbeddingType(parts[1])
        except ValueError as exc:
            raise InvalidTypeError() from exc

        index = _parse_index(parts[2])
        sub_index = _parse_index(parts[3]) if len(parts) == 4 else None

        if embedding_type.script_type is not None:
            if sub_index is None:
                sub_index = 0
        elif sub_index is not None:
            raise InvalidFormatError()

        return cls(txid, embedding_type, index, sub_index)

    def __str__(self) -> str:
        base = f"{self.txid}:{self.embedding_type.code}:{self.index}"
        if self.embedding_type.script_type is not None and self.sub_index:
            return f"{base}:{self.sub_index}"
        return base


@dataclass(frozen=True)
class Embedding:
    """Embedded data together with where it was found."""

    data: bytes
    txid: Txid
    location: EmbeddingLocation = field()

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def id(self) -> EmbeddingId:
        """Return the id of this embedding."""
        match self.location:
            case OpReturnLocation(output=output):
                index, sub_index = output, None
            case TaprootAnnexLocation(input=input_index):
                index, sub_index = input_index, None
            case WitnessEnvelopeLocation(input=input_index, index=envelope_index):
                index, sub_index = input_index, envelope_index
            case _:
                raise TypeError(f"unknown location: {self.location!r}")
        return EmbeddingId(self.txid, self.to_type(), index, sub_index)

    def to_type(self) -> EmbeddingType:
        """Return the embedding type."""
        return self.location.to_type()

    @classmethod
    def from_transaction(cls, tx: Transaction) -> list[Embedding]:
        """Extract all embeddings from a transaction.

        ``OP_RETURN`` outputs come first, then witness envelopes, then annexes.
        """
        txid = tx.compute_txid()
        embeddings: list[Embedding] = []

        for output, txout in enumerate(tx.outputs):
            script = bytes(txout.script_pubkey)
            if is_op_return(script):
                embeddings.append(cls(script[1:], txid, OpReturnLocation(output)))

        for input_index, txin in enumerate(tx.inputs):
            witness = txin.witness
            script: bytes | None = None
            script_type: ScriptType | None = None

            leaf = witness.taproot_leaf_script()
            if leaf is not None and leaf.version == TAPROOT_LEAF_TAPSCRIPT:
                script, script_type = leaf.script, ScriptType.TAPSCRIPT

            if script is None and witness.taproot_annex() is None and len(witness) > 1:
                witness_script = witness.witness_script()
                if witness_script is not None:
                    script, script_type = witness_script, ScriptType.LEGACY

            if script is None or script_type is None:
                continue

            for index, envelope in enumerate(from_script(script)):
                location = WitnessEnvelopeLocation(
                    input=input_index,
                    index=index,
                    pushes=tuple(len(chunk) for chunk in envelope),
                    script_type=script_type,
                )
                embeddings.append(cls(b"".join(envelope), txid, location))

        for input_index, txin in enumerate(tx.inputs):
            annex = txin.witness.taproot_annex()
            if annex is not None and len(annex) > 2 and annex[1] == TAPROOT_ANNEX_DATA_TAG:
                embeddings.append(cls(annex[2:], txid, TaprootAnnexLocation(input_index)))

        return embeddings