"""A minimal model of Bitcoin transactions: enough to serialize them and read witnesses."""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import overload

__all__ = [
    "TAPROOT_ANNEX_PREFIX",
    "TAPROOT_LEAF_TAPSCRIPT",
    "TAPROOT_LEAF_MASK",
    "TAPROOT_CONTROL_BASE_SIZE",
    "Txid",
    "OutPoint",
    "LeafScript",
    "Witness",
    "TxIn",
    "TxOut",
    "Transaction",
]

TAPROOT_ANNEX_PREFIX = 0x50
"""First byte of a taproot annex."""

TAPROOT_LEAF_TAPSCRIPT = 0xC0
"""Leaf version of tapscript."""

TAPROOT_LEAF_MASK = 0xFE
"""Mask selecting the leaf version from the first control block byte."""

TAPROOT_CONTROL_BASE_SIZE = 33
"""Size of a control block without any merkle path."""

_TXID_SIZE = 32
_MAX_U32 = 0xFFFFFFFF


def _sha256d(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _compact_size(n: int) -> bytes:
    if n < 0xFD:
        return bytes([n])
    if n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    if n <= _MAX_U32:
        return b"\xfe" + n.to_bytes(4, "little")
    return b"\xff" + n.to_bytes(8, "little")


def _var_bytes(data: bytes) -> bytes:
    return _compact_size(len(data)) + data


@dataclass(frozen=True, order=True)
class Txid:
    """A transaction id, stored in internal byte order and shown reversed as hex."""

    raw: bytes

    def __post_init__(self) -> None:
        raw = bytes(self.raw)
        if len(raw) != _TXID_SIZE:
            raise ValueError(f"a txid is {_TXID_SIZE} bytes, got {len(raw)}")
        object.__setattr__(self, "raw", raw)

    @classmethod
    def from_hex(cls, text: str) -> Txid:
        """Parse the usual display form: 64 hex digits in reversed byte order."""
        if len(text) != 2 * _TXID_SIZE:
            raise ValueError(f"a txid is {2 * _TXID_SIZE} hex digits, got {len(text)}")
        try:
            data = bytes.fromhex(text)
        except ValueError as exc:
            raise ValueError(f"invalid txid: {text!r}") from exc
        return cls(data[::-1])

    @classmethod
    def all_zeros(cls) -> Txid:
        """Return the txid whose bytes are all zero."""
        return cls(bytes(_TXID_SIZE))

    def __str__(self) -> str:
        return self.raw[::-1].hex()


@dataclass(frozen=True)
class OutPoint:
    """A reference to an output of an earlier transaction."""

    txid: Txid
    vout: int

    @classmethod
    def null(cls) -> OutPoint:
        """Return the outpoint used by coinbase inputs."""
        return cls(Txid.all_zeros(), _MAX_U32)

    def serialize(self) -> bytes:
        return self.txid.raw + self.vout.to_bytes(4, "little")


@dataclass(frozen=True)
class LeafScript:
    """A taproot leaf script together with its leaf version."""

    version: int
    script: bytes


class Witness(Sequence[bytes]):
    """The witness stack of a transaction input."""

    def __init__(self, elements: Iterable[bytes] = ()) -> None:
        self._elements = tuple(bytes(element) for element in elements)

    @overload
    def __getitem__(self, index: int) -> bytes: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[bytes, ...]: ...

    def __getitem__(self, index):
        return self._elements[index]

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self) -> Iterator[bytes]:
        return iter(self._elements)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Witness):
            return self._elements == other._elements
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._elements)

    def __repr__(self) -> str:
        return f"Witness({list(self._elements)!r})"

    def _has_annex(self) -> bool:
        return len(self) > 1 and self._elements[-1][:1] == bytes([TAPROOT_ANNEX_PREFIX])

    def taproot_annex(self) -> bytes | None:
        """Return the annex, the last element when it starts with 0x50 and is not alone."""
        return self._elements[-1] if self._has_annex() else None

    def taproot_leaf_script(self) -> LeafScript | None:
        """Return the leaf script of a taproot script-path spend, if this looks like one."""
        if self._has_annex():
            if len(self) < 3:
                return None
            script, control_block = self._elements[-3], self._elements[-2]
        else:
            if len(self) < 2:
                return None
            script, control_block = self._elements[-2], self._elements[-1]
        if len(control_block) < TAPROOT_CONTROL_BASE_SIZE:
            return None
        version = control_block[0] & TAPROOT_LEAF_MASK
        if version == TAPROOT_ANNEX_PREFIX:
            return None
        return LeafScript(version, script)

    def witness_script(self) -> bytes | None:
        """Return the last element, the witness script of a P2WSH spend."""
        return self._elements[-1] if self._elements else None

    def serialize(self) -> bytes:
        return _compact_size(len(self)) + b"".join(_var_bytes(e) for e in self._elements)


@dataclass
class TxIn:
    """A transaction input."""

    previous_output: OutPoint = field(default_factory=OutPoint.null)
    script_sig: bytes = b""
    sequence: int = _MAX_U32
    witness: Witness = field(default_factory=Witness)

    def serialize(self) -> bytes:
        return (
            self.previous_output.serialize()
            + _var_bytes(bytes(self.script_sig))
            + self.sequence.to_bytes(4, "little")
        )


@dataclass
class TxOut:
    """A transaction output."""

    value: int
    script_pubkey: bytes = b""

    def serialize(self) -> bytes:
        return self.value.to_bytes(8, "little", signed=True) + _var_bytes(
            bytes(self.script_pubkey)
        )


@dataclass
class Transaction:
    """A Bitcoin transaction."""

    version: int = 1
    lock_time: int = 0
    inputs: list[TxIn] = field(default_factory=list)
    outputs: list[TxOut] = field(default_factory=list)

    def _body(self) -> tuple[bytes, bytes]:
        ins = _compact_size(len(self.inputs)) + b"".join(i.serialize() for i in self.inputs)
        outs = _compact_size(len(self.outputs)) + b"".join(o.serialize() for o in self.outputs)
        return ins, outs

    def _header(self) -> bytes:
        return self.version.to_bytes(4, "little", signed=True)

    def _footer(self) -> bytes:
        return self.lock_time.to_bytes(4, "little")

    def _legacy_bytes(self) -> bytes:
        ins, outs = self._body()
        return self._header() + ins + outs + self._footer()

    def serialize(self) -> bytes:
        """Return the consensus encoding, in segwit form when any witness is present."""
        has_witness = not self.inputs or any(len(i.witness) for i in self.inputs)
        if not has_witness:
            return self._legacy_bytes()
        ins, outs = self._body()
        witnesses = b"".join(i.witness.serialize() for i in self.inputs)
        return self._header() + b"\x00\x01" + ins + outs + witnesses + self._footer()

    def compute_txid(self) -> Txid:
        """Return the txid: the double SHA-256 of the encoding without witnesses."""
        return Txid(_sha256d(self._legacy_bytes()))