"""Embed and extract data and TLV-encoded messages in Bitcoin transactions."""

__version__ = "0.1.0"

__all__ = ["embedding", "envelope", "message", "script", "transaction", "varint"]