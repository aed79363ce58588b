"""Codec for per-occurrence payload weights.

A payload is four bytes holding a big-endian IEEE-754 single precision
float. Missing or truncated payloads weigh 1.0 so scores degrade to the
plain similarity instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct


PAYLOAD_SIZE = 4
NEUTRAL_PAYLOAD = 1.0

_PAYLOAD = struct.Struct(">f")


@dataclass(frozen=True)
class PayloadBytes:
    """A read-only slice of a postings buffer."""

    data: bytes
    offset: int = 0
    length: int = -1

    def __post_init__(self) -> None:
        if self.offset < 0 or self.offset > len(self.data):
            raise ValueError(f"offset {self.offset} outside payload buffer of {len(self.data)} bytes")
        if self.length < 0:
            object.__setattr__(self, "length", len(self.data) - self.offset)

    def __bytes__(self) -> bytes:
        return bytes(self.data[self.offset : self.offset + self.length])


def decode_payload(payload: PayloadBytes | bytes | None) -> float:
    """Return the payload weight, or 1.0 when there is nothing to decode."""

    if payload is None:
        return NEUTRAL_PAYLOAD
    if isinstance(payload, PayloadBytes):
        if payload.length < PAYLOAD_SIZE or payload.offset + PAYLOAD_SIZE > len(payload.data):
            return NEUTRAL_PAYLOAD
        return _PAYLOAD.unpack_from(payload.data, payload.offset)[0]
    if len(payload) < PAYLOAD_SIZE:
        return NEUTRAL_PAYLOAD
    return _PAYLOAD.unpack_from(payload, 0)[0]


def encode_payload(weight: float) -> bytes:
    return _PAYLOAD.pack(weight)
