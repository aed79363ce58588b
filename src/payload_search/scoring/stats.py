"""Corpus statistics consumed by the similarity, plus norm decoding.

Statistics are collected by the index layer, which lives outside this
package. They are built once per query and reused for every scored
document, so validation happens here at construction and never while
scoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
import struct
from typing import ClassVar, Union


class StatsKind(Enum):
    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class BasicStats:
    """Aggregate statistics for one term in one field."""

    field: str
    doc_count: int
    doc_freq: int
    total_term_freq: int
    boost: float = 1.0
    number_of_field_tokens: int = 0

    kind: ClassVar[StatsKind] = StatsKind.SINGLE

    def __post_init__(self) -> None:
        for name in ("doc_count", "doc_freq", "total_term_freq", "number_of_field_tokens"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative for field [{self.field}]")

    @property
    def avg_field_length(self) -> float:
        if self.doc_count <= 0 or self.number_of_field_tokens <= 0:
            return 1.0
        return self.number_of_field_tokens / self.doc_count


@dataclass(frozen=True)
class MultiStats:
    """Statistics for every sub-clause of a phrase or multi-field query."""

    sub_stats: tuple[BasicStats, ...]

    kind: ClassVar[StatsKind] = StatsKind.MULTI

    def __post_init__(self) -> None:
        if not self.sub_stats:
            raise ValueError("MultiStats needs at least one sub-clause")


Stats = Union[BasicStats, MultiStats]


_FLOAT32 = struct.Struct(">f")
_UINT32 = struct.Struct(">I")


def _to_float32(value: float) -> float:
    return _FLOAT32.unpack(_FLOAT32.pack(value))[0]


def byte315_to_float(value: int) -> float:
    """Decode a byte with 3 mantissa bits and a zero exponent point of 15."""

    value &= 0xFF
    if value == 0:
        return 0.0
    bits = (value << (24 - 3)) + ((63 - 15) << 24)
    return _FLOAT32.unpack(_UINT32.pack(bits))[0]


def float_to_byte315(value: float) -> int:
    """Encode ``value`` into the 3.15 byte format, rounding down."""

    bits = _UINT32.unpack(_FLOAT32.pack(value))[0]
    if bits & 0x80000000:
        return 0
    small = bits >> (24 - 3)
    if small <= ((63 - 15) << 3):
        return 0 if bits == 0 else 1
    if small >= ((63 - 15) << 3) + 0x100:
        return 0xFF
    return small - ((63 - 15) << 3)


def _build_norm_table() -> tuple[float, ...]:
    table = [0.0] * 256
    for encoded in range(1, 256):
        decoded = byte315_to_float(encoded)
        table[encoded] = _to_float32(1.0 / (decoded * decoded))
    # byte 0 would decode to an infinite length
    table[0] = _to_float32(1.0 / table[255])
    return tuple(table)


# Field length for every possible norm byte
NORM_TABLE = _build_norm_table()


def decode_norm_value(norm: int) -> float:
    """Return the field length encoded in a norm byte."""

    return NORM_TABLE[norm & 0xFF]


def encode_norm_value(field_length: int, boost: float = 1.0) -> int:
    """Encode a field length as a norm byte; inverse of :func:`decode_norm_value` up to precision."""

    if field_length <= 0:
        return 0xFF
    return float_to_byte315(boost / math.sqrt(field_length))
