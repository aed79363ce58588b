"""Feature flags for the simple payload query string grammar.

Each operator the parser understands can be switched off individually. A
disabled operator is not an error: its character simply becomes ordinary
term text.
"""

from __future__ import annotations

from enum import IntFlag


QUERY_NAME = "simple_payload_query_string"

# Every bit set, including ones not assigned yet.
ALL_FLAGS = -1
NO_FLAGS = 0


class QueryFlag(IntFlag):
    """Named grammar capabilities and their bit values."""

    AND = 1 << 0
    NOT = 1 << 1
    OR = 1 << 2
    PREFIX = 1 << 3
    PHRASE = 1 << 4
    PRECEDENCE = 1 << 5
    ESCAPE = 1 << 6
    WHITESPACE = 1 << 7
    FUZZY = 1 << 8
    # NEAR and SLOP are synonymous, "slop" being the more familiar term
    NEAR = 1 << 9
    SLOP = 1 << 9


_SPECIAL_FLAGS = {"ALL": ALL_FLAGS, "NONE": NO_FLAGS}


class UnknownFlagError(ValueError):
    """Raised when a flag name does not match any known flag."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown {QUERY_NAME} flag [{name}]")
        self.name = name


def flag_names() -> list[str]:
    """Return every accepted flag name, aliases included."""

    return sorted([*_SPECIAL_FLAGS, *QueryFlag.__members__])


def resolve_flags(flags: str | None) -> int:
    """Resolve a ``|`` delimited list of flag names into a bitmask.

    Names are case-insensitive but never trimmed, so " AND" is unknown.
    Empty segments are skipped. ``ALL`` and ``NONE`` win immediately
    regardless of what else is listed. An empty or missing string enables
    everything.
    """

    if not flags:
        return ALL_FLAGS

    value = NO_FLAGS
    for name in flags.split("|"):
        if not name:
            continue
        upper = name.upper()
        if upper in _SPECIAL_FLAGS:
            return _SPECIAL_FLAGS[upper]
        member = QueryFlag.__members__.get(upper)
        if member is None:
            raise UnknownFlagError(name)
        value |= int(member)
    return value


def flags_from_value(flags: str | int | None) -> int:
    """Accept either flag names or a raw bitmask; negative masks mean ALL."""

    if flags is None:
        return ALL_FLAGS
    if isinstance(flags, bool):
        raise ValueError(f"[{QUERY_NAME}] flags must be a string or an integer bitmask")
    if isinstance(flags, int):
        return ALL_FLAGS if flags < 0 else flags
    return resolve_flags(flags)


def has_flag(flags: int, flag: QueryFlag) -> bool:
    return (flags & int(flag)) != 0
