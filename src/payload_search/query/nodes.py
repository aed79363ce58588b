"""Immutable query tree produced by the parser.

Leaves are term, phrase, prefix and fuzzy queries bound to a single field.
Only :class:`BooleanQuery` has children. Trees are built bottom-up once and
may be shared between threads without copying.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class Occur(str, Enum):
    """How the clauses of a boolean node combine."""

    MUST = "must"
    SHOULD = "should"
    MUST_NOT = "must_not"


@dataclass(frozen=True)
class TermQuery:
    """Exact term match whose occurrences are scored with their payloads."""

    field: str
    text: str
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {"term": {"field": self.field, "text": self.text, "boost": self.boost}}


@dataclass(frozen=True)
class PhraseQuery:
    """Ordered terms that must appear within ``slop`` positions of each other."""

    field: str
    terms: tuple[str, ...]
    slop: int = 0
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "phrase": {
                "field": self.field,
                "terms": list(self.terms),
                "slop": self.slop,
                "boost": self.boost,
            }
        }


@dataclass(frozen=True)
class PrefixQuery:
    field: str
    prefix: str
    boost: float = 1.0

    def matches(self, candidate: str) -> bool:
        return candidate.startswith(self.prefix)

    def to_dict(self) -> dict[str, Any]:
        return {"prefix": {"field": self.field, "prefix": self.prefix, "boost": self.boost}}


@dataclass(frozen=True)
class FuzzyQuery:
    field: str
    text: str
    max_edits: int = 2
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "fuzzy": {
                "field": self.field,
                "text": self.text,
                "max_edits": self.max_edits,
                "boost": self.boost,
            }
        }


@dataclass(frozen=True)
class BooleanQuery:
    """Clauses joined by a single occurrence rule.

    ``MUST`` requires every clause, ``SHOULD`` requires at least one and
    ``MUST_NOT`` matches documents that match none of the clauses.
    """

    occur: Occur
    clauses: tuple[QueryNode, ...] = field(default_factory=tuple)
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "bool": {
                "occur": self.occur.value,
                "clauses": [clause.to_dict() for clause in self.clauses],
                "boost": self.boost,
            }
        }


QueryNode = Union[TermQuery, PhraseQuery, PrefixQuery, FuzzyQuery, BooleanQuery]


def simplify(clauses: list[QueryNode], occur: Occur = Occur.SHOULD) -> QueryNode | None:
    """Collapse an empty clause list to ``None`` and a single clause to itself."""

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return BooleanQuery(occur, tuple(clauses))


def negate(node: QueryNode) -> BooleanQuery:
    return BooleanQuery(Occur.MUST_NOT, (node,))


def iter_leaves(node: QueryNode) -> Iterator[QueryNode]:
    """Yield every leaf of the tree from left to right."""

    if isinstance(node, BooleanQuery):
        for clause in node.clauses:
            yield from iter_leaves(clause)
    else:
        yield node
