"""Rewrite prefix and fuzzy queries into the concrete terms they match.

Scoring works on exact terms, so before a tree is evaluated every
:class:`PrefixQuery` and :class:`FuzzyQuery` is replaced by a SHOULD clause
over the matching terms of the field's vocabulary. A pattern that matches
nothing becomes an empty boolean query, which matches no document.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
import logging

from payload_search.config import Settings
from payload_search.query.nodes import (
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PrefixQuery,
    QueryNode,
    TermQuery,
)
from payload_search.search.fuzzy import find_fuzzy_matches


logger = logging.getLogger(__name__)


def _terms_query(field: str, terms: list[str], boost: float) -> QueryNode:
    if len(terms) == 1:
        return TermQuery(field, terms[0], boost)
    return BooleanQuery(Occur.SHOULD, tuple(TermQuery(field, term) for term in terms), boost)


def expand_prefix(node: PrefixQuery, vocabulary: Collection[str], max_expansions: int) -> QueryNode:
    terms = sorted(term for term in vocabulary if node.matches(term))[:max_expansions]
    return _terms_query(node.field, terms, node.boost)


def expand_fuzzy(node: FuzzyQuery, vocabulary: Collection[str], max_expansions: int) -> QueryNode:
    matches = find_fuzzy_matches(node.text, vocabulary, node.max_edits)
    terms = [term for term, _distance in matches[:max_expansions]]
    return _terms_query(node.field, terms, node.boost)


def expand_multi_terms(
    node: QueryNode,
    vocabulary: Mapping[str, Collection[str]],
    *,
    max_expansions: int | None = None,
    settings: Settings | None = None,
) -> QueryNode:
    """Return a copy of ``node`` with prefix and fuzzy leaves rewritten.

    Args:
        node: Parsed query tree.
        vocabulary: Terms present in the index, per field.
        max_expansions: Most terms a single prefix or fuzzy leaf expands to.
            Defaults to ``settings.max_expansions``.
        settings: Source of the default cap; read from the environment when omitted.
    """
    if max_expansions is None:
        max_expansions = (settings or Settings()).max_expansions
    if max_expansions < 1:
        raise ValueError("max_expansions must be at least 1")

    if isinstance(node, PrefixQuery):
        expanded = expand_prefix(node, vocabulary.get(node.field, ()), max_expansions)
    elif isinstance(node, FuzzyQuery):
        expanded = expand_fuzzy(node, vocabulary.get(node.field, ()), max_expansions)
    elif isinstance(node, BooleanQuery):
        clauses = tuple(
            expand_multi_terms(clause, vocabulary, max_expansions=max_expansions) for clause in node.clauses
        )
        return BooleanQuery(node.occur, clauses, node.boost)
    else:
        return node

    logger.debug("Expanded %s into %s", node, expanded)
    return expanded
