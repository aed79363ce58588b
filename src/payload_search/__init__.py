"""Payload-weighted query parsing and scoring.

- query: flags, scanner, parser, query tree, request model
- scoring: payload codec, statistics, IB similarity, span scoring
- search: analyzers, fuzzy and phrase matching helpers
"""

from payload_search.query.flags import ALL_FLAGS, NO_FLAGS, QueryFlag, UnknownFlagError, resolve_flags
from payload_search.query.nodes import (
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    PrefixQuery,
    QueryNode,
    TermQuery,
)
from payload_search.query.parser import ParserSettings, QueryAnalysisError, SimpleQueryParser
from payload_search.query.request import SimpleQueryStringRequest, build_query, parse_query_request
from payload_search.scoring.payloads import decode_payload
from payload_search.scoring.provider import PayloadIBSimilarityProvider, SimilaritySettings
from payload_search.scoring.similarity import IBSimilarity, PayloadIBSimilarity


__all__ = [
    "ALL_FLAGS",
    "NO_FLAGS",
    "BooleanQuery",
    "FuzzyQuery",
    "IBSimilarity",
    "Occur",
    "ParserSettings",
    "PayloadIBSimilarity",
    "PayloadIBSimilarityProvider",
    "PhraseQuery",
    "PrefixQuery",
    "QueryAnalysisError",
    "QueryFlag",
    "QueryNode",
    "SimilaritySettings",
    "SimpleQueryParser",
    "SimpleQueryStringRequest",
    "TermQuery",
    "UnknownFlagError",
    "build_query",
    "decode_payload",
    "parse_query_request",
    "resolve_flags",
]
