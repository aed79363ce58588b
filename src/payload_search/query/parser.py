"""Forgiving parser for human typed query strings.

The idea is that a person can type whatever they want and the parser will
do its best to work out what to search for, no matter how poorly the
request is put together. Syntax errors are never reported; they just change
what the resulting tree matches.

Operators::

    a+b        AND
    a|b        OR
    -a         NOT, only as the first character of a token
    "a b"      phrase
    a*         prefix, only as the last character of a term
    a~1        fuzzy term
    "a b"~5    phrase with slop
    a+(b|c)    grouping
    \\+        escape

Adjacent tokens with no operator between them are joined with the default
operator (OR unless configured otherwise). Precedence is positional: the
rightmost operator binds first, so ``a | b + c`` reads as ``a | (b + c)``.

Every term, phrase, prefix and fuzzy token is expanded across all weighted
fields, each copy carrying the field's boost, and the copies are joined as
SHOULD clauses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import logging
import re
from types import MappingProxyType

from payload_search.query.flags import ALL_FLAGS, QUERY_NAME
from payload_search.query.nodes import (
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    PrefixQuery,
    QueryNode,
    TermQuery,
    negate,
    simplify,
)
from payload_search.query.scanner import (
    Lexeme,
    Operator,
    OperatorLexeme,
    PhraseLexeme,
    Scanner,
    TermLexeme,
)
from payload_search.search.analyzers import Analyzer


logger = logging.getLogger(__name__)

_LOCALE_PATTERN = re.compile(r"^[A-Za-z]{2,8}(?:[-_][A-Za-z0-9]{1,8})*$")
_DOTLESS_I_LANGUAGES = frozenset({"tr", "az"})


class QueryAnalysisError(RuntimeError):
    """Raised when the analyzer fails on query text and the parser is not lenient."""


def validate_locale(locale: str) -> str:
    """Accept ``""`` (root) or identifiers such as ``en``, ``en_US`` and ``tr-TR``."""

    if locale and not _LOCALE_PATTERN.match(locale):
        raise ValueError(f"Invalid locale [{locale}]")
    return locale


def locale_lower(text: str, locale: str = "") -> str:
    """Lowercase ``text`` honoring the dotted/dotless ``i`` rules of Turkic locales."""

    language = re.split(r"[-_]", locale, maxsplit=1)[0].lower() if locale else ""
    if language in _DOTLESS_I_LANGUAGES:
        text = text.replace("I", "ı").replace("İ", "i")
    return text.lower()


@dataclass(frozen=True)
class ParserSettings:
    """Settings that shape how tokens become queries."""

    locale: str = ""
    lowercase_expanded_terms: bool = True
    lenient: bool = False

    def __post_init__(self) -> None:
        validate_locale(self.locale)


class SimpleQueryParser:
    """Parse query text into a :mod:`payload_search.query.nodes` tree.

    Instances hold only immutable configuration, so one parser can serve
    concurrent callers.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        weights: Mapping[str, float],
        flags: int = ALL_FLAGS,
        settings: ParserSettings | None = None,
        *,
        default_operator: Occur = Occur.SHOULD,
    ) -> None:
        if not weights:
            raise ValueError(f"[{QUERY_NAME}] at least one field is required")
        for field_name, boost in weights.items():
            if boost <= 0:
                raise ValueError(f"[{QUERY_NAME}] boost for field [{field_name}] must be positive, got {boost}")
        if default_operator not in (Occur.MUST, Occur.SHOULD):
            raise ValueError(f"[{QUERY_NAME}] default operator [{default_operator.value}] is not allowed")

        self.analyzer = analyzer
        self.weights: Mapping[str, float] = MappingProxyType(dict(weights))
        self.flags = flags
        self.settings = settings or ParserSettings()
        self.default_operator = default_operator
        self._scanner = Scanner(flags)

    def parse(self, text: str) -> QueryNode | None:
        """Return the query tree for ``text``, or ``None`` when nothing is searchable."""

        lexemes = self._scanner.scan(text)
        node, _ = self._parse_sequence(lexemes, 0)
        logger.debug("Parsed %s text %r into %d lexemes", QUERY_NAME, text, len(lexemes))
        return node

    def _parse_sequence(self, lexemes: list[Lexeme], index: int) -> tuple[QueryNode | None, int]:
        """Parse until the end of input or the close of the current group."""

        operands: list[tuple[Occur, QueryNode]] = []
        pending: Occur | None = None
        negations = 0

        while index < len(lexemes):
            lexeme = lexemes[index]
            index += 1
            branch: QueryNode | None = None

            if isinstance(lexeme, OperatorLexeme):
                operator = lexeme.operator
                if operator is Operator.GROUP_CLOSE:
                    break
                if operator is Operator.NOT:
                    negations += 1
                    continue
                if operator is Operator.GROUP_OPEN:
                    branch, index = self._parse_sequence(lexemes, index)
                elif operator is Operator.AND:
                    if pending is None and operands:
                        pending = Occur.MUST
                    negations = 0
                    continue
                elif operator is Operator.OR:
                    if pending is None and operands:
                        pending = Occur.SHOULD
                    negations = 0
                    continue
                elif operator is Operator.EMPTY:
                    pending = None
                    negations = 0
                    continue
                else:
                    negations = 0
                    continue
            else:
                branch = self._build_leaf(lexeme)

            if branch is not None:
                connector = pending or self.default_operator
                if negations % 2 == 1:
                    branch = negate(branch)
                    # an exclusion is required unless an explicit | joins it
                    connector = pending or Occur.MUST
                operands.append((connector, branch))
                pending = None
            negations = 0

        return _fold_right(operands), index

    def _build_leaf(self, lexeme: TermLexeme | PhraseLexeme) -> QueryNode | None:
        if isinstance(lexeme, PhraseLexeme):
            return self.new_phrase_query(lexeme.text, lexeme.slop)
        if lexeme.fuzziness > 0:
            return self.new_fuzzy_query(lexeme.text, lexeme.fuzziness)
        if lexeme.prefix:
            return self.new_prefix_query(lexeme.text)
        return self.new_default_query(lexeme.text)

    def new_default_query(self, text: str) -> QueryNode | None:
        """Analyze ``text`` and build a term query per field."""

        terms = self._analyze(text)
        if not terms:
            return None
        clauses: list[QueryNode] = []
        for field_name, boost in self.weights.items():
            if len(terms) == 1:
                clauses.append(TermQuery(field_name, terms[0], boost))
            else:
                parts = tuple(TermQuery(field_name, term) for term in terms)
                clauses.append(BooleanQuery(self.default_operator, parts, boost))
        return simplify(clauses)

    def new_phrase_query(self, text: str, slop: int) -> QueryNode | None:
        """Analyze ``text`` and build a (near) phrase query per field."""

        terms = self._analyze(text)
        if not terms:
            return None
        clauses: list[QueryNode] = []
        for field_name, boost in self.weights.items():
            if len(terms) == 1:
                clauses.append(TermQuery(field_name, terms[0], boost))
            else:
                clauses.append(PhraseQuery(field_name, tuple(terms), slop, boost))
        return simplify(clauses)

    def new_prefix_query(self, text: str) -> QueryNode | None:
        prefix = self._normalize_expanded(text)
        clauses: list[QueryNode] = [
            PrefixQuery(field_name, prefix, boost) for field_name, boost in self.weights.items()
        ]
        return simplify(clauses)

    def new_fuzzy_query(self, text: str, max_edits: int) -> QueryNode | None:
        term = self._normalize_expanded(text)
        clauses: list[QueryNode] = [
            FuzzyQuery(field_name, term, max_edits, boost) for field_name, boost in self.weights.items()
        ]
        return simplify(clauses)

    def _normalize_expanded(self, text: str) -> str:
        if self.settings.lowercase_expanded_terms:
            return locale_lower(text, self.settings.locale)
        return text

    def _analyze(self, text: str) -> list[str]:
        try:
            tokens = self.analyzer(text)
        except Exception as exc:
            if self.settings.lenient:
                logger.debug("Ignoring analysis failure for %r: %s", text, exc)
                return []
            raise QueryAnalysisError(f"[{QUERY_NAME}] failed to analyze [{text}]: {exc}") from exc
        return [token.text for token in tokens if token.text]


def _fold_right(operands: list[tuple[Occur, QueryNode]]) -> QueryNode | None:
    """Combine operands so that the rightmost operator binds first.

    ``operands[i][0]`` is the operator joining operand ``i`` to the one on its
    left. Walking leftwards, an operator equal to the previous one extends the
    current boolean node; a different operator makes the tree built so far the
    last child of a new node.
    """

    if not operands:
        return None

    clauses: list[QueryNode] = [operands[-1][1]]
    occur: Occur | None = None
    for position in range(len(operands) - 1, 0, -1):
        connector = operands[position][0]
        if occur is None:
            occur = connector
        elif connector is not occur:
            clauses = [BooleanQuery(occur, tuple(reversed(clauses)))]
            occur = connector
        clauses.append(operands[position - 1][1])

    if occur is None:
        return clauses[0]
    return BooleanQuery(occur, tuple(reversed(clauses)))
