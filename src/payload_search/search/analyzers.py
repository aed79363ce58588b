"""Analyzers the query parser uses to turn term and phrase text into terms.

An analyzer runs one tokenizer and then a chain of token filters over the
unescaped text of a term or phrase. Prefix and fuzzy text is never analyzed,
so wildcards and edit distances apply to what the user typed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol


@dataclass(frozen=True)
class Token:
    """One analyzed term with its position and character span in the input."""

    text: str
    position: int
    start_char: int
    end_char: int


class Analyzer(Protocol):
    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


Tokenizer = Callable[[str], Iterator[Token]]
TokenFilter = Callable[[Iterable[Token]], Iterator[Token]]


# Inner hyphens, apostrophes, dots and asterisks join word runs: term-1, don't, v1.2
STANDARD_PATTERN = r"\w+(?:[-'.*]\w+)*"
LETTER_PATTERN = r"[^\W\d_]+"
WHITESPACE_PATTERN = r"\S+"

# Lucene's classic English stop set
ENGLISH_STOPWORDS = frozenset(
    """
    a an and are as at be but by for if in into is it no not of on or such
    that the their then there these they this to was will with
    """.split()
)


class RegexTokenizer:
    """Emit each non-overlapping match of ``pattern``, numbered from zero."""

    def __init__(self, pattern: str, flags: int = re.UNICODE) -> None:
        self.pattern = re.compile(pattern, flags)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            start, end = match.span()
            yield Token(match.group(0), position, start, end)


class LowercaseFilter:
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (replace(token, text=token.text.lower()) for token in tokens)


class StopFilter:
    """Drop tokens whose lowercased text is a stopword."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        words = ENGLISH_STOPWORDS if stopwords is None else stopwords
        self.stopwords = frozenset(word.lower() for word in words)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        return (token for token in tokens if token.text.lower() not in self.stopwords)


class AnalyzerPipeline:
    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] = ()) -> None:
        self.tokenizer = tokenizer
        self.filters = tuple(filters)

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for apply_filter in self.filters:
            stream = apply_filter(stream)
        # dropped stopwords must not open a gap in a phrase
        return [replace(token, position=position) for position, token in enumerate(stream)]


class KeywordAnalyzer:
    """The whole input is one token; empty input yields nothing."""

    def __call__(self, text: str) -> list[Token]:
        return [Token(text, 0, 0, len(text))] if text else []


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "standard": lambda: AnalyzerPipeline(RegexTokenizer(STANDARD_PATTERN), [LowercaseFilter()]),
    "simple": lambda: AnalyzerPipeline(RegexTokenizer(LETTER_PATTERN), [LowercaseFilter()]),
    "whitespace": lambda: AnalyzerPipeline(RegexTokenizer(WHITESPACE_PATTERN)),
    "stop": lambda: AnalyzerPipeline(RegexTokenizer(LETTER_PATTERN), [LowercaseFilter(), StopFilter()]),
    "english": lambda: AnalyzerPipeline(RegexTokenizer(STANDARD_PATTERN), [LowercaseFilter(), StopFilter()]),
    "keyword": KeywordAnalyzer,
}


def available_analyzers() -> list[str]:
    return sorted(_ANALYZER_FACTORIES)


def get_analyzer(name: str | None) -> Analyzer:
    """Build a fresh analyzer by case-insensitive name; ``None`` means standard.

    Raises:
        ValueError: if no analyzer is registered under ``name``.
    """
    factory = _ANALYZER_FACTORIES.get((name or "standard").lower())
    if factory is None:
        msg = f"Unknown analyzer '{name}'. Available: {available_analyzers()}"
        raise ValueError(msg)
    return factory()
