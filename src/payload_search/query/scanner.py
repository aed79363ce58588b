"""Lexical scanner for the simple payload query string grammar.

The scanner never fails. Anything it cannot interpret as an operator is
read back as term text, and operators switched off through the flags are
ordinary characters. Rules worth keeping in mind:

* ``\\`` escapes the following character in terms and phrases. The
  backslash itself is dropped.
* ``-`` negates only when it starts a token; ``term-1`` is one term.
* ``*`` marks a prefix only as the last unescaped character of a term;
  ``term*1`` is one term.
* ``~N`` ends a term as a fuzzy marker and ends a phrase as a slop marker.
* A ``(`` or ``"`` that is never closed is literal text. A stray ``)`` is
  dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Union

from payload_search.query.flags import ALL_FLAGS, QueryFlag, has_flag


# Largest edit distance a fuzzy term may ask for
MAX_EDITS = 2

_WHITESPACE = frozenset(" \t\n\r")
_INTEGER = re.compile(r"[+-]?[0-9]+")


class Operator(Enum):
    AND = "+"
    OR = "|"
    NOT = "-"
    GROUP_OPEN = "("
    GROUP_CLOSE = ")"
    WHITESPACE = " "
    # An empty group or phrase; it cancels a pending operator.
    EMPTY = ""


@dataclass(frozen=True)
class TermLexeme:
    """Unescaped term text with its prefix/fuzzy markers stripped."""

    text: str
    prefix: bool = False
    fuzziness: int = 0


@dataclass(frozen=True)
class PhraseLexeme:
    text: str
    slop: int = 0


@dataclass(frozen=True)
class OperatorLexeme:
    operator: Operator


Lexeme = Union[TermLexeme, PhraseLexeme, OperatorLexeme]

_WHITESPACE_LEXEME = OperatorLexeme(Operator.WHITESPACE)


class Scanner:
    """Turn raw query text into lexemes according to the enabled flags."""

    def __init__(self, flags: int = ALL_FLAGS) -> None:
        self.flags = flags

    def scan(self, text: str) -> list[Lexeme]:
        lexemes: list[Lexeme] = []
        if text:
            self._scan_range(text, 0, len(text), lexemes)
        return lexemes

    def _enabled(self, flag: QueryFlag) -> bool:
        return has_flag(self.flags, flag)

    def _scan_range(self, data: str, index: int, end: int, out: list[Lexeme]) -> None:
        while index < end:
            char = data[index]
            if char == "(" and self._enabled(QueryFlag.PRECEDENCE):
                index = self._consume_group(data, index, end, out)
            elif char == ")" and self._enabled(QueryFlag.PRECEDENCE):
                index += 1
            elif char == '"' and self._enabled(QueryFlag.PHRASE):
                index = self._consume_phrase(data, index, end, out)
            elif char == "+" and self._enabled(QueryFlag.AND):
                out.append(OperatorLexeme(Operator.AND))
                index += 1
            elif char == "|" and self._enabled(QueryFlag.OR):
                out.append(OperatorLexeme(Operator.OR))
                index += 1
            elif char == "-" and self._enabled(QueryFlag.NOT):
                out.append(OperatorLexeme(Operator.NOT))
                index += 1
            elif char in _WHITESPACE and self._enabled(QueryFlag.WHITESPACE):
                if not out or out[-1] != _WHITESPACE_LEXEME:
                    out.append(_WHITESPACE_LEXEME)
                index += 1
            else:
                index = self._consume_term(data, index, end, out)

    def _consume_group(self, data: str, index: int, end: int, out: list[Lexeme]) -> int:
        start = index + 1
        position = start
        depth = 1
        escaped = False
        while position < end:
            char = data[position]
            if not escaped:
                if char == "\\" and self._enabled(QueryFlag.ESCAPE):
                    escaped = True
                    position += 1
                    continue
                if char == "(":
                    depth += 1
                elif char == ")":
                    depth -= 1
                    if depth == 0:
                        break
            escaped = False
            position += 1

        if position >= end:
            return self._consume_term(data, index, end, out, literal_lead=1)
        if position == start:
            out.append(OperatorLexeme(Operator.EMPTY))
            return position + 1

        out.append(OperatorLexeme(Operator.GROUP_OPEN))
        self._scan_range(data, start, position, out)
        out.append(OperatorLexeme(Operator.GROUP_CLOSE))
        return position + 1

    def _consume_phrase(self, data: str, index: int, end: int, out: list[Lexeme]) -> int:
        position = index + 1
        buffer: list[str] = []
        escaped = False
        closed = False
        while position < end:
            char = data[position]
            if not escaped:
                if char == "\\" and self._enabled(QueryFlag.ESCAPE):
                    escaped = True
                    position += 1
                    continue
                if char == '"':
                    closed = True
                    break
            escaped = False
            buffer.append(char)
            position += 1

        if not closed:
            return self._consume_term(data, index, end, out, literal_lead=1)

        position += 1
        if not buffer:
            out.append(OperatorLexeme(Operator.EMPTY))
            return position

        slop = 0
        if position < end and data[position] == "~" and self._enabled(QueryFlag.NEAR):
            slop, position = self._parse_fuzziness(data, position, end)
        out.append(PhraseLexeme("".join(buffer), slop))
        return position

    def _consume_term(
        self,
        data: str,
        index: int,
        end: int,
        out: list[Lexeme],
        *,
        literal_lead: int = 0,
    ) -> int:
        buffer = list(data[index : index + literal_lead])
        position = index + literal_lead
        escaped = False
        prefix = False
        fuzzy = False
        while position < end:
            char = data[position]
            if not escaped:
                if char == "\\" and self._enabled(QueryFlag.ESCAPE):
                    escaped = True
                    prefix = False
                    position += 1
                    continue
                if self._token_finished(char):
                    break
                if buffer and char == "~" and self._enabled(QueryFlag.FUZZY):
                    fuzzy = True
                    break
                prefix = bool(buffer) and char == "*" and self._enabled(QueryFlag.PREFIX)
            escaped = False
            buffer.append(char)
            position += 1

        if not buffer:
            return position

        text = "".join(buffer)
        fuzziness = 0
        if fuzzy:
            fuzziness, position = self._parse_fuzziness(data, position, end)
        # a zero fuzziness falls back to whatever the term would be without "~"
        if fuzziness > 0:
            out.append(TermLexeme(text, fuzziness=min(fuzziness, MAX_EDITS)))
        elif prefix:
            out.append(TermLexeme(text[:-1], prefix=True))
        else:
            out.append(TermLexeme(text))
        return position

    def _parse_fuzziness(self, data: str, index: int, end: int) -> tuple[int, int]:
        """Read the number after a ``~``; malformed or negative numbers mean 0."""

        start = index + 1
        position = start
        while position < end and not self._token_finished(data[position]):
            position += 1
        raw = data[start:position]
        value = int(raw) if _INTEGER.fullmatch(raw) else 0
        return max(value, 0), position

    def _token_finished(self, char: str) -> bool:
        if char == '"':
            return self._enabled(QueryFlag.PHRASE)
        if char == "|":
            return self._enabled(QueryFlag.OR)
        if char == "+":
            return self._enabled(QueryFlag.AND)
        if char in "()":
            return self._enabled(QueryFlag.PRECEDENCE)
        if char in _WHITESPACE:
            return self._enabled(QueryFlag.WHITESPACE)
        return False


def scan(text: str, flags: int = ALL_FLAGS) -> list[Lexeme]:
    """Scan ``text`` with a throwaway :class:`Scanner`."""

    return Scanner(flags).scan(text)
