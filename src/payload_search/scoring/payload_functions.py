"""Turn matched occurrences of a term or phrase into a document score.

A document's frequency for a query is the sum of the slop factors of its
matches, so an exact match counts 1 and looser near matches count less.
The similarity score for that frequency is then multiplied by the payload
function's summary (by default the average) of every payload factor seen.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from payload_search.scoring.explanation import Explanation
from payload_search.scoring.payloads import PayloadBytes
from payload_search.scoring.similarity import SimScorer
from payload_search.search.phrase import match_distance


@dataclass(frozen=True)
class Occurrence:
    """One position of a term in a document and the payload stored with it."""

    position: int
    payload: PayloadBytes | None = None


@dataclass(frozen=True)
class SpanMatch:
    """One match of a term or phrase; occurrences are ordered by query term."""

    occurrences: tuple[Occurrence, ...]

    def __post_init__(self) -> None:
        if not self.occurrences:
            raise ValueError("a span match needs at least one occurrence")

    @property
    def start(self) -> int:
        return min(occurrence.position for occurrence in self.occurrences)

    @property
    def end(self) -> int:
        return max(occurrence.position for occurrence in self.occurrences) + 1

    @property
    def distance(self) -> int:
        return match_distance([occurrence.position for occurrence in self.occurrences])


class PayloadFunction(Protocol):
    def current_score(self, current: float, payload_factor: float) -> float:  # pragma: no cover - interface definition
        ...

    def doc_score(self, payloads_seen: int, payload_score: float) -> float:  # pragma: no cover - interface definition
        ...


class AveragePayloadFunction:
    """Average of the payload factors seen; 1.0 when none were seen."""

    name = "AveragePayloadFunction"

    def current_score(self, current: float, payload_factor: float) -> float:
        return current + payload_factor

    def doc_score(self, payloads_seen: int, payload_score: float) -> float:
        return payload_score / payloads_seen if payloads_seen > 0 else 1.0


AVERAGE = AveragePayloadFunction()


def _accumulate(
    scorer: SimScorer, doc: int, matches: Sequence[SpanMatch], function: PayloadFunction
) -> tuple[float, int, float]:
    freq = 0.0
    payloads_seen = 0
    payload_score = 0.0
    for match in matches:
        freq += scorer.compute_slop_factor(match.distance)
        start, end = match.start, match.end
        for occurrence in match.occurrences:
            factor = scorer.compute_payload_factor(doc, start, end, occurrence.payload)
            payload_score = function.current_score(payload_score, factor)
            payloads_seen += 1
    return freq, payloads_seen, payload_score


def score_span_matches(
    scorer: SimScorer,
    doc: int,
    matches: Sequence[SpanMatch],
    function: PayloadFunction = AVERAGE,
) -> float:
    """Score a document from its matches; 0.0 when it has none."""

    if not matches:
        return 0.0
    freq, payloads_seen, payload_score = _accumulate(scorer, doc, matches, function)
    return scorer.score(doc, freq) * function.doc_score(payloads_seen, payload_score)


def explain_span_matches(
    scorer: SimScorer,
    doc: int,
    matches: Sequence[SpanMatch],
    function: PayloadFunction = AVERAGE,
) -> Explanation:
    if not matches:
        return Explanation.of(0.0, f"no matching term or phrase in doc {doc}")
    freq, payloads_seen, payload_score = _accumulate(scorer, doc, matches, function)
    span = scorer.explain(doc, freq)
    payload = Explanation.of(
        function.doc_score(payloads_seen, payload_score),
        f"{getattr(function, 'name', type(function).__name__)}(...) over {payloads_seen} payloads",
    )
    return Explanation.of(span.value * payload.value, "weight, product of:", span, payload)


def score_term_occurrences(
    scorer: SimScorer,
    doc: int,
    occurrences: Sequence[Occurrence],
    function: PayloadFunction = AVERAGE,
) -> float:
    """Score a single-term query; every occurrence is an exact match."""

    return score_span_matches(scorer, doc, [SpanMatch((occurrence,)) for occurrence in occurrences], function)
