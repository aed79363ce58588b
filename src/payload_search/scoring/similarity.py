"""Payload-aware Information-Based similarity.

The IB model scores a term as ``distribution * lambda * normalization``.
Those three functions are pluggable policies supplied by the caller; this
module only composes them, applies the query boost, and layers payload
weights, phrase slop decay and multi-clause aggregation on top.

Scorers are created once per query and per segment. They hold no mutable
state, so one scorer may be used from several threads.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol

from payload_search.scoring.explanation import Explanation
from payload_search.scoring.payloads import PayloadBytes, decode_payload
from payload_search.scoring.stats import BasicStats, Stats, StatsKind, decode_norm_value


# Norm used when a field was indexed without norms
NEUTRAL_NORM = 1.0

NormLookup = Callable[[int], int]


class Distribution(Protocol):
    """Probability distribution component of the IB formula."""

    def __call__(self, stats: BasicStats, freq: float) -> float:  # pragma: no cover - interface definition
        ...


class Lambda(Protocol):
    def __call__(self, stats: BasicStats) -> float:  # pragma: no cover - interface definition
        ...


class Normalization(Protocol):
    """Length normalization; ``norm`` is the decoded field length."""

    def __call__(self, stats: BasicStats, norm: float) -> float:  # pragma: no cover - interface definition
        ...


class SimScorer(Protocol):
    """Capabilities a per-query scorer offers to the matching layer."""

    def score(self, doc: int, freq: float) -> float:  # pragma: no cover - interface definition
        ...

    def explain(self, doc: int, freq: float) -> Explanation:  # pragma: no cover - interface definition
        ...

    def compute_slop_factor(self, distance: int) -> float:  # pragma: no cover - interface definition
        ...

    def compute_payload_factor(
        self, doc: int, start: int, end: int, payload: PayloadBytes | None
    ) -> float:  # pragma: no cover - interface definition
        ...


def describe(component: object) -> str:
    """Human readable name of a pluggable component for explanations."""

    name = getattr(component, "name", None)
    if isinstance(name, str):
        return name
    return getattr(component, "__name__", type(component).__name__)


def slop_factor(distance: int) -> float:
    """Weight of a proximity match ``distance`` positions away from exact."""

    return 1.0 / (max(distance, 0) + 1)


class IBSimilarity:
    """Compose the three IB components into a single term score."""

    def __init__(self, distribution: Distribution, lambda_: Lambda, normalization: Normalization) -> None:
        self.distribution = distribution
        self.lambda_ = lambda_
        self.normalization = normalization

    def score(self, stats: BasicStats, freq: float, norm: float) -> float:
        # boost is applied last so it scales the calibrated IB score linearly
        return (
            self.distribution(stats, freq) * self.lambda_(stats) * self.normalization(stats, norm)
        ) * stats.boost

    def explain(self, stats: BasicStats, doc: int, freq: float, norm: float) -> Explanation:
        distribution = self.distribution(stats, freq)
        lambda_value = self.lambda_(stats)
        normalization = self.normalization(stats, norm)
        value = (distribution * lambda_value * normalization) * stats.boost

        details = [
            Explanation.of(distribution, f"distribution, {describe(self.distribution)}, freq={freq}"),
            Explanation.of(lambda_value, f"lambda, {describe(self.lambda_)}"),
            Explanation.of(normalization, f"normalization, {describe(self.normalization)}, norm={norm}"),
        ]
        if stats.boost != 1.0:
            details.append(Explanation.of(stats.boost, "boost"))
        return Explanation.of(
            value,
            f"score(doc={doc},freq={freq}), field={stats.field}, computed from:",
            *details,
        )

    def __str__(self) -> str:
        return f"IB {describe(self.distribution)}-{describe(self.lambda_)}{describe(self.normalization)}"


class BasicSimScorer:
    """Scores one field's statistics against documents of one segment."""

    def __init__(self, similarity: IBSimilarity, stats: BasicStats, norms: NormLookup | None = None) -> None:
        self.similarity = similarity
        self.stats = stats
        self.norms = norms

    def _norm(self, doc: int) -> float:
        if self.norms is None:
            return NEUTRAL_NORM
        return decode_norm_value(self.norms(doc))

    def score(self, doc: int, freq: float) -> float:
        return self.similarity.score(self.stats, freq, self._norm(doc))

    def explain(self, doc: int, freq: float) -> Explanation:
        return self.similarity.explain(self.stats, doc, freq, self._norm(doc))

    def compute_slop_factor(self, distance: int) -> float:
        return slop_factor(distance)

    def compute_payload_factor(self, doc: int, start: int, end: int, payload: PayloadBytes | None) -> float:
        return decode_payload(payload)


class MultiSimScorer:
    """Sum of independently scored sub-clauses.

    More matching sub-clauses always mean a higher score, much like a
    boolean query over the same clauses.
    """

    def __init__(self, sub_scorers: tuple[BasicSimScorer, ...]) -> None:
        if not sub_scorers:
            raise ValueError("MultiSimScorer needs at least one sub-scorer")
        self.sub_scorers = sub_scorers

    def score(self, doc: int, freq: float) -> float:
        total = 0.0
        for scorer in self.sub_scorers:
            total += scorer.score(doc, freq)
        return total

    def explain(self, doc: int, freq: float) -> Explanation:
        details = tuple(scorer.explain(doc, freq) for scorer in self.sub_scorers)
        total = 0.0
        for detail in details:
            total += detail.value
        return Explanation(total, "sum of:", details)

    def compute_slop_factor(self, distance: int) -> float:
        return self.sub_scorers[0].compute_slop_factor(distance)

    def compute_payload_factor(self, doc: int, start: int, end: int, payload: PayloadBytes | None) -> float:
        return self.sub_scorers[0].compute_payload_factor(doc, start, end, payload)


class PayloadIBSimilarity:
    """Hands out payload-aware scorers for single or aggregated statistics."""

    def __init__(self, similarity: IBSimilarity) -> None:
        self.similarity = similarity

    def sim_scorer(self, stats: Stats, norms: Mapping[str, NormLookup] | None = None) -> SimScorer:
        """Return a scorer for ``stats``.

        ``norms`` maps field names to the segment's norm lookup; fields
        without an entry are scored with a neutral norm.
        """

        norms = norms or {}
        if stats.kind is StatsKind.MULTI:
            return MultiSimScorer(
                tuple(BasicSimScorer(self.similarity, sub, norms.get(sub.field)) for sub in stats.sub_stats)
            )
        return BasicSimScorer(self.similarity, stats, norms.get(stats.field))

    def __str__(self) -> str:
        return f"Payload{self.similarity}"
