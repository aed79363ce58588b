"""Build a payload IB similarity from named components.

The IB distribution, lambda and normalization functions are supplied by
whoever embeds this package: they register implementations under a name and
similarity settings then refer to those names. Only the neutral ``"no"``
normalization is available out of the box.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from payload_search.scoring.similarity import (
    Distribution,
    IBSimilarity,
    Lambda,
    Normalization,
    PayloadIBSimilarity,
)
from payload_search.scoring.stats import BasicStats


logger = logging.getLogger(__name__)


class NoNormalization:
    """Leaves the score untouched regardless of field length."""

    name = "no"

    def __call__(self, stats: BasicStats, norm: float) -> float:
        return 1.0


_DISTRIBUTIONS: dict[str, Distribution] = {}
_LAMBDAS: dict[str, Lambda] = {}
_NORMALIZATIONS: dict[str, Normalization] = {"no": NoNormalization()}


class UnsupportedSimilarityError(ValueError):
    """Raised when similarity settings name a component nobody registered."""


def register_distribution(name: str, distribution: Distribution) -> None:
    _DISTRIBUTIONS[name.lower()] = distribution


def register_lambda(name: str, lambda_: Lambda) -> None:
    _LAMBDAS[name.lower()] = lambda_


def register_normalization(name: str, normalization: Normalization) -> None:
    _NORMALIZATIONS[name.lower()] = normalization


def unregister_all() -> None:
    """Forget every registered component except the built-in normalization."""

    _DISTRIBUTIONS.clear()
    _LAMBDAS.clear()
    _NORMALIZATIONS.clear()
    _NORMALIZATIONS["no"] = NoNormalization()


class SimilaritySettings(BaseModel):
    """Index-level similarity settings, e.g. ``{"distribution": "ll", "lambda": "df"}``."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    distribution: str = Field(description="Registered distribution name")
    lambda_: str = Field(alias="lambda", description="Registered lambda name")
    normalization: str = Field(default="no", description="Registered normalization name")


def _lookup(kind: str, registry: Mapping[str, Any], name: str) -> Any:
    component = registry.get(name.lower())
    if component is None:
        raise UnsupportedSimilarityError(f"Unsupported {kind} [{name}]")
    return component


class PayloadIBSimilarityProvider:
    """Resolve settings once and hand out the resulting similarity."""

    def __init__(self, name: str, settings: SimilaritySettings | Mapping[str, Any]) -> None:
        if not isinstance(settings, SimilaritySettings):
            settings = SimilaritySettings.model_validate(dict(settings))
        self.name = name
        self.settings = settings
        similarity = IBSimilarity(
            _lookup("Distribution", _DISTRIBUTIONS, settings.distribution),
            _lookup("Lambda", _LAMBDAS, settings.lambda_),
            _lookup("Normalization", _NORMALIZATIONS, settings.normalization),
        )
        self._similarity = PayloadIBSimilarity(similarity)
        logger.debug("Similarity %s resolved to %s", name, self._similarity)

    def get(self) -> PayloadIBSimilarity:
        return self._similarity
