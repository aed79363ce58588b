"""Typed query-submission model and the entry point that turns it into a tree.

Everything about a request is validated when the model is built, so an
invalid configuration (unknown flag, analyzer or option, bad default
operator) fails before any parsing starts. Query text itself is never
rejected.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from payload_search.config import Settings
from payload_search.observability.tracing import create_span
from payload_search.query.flags import ALL_FLAGS, QUERY_NAME, flags_from_value
from payload_search.query.nodes import Occur, QueryNode
from payload_search.query.parser import ParserSettings, SimpleQueryParser, validate_locale
from payload_search.search.analyzers import get_analyzer


logger = logging.getLogger(__name__)

_OPERATORS = {"or": Occur.SHOULD, "and": Occur.MUST}


def parse_field_spec(spec: str) -> tuple[str, float]:
    """Split ``"name^boost"`` into its parts; a bare name has boost 1.0."""

    name, caret, raw_boost = spec.partition("^")
    name = name.strip()
    if not name:
        raise ValueError(f"[{QUERY_NAME}] field name missing in [{spec}]")
    if not caret:
        return name, 1.0
    try:
        boost = float(raw_boost)
    except ValueError:
        raise ValueError(f"[{QUERY_NAME}] invalid boost [{raw_boost}] for field [{name}]") from None
    if not boost > 0:
        raise ValueError(f"[{QUERY_NAME}] boost for field [{name}] must be positive, got {raw_boost}")
    return name, boost


class SimpleQueryStringRequest(BaseModel):
    """A ``simple_payload_query_string`` query as submitted by a client."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    query: str = Field(description="Raw query text")
    field_specs: tuple[str, ...] | None = Field(
        default=None,
        alias="fields",
        description='Fields to search, each "name" or "name^boost"',
    )
    field: str | None = Field(default=None, min_length=1, description="Single field to search")
    flags: int = Field(default=ALL_FLAGS, description="Enabled grammar features")
    analyzer: str | None = Field(default=None, description="Analyzer applied to terms and phrases")
    default_operator: Occur = Field(
        default=Occur.SHOULD,
        validation_alias=AliasChoices("default_operator", "defaultOperator"),
        description="Operator joining tokens that have none between them",
    )
    lowercase_expanded_terms: bool = Field(default=True, description="Lowercase prefix and fuzzy terms")
    lenient: bool = Field(default=False, description="Skip text the analyzer cannot handle")
    locale: str = Field(default="", description="Locale used to lowercase expanded terms")

    @field_validator("field_specs")
    @classmethod
    def _check_field_specs(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        if not value:
            raise ValueError(f"[{QUERY_NAME}] fields must not be empty")
        for spec in value:
            parse_field_spec(spec)
        return value

    @field_validator("flags", mode="before")
    @classmethod
    def _resolve_flags(cls, value: Any) -> Any:
        if value is None or isinstance(value, (str, int)):
            return flags_from_value(value)
        return value

    @field_validator("analyzer")
    @classmethod
    def _check_analyzer(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            get_analyzer(value)
        except ValueError:
            raise ValueError(f"[{QUERY_NAME}] analyzer [{value}] not found") from None
        return value

    @field_validator("default_operator", mode="before")
    @classmethod
    def _parse_operator(cls, value: Any) -> Any:
        if isinstance(value, Occur):
            return value
        operator = _OPERATORS.get(str(value).lower())
        if operator is None:
            raise ValueError(f"[{QUERY_NAME}] default operator [{value}] is not allowed")
        return operator

    @field_validator("locale")
    @classmethod
    def _check_locale(cls, value: str) -> str:
        return validate_locale(value)

    def field_weights(self, default_field: str) -> dict[str, float]:
        """Resolve field specs into a weight map; later duplicates win."""

        if self.field_specs is None:
            return {self.field or default_field: 1.0}
        weights: dict[str, float] = {}
        for spec in self.field_specs:
            name, boost = parse_field_spec(spec)
            weights[name] = boost
        return weights

    def parser_settings(self) -> ParserSettings:
        return ParserSettings(
            locale=self.locale,
            lowercase_expanded_terms=self.lowercase_expanded_terms,
            lenient=self.lenient,
        )


def build_parser(request: SimpleQueryStringRequest, settings: Settings | None = None) -> SimpleQueryParser:
    settings = settings or Settings()
    return SimpleQueryParser(
        get_analyzer(request.analyzer or settings.default_analyzer),
        request.field_weights(settings.default_field),
        request.flags,
        request.parser_settings(),
        default_operator=request.default_operator,
    )


def build_query(request: SimpleQueryStringRequest, settings: Settings | None = None) -> QueryNode | None:
    """Parse the request's query text into a tree; ``None`` means match nothing."""

    parser = build_parser(request, settings)
    with create_span(
        "payload_search.parse",
        attributes={"query.fields": len(parser.weights), "query.flags": request.flags},
    ):
        node = parser.parse(request.query)
    if node is None:
        logger.info("Query %r produced no clauses", request.query)
    return node


def parse_query_request(payload: Mapping[str, Any], settings: Settings | None = None) -> QueryNode | None:
    """Validate a raw request mapping and parse it.

    Raises:
        pydantic.ValidationError: when the request configuration is invalid.
    """

    return build_query(SimpleQueryStringRequest.model_validate(dict(payload)), settings)
