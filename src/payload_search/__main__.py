"""Parse a query string from the command line and print the resulting tree as JSON."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
import sys

import orjson
from pydantic import ValidationError

from payload_search.config import Settings
from payload_search.observability.logging import configure_logging
from payload_search.query.flags import flag_names
from payload_search.query.parser import QueryAnalysisError
from payload_search.query.request import SimpleQueryStringRequest, build_query
from payload_search.search.analyzers import available_analyzers


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payload-search",
        description="Parse a simple_payload_query_string query and print its query tree",
    )
    parser.add_argument("query", help="Query text, e.g. 'quick + (brown | red) -fox'")
    parser.add_argument(
        "--field",
        dest="fields",
        action="append",
        metavar="NAME[^BOOST]",
        help="Field to search; repeat for several fields (default: settings default_field)",
    )
    parser.add_argument(
        "--flags",
        help=f"'|' separated flags, any of: {', '.join(flag_names())}",
    )
    parser.add_argument(
        "--default-operator",
        choices=["or", "and"],
        default="or",
        help="Operator joining tokens with none between them (default: or)",
    )
    parser.add_argument(
        "--analyzer",
        choices=available_analyzers(),
        help="Analyzer for terms and phrases (default: settings default_analyzer)",
    )
    parser.add_argument("--locale", default="", help="Locale used to lowercase prefix and fuzzy terms")
    parser.add_argument(
        "--no-lowercase-expanded-terms",
        dest="lowercase_expanded_terms",
        action="store_false",
        help="Keep the case of prefix and fuzzy terms",
    )
    parser.add_argument("--lenient", action="store_true", help="Skip text the analyzer fails on")
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_argument_parser().parse_args(argv)
    settings = Settings()
    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)

    payload = {
        "query": args.query,
        "fields": args.fields,
        "flags": args.flags,
        "default_operator": args.default_operator,
        "analyzer": args.analyzer,
        "locale": args.locale,
        "lowercase_expanded_terms": args.lowercase_expanded_terms,
        "lenient": args.lenient,
    }
    try:
        request = SimpleQueryStringRequest.model_validate(payload)
    except ValidationError as exc:
        logger.error("Invalid query request: %s", exc)
        return 2

    try:
        node = build_query(request, settings)
    except QueryAnalysisError as exc:
        logger.error("%s", exc)
        return 1

    tree = node.to_dict() if node is not None else None
    sys.stdout.write(orjson.dumps(tree, option=orjson.OPT_INDENT_2).decode("utf-8") + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
