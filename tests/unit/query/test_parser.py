"""Unit tests for SimpleQueryParser."""

import pytest

from payload_search.query.flags import ALL_FLAGS, NO_FLAGS, QueryFlag
from payload_search.query.nodes import (
    BooleanQuery,
    FuzzyQuery,
    Occur,
    PhraseQuery,
    PrefixQuery,
    TermQuery,
    iter_leaves,
)
from payload_search.query.parser import (
    ParserSettings,
    QueryAnalysisError,
    SimpleQueryParser,
    locale_lower,
    validate_locale,
)
from payload_search.search.analyzers import get_analyzer


def parser(weights=None, flags=ALL_FLAGS, settings=None, analyzer="standard", **kwargs):
    weights = {"f": 1.0} if weights is None else weights
    return SimpleQueryParser(get_analyzer(analyzer), weights, flags, settings, **kwargs)


def t(text, field="f", boost=1.0):
    return TermQuery(field, text, boost)


def AND(*clauses):
    return BooleanQuery(Occur.MUST, clauses)


def OR(*clauses):
    return BooleanQuery(Occur.SHOULD, clauses)


class FailingAnalyzer:
    """Raises on any text containing ``boom``."""

    def __init__(self):
        self.inner = get_analyzer("standard")

    def __call__(self, text):
        if "boom" in text:
            raise ValueError("cannot analyze")
        return self.inner(text)


@pytest.mark.unit
class TestBooleanStructure:
    def test_and(self):
        assert parser().parse("a+b") == AND(t("a"), t("b"))

    def test_rightmost_operator_binds_first(self):
        assert parser().parse("a | b + c") == OR(t("a"), AND(t("b"), t("c")))

    def test_rightmost_or_binds_first(self):
        assert parser().parse("a + b | c") == AND(t("a"), OR(t("b"), t("c")))

    def test_same_operator_runs_stay_flat(self):
        assert parser().parse("a|b|c") == OR(t("a"), t("b"), t("c"))

    def test_default_operator_is_or(self):
        assert parser().parse("a b") == OR(t("a"), t("b"))

    def test_default_operator_and(self):
        assert parser(default_operator=Occur.MUST).parse("a b") == AND(t("a"), t("b"))

    def test_grouping_overrides_precedence(self):
        assert parser().parse("(a|b)+c") == AND(OR(t("a"), t("b")), t("c"))

    def test_first_operator_wins_between_operands(self):
        assert parser().parse("a +| b") == AND(t("a"), t("b"))


@pytest.mark.unit
class TestNegation:
    def test_negated_clause_is_required_under_default_or(self):
        query = parser().parse("a -b")
        assert query.occur is Occur.MUST
        assert query == AND(t("a"), BooleanQuery(Occur.MUST_NOT, (t("b"),)))

    def test_negated_clause_keeps_explicit_or(self):
        assert parser().parse("a |-b") == OR(t("a"), BooleanQuery(Occur.MUST_NOT, (t("b"),)))

    def test_negated_clause_binds_tighter_than_trailing_default(self):
        assert parser().parse("a -b c") == AND(t("a"), OR(BooleanQuery(Occur.MUST_NOT, (t("b"),)), t("c")))

    def test_negated_clause_with_and(self):
        assert parser().parse("a +-b") == AND(t("a"), BooleanQuery(Occur.MUST_NOT, (t("b"),)))

    def test_double_negation_cancels(self):
        assert parser().parse("--a") == t("a")

    def test_negated_group(self):
        assert parser().parse("-(a|b)") == BooleanQuery(Occur.MUST_NOT, (OR(t("a"), t("b")),))

    def test_negation_does_not_survive_whitespace(self):
        assert parser().parse("- a") == t("a")


@pytest.mark.unit
class TestLeaves:
    def test_phrase_with_slop(self):
        assert parser().parse('"x y"~2') == PhraseQuery("f", ("x", "y"), slop=2)

    def test_single_term_phrase_is_a_term(self):
        assert parser().parse('"x"') == t("x")

    def test_prefix(self):
        assert parser().parse("foo*") == PrefixQuery("f", "foo")

    def test_prefix_is_lowercased(self):
        assert parser().parse("FOO*") == PrefixQuery("f", "foo")

    def test_prefix_case_kept_when_lowercasing_disabled(self):
        settings = ParserSettings(lowercase_expanded_terms=False)
        assert parser(settings=settings).parse("FOO*") == PrefixQuery("f", "FOO")

    def test_fuzzy(self):
        assert parser().parse("Foo~1") == FuzzyQuery("f", "foo", max_edits=1)

    def test_fuzzy_zero_is_a_plain_term(self):
        assert parser().parse("foo~0") == t("foo")

    def test_fuzzy_zero_on_a_prefix_is_a_prefix(self):
        assert parser().parse("Foo*~0") == PrefixQuery("f", "foo")

    def test_terms_are_analyzed(self):
        assert parser().parse("Hello") == t("hello")

    def test_text_splitting_into_several_terms_uses_default_operator(self):
        assert parser().parse("a\\ b") == OR(t("a"), t("b"))
        assert parser(default_operator=Occur.MUST).parse("a\\ b") == AND(t("a"), t("b"))

    def test_escaped_minus_is_searched_literally(self):
        assert parser(analyzer="whitespace").parse("\\-term") == t("-term")

    def test_escaped_plus_does_not_split(self):
        assert parser(analyzer="keyword").parse("a\\+b") == t("a+b")


@pytest.mark.unit
class TestFields:
    def test_term_fans_out_across_fields(self, title_body_weights):
        assert parser(title_body_weights).parse("a") == OR(t("a", "title", 2.0), t("a", "body", 1.0))

    def test_phrase_fans_out_across_fields(self, title_body_weights):
        assert parser(title_body_weights).parse('"x y"') == OR(
            PhraseQuery("title", ("x", "y"), 0, 2.0),
            PhraseQuery("body", ("x", "y"), 0, 1.0),
        )

    def test_prefix_and_fuzzy_carry_field_boost(self, title_body_weights):
        node = parser(title_body_weights).parse("ab* cd~2")
        leaves = list(iter_leaves(node))
        assert leaves == [
            PrefixQuery("title", "ab", 2.0),
            PrefixQuery("body", "ab", 1.0),
            FuzzyQuery("title", "cd", 2, 2.0),
            FuzzyQuery("body", "cd", 2, 1.0),
        ]

    def test_multi_term_text_is_grouped_per_field(self, title_body_weights):
        assert parser(title_body_weights).parse("a\\ b") == OR(
            BooleanQuery(Occur.SHOULD, (t("a", "title"), t("b", "title")), 2.0),
            BooleanQuery(Occur.SHOULD, (t("a", "body"), t("b", "body")), 1.0),
        )


@pytest.mark.unit
class TestNothingToSearch:
    @pytest.mark.parametrize("text", ["", "   ", "+", "|", "-", "()", '""', "+|-"])
    def test_operator_only_input_yields_none(self, text):
        assert parser().parse(text) is None

    def test_stopwords_only_yields_none(self):
        assert parser(analyzer="english").parse("the") is None

    def test_stopword_operand_is_dropped(self):
        assert parser(analyzer="english").parse("the + fox") == t("fox")

    def test_empty_group_cancels_pending_operator(self):
        assert parser().parse("a +() b") == OR(t("a"), t("b"))


@pytest.mark.unit
class TestForgivingParse:
    @pytest.mark.parametrize(
        "text",
        ["(a", '"a b', "a)", "((a|b)", "a~~1", '"a"~x', "\\", "a+*", "-", "~1", "*~", '"(")'],
    )
    def test_never_raises(self, text):
        parser().parse(text)

    def test_unclosed_paren_is_searched_as_text(self):
        assert parser().parse("(a") == t("a")

    def test_no_flags_treats_input_as_one_term(self):
        assert parser(analyzer="keyword", flags=NO_FLAGS).parse("a+b") == t("a+b")

    def test_disabled_and_is_analyzed_away(self):
        flags = ALL_FLAGS & ~int(QueryFlag.AND)
        assert parser(flags=flags).parse("a+b") == OR(t("a"), t("b"))


@pytest.mark.unit
class TestAnalysisFailures:
    def test_failure_raises_when_not_lenient(self):
        strict = SimpleQueryParser(FailingAnalyzer(), {"f": 1.0})
        with pytest.raises(QueryAnalysisError, match="boom"):
            strict.parse("ok boom")

    def test_failure_skips_operand_when_lenient(self):
        lenient = SimpleQueryParser(FailingAnalyzer(), {"f": 1.0}, settings=ParserSettings(lenient=True))
        assert lenient.parse("ok boom") == t("ok")


@pytest.mark.unit
class TestConstruction:
    def test_fields_required(self):
        with pytest.raises(ValueError, match="at least one field"):
            parser(weights={})

    @pytest.mark.parametrize("boost", [0.0, -1.0])
    def test_boost_must_be_positive(self, boost):
        with pytest.raises(ValueError, match="must be positive"):
            SimpleQueryParser(get_analyzer("standard"), {"f": boost})

    def test_must_not_is_not_a_default_operator(self):
        with pytest.raises(ValueError, match="not allowed"):
            parser(default_operator=Occur.MUST_NOT)

    def test_weights_are_read_only(self):
        p = parser()
        with pytest.raises(TypeError):
            p.weights["g"] = 1.0  # type: ignore[index]

    def test_parser_is_reusable(self):
        p = parser()
        assert p.parse("a+b") == p.parse("a+b")


@pytest.mark.unit
class TestLocale:
    @pytest.mark.parametrize("locale", ["", "en", "en_US", "tr-TR", "zh-Hant-TW"])
    def test_valid_locales(self, locale):
        assert validate_locale(locale) == locale

    @pytest.mark.parametrize("locale", ["e", "en US", "123", "en--US"])
    def test_invalid_locales(self, locale):
        with pytest.raises(ValueError, match="Invalid locale"):
            validate_locale(locale)

    def test_invalid_locale_rejected_by_settings(self):
        with pytest.raises(ValueError):
            ParserSettings(locale="not a locale")

    def test_turkish_dotless_i(self):
        assert locale_lower("TITLE", "tr") == "tıtle"
        assert locale_lower("İSTANBUL", "tr_TR") == "istanbul"

    def test_root_locale(self):
        assert locale_lower("TITLE") == "title"

    def test_expanded_terms_use_locale(self):
        settings = ParserSettings(locale="tr")
        assert parser(settings=settings).parse("TITLE*") == PrefixQuery("f", "tıtle")
