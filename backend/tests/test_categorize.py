import logging

import pandas as pd

from fincore.categorize import (
    DEFAULT_CATEGORIES,
    add_categories,
    categorize_description,
    categorize_records,
    category_name,
    clear_caches,
    match_category,
    match_category_with_diagnostics,
)
from fincore.models import Category, MatchType, Rule
from fincore.normalize import TextNormalizer


def _rule(pattern, category_id, priority=0, match_type=MatchType.INCLUDES, enabled=True):
    return Rule(pattern, match_type, category_id, priority, enabled)


def test_higher_priority_rule_wins() -> None:
    rules = [_rule("netflix", "leisure", 1), _rule("netflix", "subscriptions", 5)]
    assert match_category("Netflix mensual", rules, []) == "subscriptions"


def test_disabled_rule_never_wins() -> None:
    rules = [
        _rule("netflix", "blocked", 10, enabled=False),
        _rule("netflix", "leisure", 1),
    ]
    assert match_category("netflix", rules, []) == "leisure"


def test_priority_ties_keep_input_order() -> None:
    rules = [_rule("coto", "first", 3), _rule("coto", "second", 3)]
    assert match_category("coto", rules, []) == "first"
    assert match_category("coto", list(reversed(rules)), []) == "second"


def test_starts_with_rule() -> None:
    rules = [_rule("uber", "transport", match_type=MatchType.STARTS_WITH)]
    assert match_category("Uber al centro", rules, []) == "transport"
    assert match_category("pago uber", rules, []) is None


def test_regex_rule_is_case_insensitive() -> None:
    rules = [_rule(r"^super\w+", "food", match_type=MatchType.REGEX)]
    assert match_category("SUPERMERCADO Dia", rules, []) == "food"


def test_pattern_is_lower_cased() -> None:
    assert match_category("netflix", [_rule("NETFLIX", "subs")], []) == "subs"


def test_invalid_regex_does_not_stop_later_rules() -> None:
    rules = [
        _rule("([", "broken", 10, match_type=MatchType.REGEX),
        _rule("coto", "food", 1),
    ]
    result = match_category_with_diagnostics("Coto Palermo", rules, [])
    assert result.category_id == "food"
    assert result.source == "rule"
    assert len(result.warnings) == 1
    assert "invalid regex" in result.warnings[0]


def test_invalid_regex_falls_through_to_keywords() -> None:
    rules = [_rule("([", "broken", match_type=MatchType.REGEX)]
    categories = [Category("food", ("coto",))]
    result = match_category_with_diagnostics("coto", rules, categories)
    assert result.category_id == "food"
    assert result.source == "keyword"
    assert result.matched == "coto"


def test_invalid_regex_is_logged(caplog) -> None:
    rules = [_rule("((unclosed-log-check", "broken", match_type=MatchType.REGEX)]
    with caplog.at_level(logging.WARNING, logger="fincore.categorize"):
        assert match_category("anything", rules, []) is None
    assert any("unclosed-log-check" in r.getMessage() for r in caplog.records)


def test_rules_override_keyword_categories() -> None:
    rules = [_rule("farmacia", "custom")]
    assert match_category("Farmacia Central", rules, DEFAULT_CATEGORIES) == "custom"
    assert match_category("Farmacia Central", [], DEFAULT_CATEGORIES) == "health"


def test_keyword_category_priority() -> None:
    # netflix is a keyword of both leisure and subscriptions; subscriptions ranks higher
    assert match_category("Netflix mensual", [], DEFAULT_CATEGORIES) == "subscriptions"


def test_keyword_category_ties_keep_input_order() -> None:
    categories = [Category("a", ("kiosco",), 1), Category("b", ("kiosco",), 1)]
    assert match_category("kiosco", [], categories) == "a"


def test_no_match_returns_none() -> None:
    assert match_category("xyz 123", [], DEFAULT_CATEGORIES) is None
    result = match_category_with_diagnostics("xyz 123", [], DEFAULT_CATEGORIES)
    assert result.source is None
    assert result.matched is None


def test_empty_description_returns_none() -> None:
    rules = [_rule(".*", "all", match_type=MatchType.REGEX)]
    assert match_category("", rules, DEFAULT_CATEGORIES) is None
    assert match_category(None, rules, DEFAULT_CATEGORIES) is None
    assert match_category("   ", rules, DEFAULT_CATEGORIES) is None


def test_description_is_normalized_before_matching() -> None:
    rules = [_rule("mercado pago", "wallet")]
    assert match_category("Transferencia MP", rules, []) == "wallet"


def test_custom_normalizer() -> None:
    normalizer = TextNormalizer((("acme", ("ac",)),))
    rules = [_rule("acme", "tools")]
    assert match_category("AC hardware", rules, [], normalizer=normalizer) == "tools"
    assert match_category("AC hardware", rules, []) is None


def test_mapping_rules_and_categories() -> None:
    rules = [
        {"pattern": "coto", "matchType": "includes", "categoryId": "food", "priority": 1},
        {"pattern": "dia", "match_type": "startsWith", "category_id": "market"},
    ]
    categories = [{"id": "health", "keywords": ["farmacia"], "priority": 2}]
    assert match_category("dia", rules, categories) == "market"
    assert match_category("Coto", rules, categories) == "food"
    assert match_category("farmacia", rules, categories) == "health"


def test_malformed_rules_are_skipped_with_warning() -> None:
    rules = [
        {"pattern": "coto", "matchType": "fuzzy", "categoryId": "x"},
        {"pattern": "coto", "matchType": "includes"},
        Rule("coto", "fuzzy", "y"),
        _rule("", "empty"),
        "not a rule",
        _rule("coto", "food"),
    ]
    result = match_category_with_diagnostics("coto", rules, [])
    assert result.category_id == "food"
    assert len(result.warnings) == 5


def test_empty_includes_pattern_is_not_a_catch_all() -> None:
    result = match_category_with_diagnostics("anything", [_rule("", "all")], [])
    assert result.category_id is None
    assert result.warnings == ("skipped rule for 'all': empty pattern",)
    assert match_category("anything", [_rule("", "all")], []) is None


def test_inputs_are_not_mutated() -> None:
    categories = [Category("low", ("x",), 1), Category("high", ("x",), 9)]
    snapshot = list(categories)
    match_category("x", [], categories)
    assert categories == snapshot


def test_categorize_description_uses_seeded_categories() -> None:
    assert categorize_description("Alquiler marzo") == "rent"
    assert categorize_description("Alquiler marzo", [_rule("alquiler", "housing")]) == "housing"


def test_category_name() -> None:
    assert category_name("rent", DEFAULT_CATEGORIES) == "Rent"
    assert category_name("missing", DEFAULT_CATEGORIES) is None
    assert category_name(None, DEFAULT_CATEGORIES) is None
    assert category_name("a", [Category("a", ("k",))]) == "a"


def test_categorize_records() -> None:
    records = [
        {"description": "Uber al centro", "amount": 10},
        {"description": "", "amount": 5},
        {"amount": 1},
    ]
    out = categorize_records(records)
    assert out[0]["category_id"] == "transport"
    assert out[0]["merchant_norm"] == "uber al centro"
    assert out[0]["amount"] == 10
    assert out[1]["category_id"] is None
    assert out[2]["merchant_norm"] == ""
    assert "merchant_norm" not in records[0]


def test_add_categories_dataframe() -> None:
    df = pd.DataFrame({"description": ["Netflix", "xyz 123", None]})
    out = add_categories(df)
    assert list(out["category_id"]) == ["subscriptions", None, None]
    assert list(out["merchant_norm"]) == ["netflix", "xyz 123", ""]
    assert "category_id" not in df.columns


def test_add_categories_keeps_existing_column_unless_overwrite() -> None:
    df = pd.DataFrame({"description": ["Netflix"], "category_id": ["manual"]})
    assert add_categories(df)["category_id"].tolist() == ["manual"]
    assert add_categories(df, overwrite=True)["category_id"].tolist() == ["subscriptions"]


def test_add_categories_without_description_column() -> None:
    df = pd.DataFrame({"amount": [1, 2]})
    assert add_categories(df) is df


def test_clear_caches() -> None:
    match_category("coto", [_rule("co.o", "food", match_type=MatchType.REGEX)], [])
    summary = clear_caches()
    assert summary["compiled_patterns_cleared"] >= 1
    assert "normalized_texts_cleared" in summary
