from __future__ import annotations

from decimal import Decimal

import pytest

from quickedit_table.errors import RuleSyntaxError
from quickedit_table.rules import (
    DEFAULT_MESSAGES,
    DecimalRule,
    IntegerRule,
    LengthRule,
    Required,
    RuleSet,
    check_rules,
    parse_rule_classes,
)


def test_parse_rule_classes_reads_all_rule_kinds_and_ignores_other_classes() -> None:
    rules = parse_rule_classes(
        "wide yiv-required yiv-length:[2,] yiv-integer:[0,120] yiv-decimal:[,5.5]"
    )
    assert rules.required is True
    assert rules.length == LengthRule(min=2, max=None)
    assert rules.integer == IntegerRule(min=0, max=120)
    assert rules.decimal == DecimalRule(min=None, max=Decimal("5.5"))


def test_parse_rule_classes_accepts_unbounded_numbers() -> None:
    rules = parse_rule_classes("yiv-required yiv-integer")
    assert rules.required is True
    assert rules.integer == IntegerRule(min=None, max=None)

    rules = parse_rule_classes("yiv-decimal")
    assert rules.decimal == DecimalRule(min=None, max=None)
    assert check_rules("4.25", rules).ok
    assert check_rules("four", rules).error == "Enter a number."
    assert check_rules("3.5", parse_rule_classes("yiv-integer")).error == (
        "Enter a whole number (no decimal point)."
    )


@pytest.mark.parametrize(
    "text",
    [
        "yiv-length",
        "yiv-length:[,]",
        "yiv-length:[a,3]",
        "yiv-integer:[1.5,]",
        "yiv-decimal:[1e3,]",
        "yiv-bogus",
    ],
)
def test_parse_rule_classes_rejects_malformed_rules(text: str) -> None:
    with pytest.raises(RuleSyntaxError):
        parse_rule_classes(text)


def test_rule_set_from_descriptors_keeps_fixed_order() -> None:
    rules = RuleSet.from_rules([IntegerRule(max=3), Required()])
    assert rules.required is True
    assert rules.integer == IntegerRule(max=3)
    assert not rules.is_empty
    assert RuleSet().is_empty


def test_required_and_min_length_examples() -> None:
    rules = RuleSet.from_rules([Required(), LengthRule(min=2)])
    messages = {"required": "Required", "min_length": "Too short"}

    assert check_rules("", rules, messages).error == "Required"
    assert check_rules("a", rules, messages).error == "Too short"
    assert check_rules("ab", rules, messages).ok


def test_required_failure_short_circuits_length() -> None:
    rules = RuleSet.from_rules([Required(), LengthRule(min=2)])
    result = check_rules("   ", rules, {"min_length": "Too short"})
    assert result.error == DEFAULT_MESSAGES["required_string"]
    assert result.keep_going is False


def test_choice_fields_use_menu_message() -> None:
    rules = RuleSet(required=True)
    assert check_rules("", rules, choice=True).error == DEFAULT_MESSAGES["required_menu"]


def test_empty_optional_value_passes_but_stops_checking() -> None:
    result = check_rules("", RuleSet(integer=IntegerRule(min=1)))
    assert result.ok
    assert result.keep_going is False


def test_integer_range_example_uses_integer_message() -> None:
    rules = parse_rule_classes("yiv-integer:[0,120]")
    messages = {"integer": "Enter an age"}
    assert check_rules("200", rules, messages).error == "Enter an age"
    assert check_rules("42", rules, messages).ok
    assert check_rules("4.2", rules, messages).error == "Enter an age"


def test_integer_default_messages_include_bounds() -> None:
    assert check_rules("x", RuleSet(integer=IntegerRule())).error == DEFAULT_MESSAGES["integer"]
    assert check_rules("-1", RuleSet(integer=IntegerRule(min=0))).error == (
        "Enter a number that is 0 or higher (no decimal point)."
    )
    assert check_rules("9", RuleSet(integer=IntegerRule(max=5))).error == (
        "Enter a number that is 5 or lower (no decimal point)."
    )
    assert check_rules("9", RuleSet(integer=IntegerRule(min=0, max=5))).error == (
        "Enter a number between or including 0 and 5 (no decimal point)."
    )


def test_length_default_messages() -> None:
    assert check_rules("abcd", parse_rule_classes("yiv-length:[,3]")).error == (
        "Enter text that is up to 3 characters long."
    )
    assert check_rules("a", parse_rule_classes("yiv-length:[2,3]")).error == (
        "Enter text that is 2 to 3 characters long."
    )


def test_decimal_rejects_exponents_and_checks_bounds() -> None:
    rules = parse_rule_classes("yiv-decimal:[0,10.5]")
    assert check_rules("1e3", rules).error == "Enter a number."
    assert check_rules("11", rules).error == "Enter a number between or including 0 and 10.5."
    assert check_rules(".5", rules).ok
    assert check_rules("10.50", rules).ok
    assert check_rules("10.51", rules).error is not None


def test_custom_messages_get_bounds_substituted() -> None:
    rules = parse_rule_classes("yiv-length:[3,]")
    assert check_rules("ab", rules, {"min_length": "Need {min}+"}).error == "Need 3+"
