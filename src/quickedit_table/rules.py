from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .errors import RuleSyntaxError

RULE_CLASS_PREFIX = "yiv-"

_RANGE_CLASS_RE = re.compile(r"^yiv-(length|integer|decimal):\[([^,\]]*),([^,\]]*)\]$")
_INTEGER_RE = re.compile(r"^[-+]?[0-9]+$")
# No exponent notation.
_DECIMAL_RE = re.compile(r"^[-+]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)$")

DEFAULT_MESSAGES: dict[str, str] = {
    "required_string": "This field requires a value.",
    "required_menu": "This field is required. Choose a value from the pull-down list.",
    "length_too_short": "Enter text that is at least {min} characters or longer.",
    "length_too_long": "Enter text that is up to {max} characters long.",
    "length_out_of_range": "Enter text that is {min} to {max} characters long.",
    "integer": "Enter a whole number (no decimal point).",
    "integer_too_small": "Enter a number that is {min} or higher (no decimal point).",
    "integer_too_large": "Enter a number that is {max} or lower (no decimal point).",
    "integer_out_of_range": (
        "Enter a number between or including {min} and {max} (no decimal point)."
    ),
    "decimal": "Enter a number.",
    "decimal_too_small": "Enter a number that is {min} or higher.",
    "decimal_too_large": "Enter a number that is {max} or lower.",
    "decimal_out_of_range": "Enter a number between or including {min} and {max}.",
}

MESSAGE_KINDS: tuple[str, ...] = (
    "required",
    "min_length",
    "max_length",
    "integer",
    "decimal",
    "regex",
)


@dataclass(frozen=True, slots=True)
class Required:
    pass


@dataclass(frozen=True, slots=True)
class LengthRule:
    min: int | None = None
    max: int | None = None

    def __post_init__(self) -> None:
        if self.min is None and self.max is None:
            raise RuleSyntaxError("length rule needs at least one bound")


@dataclass(frozen=True, slots=True)
class IntegerRule:
    min: int | None = None
    max: int | None = None


@dataclass(frozen=True, slots=True)
class DecimalRule:
    min: Decimal | None = None
    max: Decimal | None = None


Rule = Required | LengthRule | IntegerRule | DecimalRule


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Class-encoded rules of one column, always checked in a fixed order."""

    required: bool = False
    length: LengthRule | None = None
    integer: IntegerRule | None = None
    decimal: DecimalRule | None = None

    @classmethod
    def from_rules(cls, rules: Iterable[Rule]) -> RuleSet:
        required = False
        length: LengthRule | None = None
        integer: IntegerRule | None = None
        decimal: DecimalRule | None = None
        for rule in rules:
            match rule:
                case Required():
                    required = True
                case LengthRule():
                    length = rule
                case IntegerRule():
                    integer = rule
                case DecimalRule():
                    decimal = rule
                case _:
                    raise RuleSyntaxError(f"Unsupported rule: {rule!r}")
        return cls(required=required, length=length, integer=integer, decimal=decimal)

    @property
    def is_empty(self) -> bool:
        return (
            not self.required
            and self.length is None
            and self.integer is None
            and self.decimal is None
        )


@dataclass(frozen=True, slots=True)
class RuleResult:
    error: str | None = None
    keep_going: bool = True

    @property
    def ok(self) -> bool:
        return self.error is None


def _parse_int_bound(raw: str, *, token: str) -> int | None:
    text = raw.strip()
    if not text:
        return None
    if not _INTEGER_RE.match(text):
        raise RuleSyntaxError(f"Invalid integer bound {text!r} in {token!r}")
    return int(text)


def _parse_decimal_bound(raw: str, *, token: str) -> Decimal | None:
    text = raw.strip()
    if not text:
        return None
    if not _DECIMAL_RE.match(text):
        raise RuleSyntaxError(f"Invalid decimal bound {text!r} in {token!r}")
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise RuleSyntaxError(f"Invalid decimal bound {text!r} in {token!r}") from exc


def parse_rule_classes(text: str) -> RuleSet:
    """Parse the whitespace-separated `yiv-*` rule classes.

    Tokens without the `yiv-` prefix are presentation classes and are ignored.
    """

    rules: list[Rule] = []
    for token in text.split():
        if not token.startswith(RULE_CLASS_PREFIX):
            continue
        if token == "yiv-required":
            rules.append(Required())
            continue
        # Bounds are optional for numbers; length always needs them.
        if token == "yiv-integer":
            rules.append(IntegerRule())
            continue
        if token == "yiv-decimal":
            rules.append(DecimalRule())
            continue
        m = _RANGE_CLASS_RE.match(token)
        if m is None:
            raise RuleSyntaxError(f"Unrecognized rule class: {token!r}")
        kind, lo, hi = m.groups()
        if kind == "length":
            min_len = _parse_int_bound(lo, token=token)
            max_len = _parse_int_bound(hi, token=token)
            if (min_len is not None and min_len < 0) or (max_len is not None and max_len < 1):
                raise RuleSyntaxError(f"Invalid length bounds in {token!r}")
            rules.append(LengthRule(min=min_len, max=max_len))
        elif kind == "integer":
            rules.append(
                IntegerRule(
                    min=_parse_int_bound(lo, token=token),
                    max=_parse_int_bound(hi, token=token),
                )
            )
        else:
            rules.append(
                DecimalRule(
                    min=_parse_decimal_bound(lo, token=token),
                    max=_parse_decimal_bound(hi, token=token),
                )
            )
    return RuleSet.from_rules(rules)


def _fmt_bound(value: int | Decimal | None) -> str:
    if value is None:
        return ""
    return str(value)


def _sub(template: str, *, lo: int | Decimal | None, hi: int | Decimal | None) -> str:
    # Unknown placeholders are left alone.
    return template.replace("{min}", _fmt_bound(lo)).replace("{max}", _fmt_bound(hi))


def _range_message(
    messages: Mapping[str, str],
    *,
    kind: str,
    lo: int | Decimal | None,
    hi: int | Decimal | None,
    failed: str,
) -> str:
    custom = messages.get(kind)
    if custom:
        template = custom
    elif failed == "format":
        template = DEFAULT_MESSAGES[kind]
    elif lo is not None and hi is not None:
        template = DEFAULT_MESSAGES[f"{kind}_out_of_range"]
    elif failed == "min":
        template = DEFAULT_MESSAGES[f"{kind}_too_small"]
    else:
        template = DEFAULT_MESSAGES[f"{kind}_too_large"]
    return _sub(template, lo=lo, hi=hi)


def _length_message(
    messages: Mapping[str, str],
    rule: LengthRule,
    *,
    too_short: bool,
) -> str:
    custom = messages.get("min_length" if too_short else "max_length")
    if custom:
        template = custom
    elif rule.min is not None and rule.max is not None:
        template = DEFAULT_MESSAGES["length_out_of_range"]
    elif too_short:
        template = DEFAULT_MESSAGES["length_too_short"]
    else:
        template = DEFAULT_MESSAGES["length_too_long"]
    return _sub(template, lo=rule.min, hi=rule.max)


def check_rules(
    value: str,
    rules: RuleSet,
    messages: Mapping[str, str] | None = None,
    *,
    choice: bool = False,
) -> RuleResult:
    """Evaluate class rules against one field value.

    Order is required -> length -> integer -> decimal and the first failure wins.
    An empty value on an optional field passes but stops further checking
    (``keep_going`` is False), so regex checks are skipped for it.
    """

    msgs: Mapping[str, str] = messages or {}
    text = value.strip()

    if not text:
        if rules.required:
            msg = msgs.get("required") or DEFAULT_MESSAGES[
                "required_menu" if choice else "required_string"
            ]
            return RuleResult(error=msg, keep_going=False)
        return RuleResult(keep_going=False)

    if rules.length is not None:
        rule = rules.length
        if rule.min is not None and len(text) < rule.min:
            return RuleResult(error=_length_message(msgs, rule, too_short=True), keep_going=False)
        if rule.max is not None and len(text) > rule.max:
            return RuleResult(error=_length_message(msgs, rule, too_short=False), keep_going=False)

    if rules.integer is not None:
        irule = rules.integer
        if not _INTEGER_RE.match(text):
            msg = _range_message(msgs, kind="integer", lo=irule.min, hi=irule.max, failed="format")
            return RuleResult(error=msg, keep_going=False)
        number = int(text)
        if irule.min is not None and number < irule.min:
            msg = _range_message(msgs, kind="integer", lo=irule.min, hi=irule.max, failed="min")
            return RuleResult(error=msg, keep_going=False)
        if irule.max is not None and number > irule.max:
            msg = _range_message(msgs, kind="integer", lo=irule.min, hi=irule.max, failed="max")
            return RuleResult(error=msg, keep_going=False)

    if rules.decimal is not None:
        drule = rules.decimal
        if not _DECIMAL_RE.match(text):
            msg = _range_message(msgs, kind="decimal", lo=drule.min, hi=drule.max, failed="format")
            return RuleResult(error=msg, keep_going=False)
        amount = Decimal(text)
        if drule.min is not None and amount < drule.min:
            msg = _range_message(msgs, kind="decimal", lo=drule.min, hi=drule.max, failed="min")
            return RuleResult(error=msg, keep_going=False)
        if drule.max is not None and amount > drule.max:
            msg = _range_message(msgs, kind="decimal", lo=drule.min, hi=drule.max, failed="max")
            return RuleResult(error=msg, keep_going=False)

    return RuleResult()
