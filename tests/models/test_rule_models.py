import pytest
from pydantic import ValidationError

from rate_governor.models.rules import AppliesTo, FilterRule, KeywordLimitRule, TriggerContext


def test_filter_rule_defaults() -> None:
    rule = FilterRule.model_validate({"content": "42"})
    assert rule.applies_to == AppliesTo.BOTH
    assert rule.applies_in(TriggerContext.COMMAND)
    assert rule.applies_in(TriggerContext.MIDDLEWARE)


def test_filter_rule_coerces_numeric_content() -> None:
    assert FilterRule.model_validate({"content": 12345}).content == "12345"


def test_filter_rule_rejects_bad_regex() -> None:
    with pytest.raises(ValidationError):
        FilterRule.model_validate({"match_type": "regex", "content": "(", "action": "ignore"})


def test_filter_rule_is_immutable() -> None:
    rule = FilterRule.model_validate({"content": "42"})
    with pytest.raises(ValidationError):
        rule.content = "43"


def test_keyword_limit_rule_rejects_negative_values() -> None:
    with pytest.raises(ValidationError):
        KeywordLimitRule.model_validate({"pattern": "x", "min_interval": -1})


def test_keyword_limit_rule_substring_and_regex() -> None:
    assert KeywordLimitRule(pattern="a.b").matches("xa.by") is True
    assert KeywordLimitRule(pattern="a.b").matches("axb") is False
    assert KeywordLimitRule(pattern="a.b", regex=True).matches("axb") is True


@pytest.mark.parametrize("value", [float("inf"), float("nan")])
def test_keyword_limit_rule_rejects_non_finite_interval(value: float) -> None:
    with pytest.raises(ValidationError):
        KeywordLimitRule.model_validate({"pattern": "x", "min_interval": value})
