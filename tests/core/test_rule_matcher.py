from rate_governor.core.rule_matcher import RuleMatcher, Trigger
from rate_governor.models.rules import FilterRule, RuleAction, TriggerContext


def _rule(**kwargs: str) -> FilterRule:
    return FilterRule.model_validate(kwargs)


def test_empty_rules_use_default_action() -> None:
    trigger = Trigger(user_id="A", channel_id="C", content="hi")
    assert RuleMatcher([], RuleAction.LIMIT).decide(trigger, TriggerContext.COMMAND) is True
    assert RuleMatcher(None, RuleAction.IGNORE).decide(trigger, TriggerContext.MIDDLEWARE) is False


def test_first_matching_rule_wins() -> None:
    matcher = RuleMatcher(
        [
            _rule(match_type="user", content="A", action="limit"),
            _rule(match_type="keyword", content="foo", action="ignore"),
        ],
        RuleAction.IGNORE,
    )
    assert matcher.decide(Trigger(user_id="A", channel_id="C"), TriggerContext.COMMAND) is True
    assert matcher.decide(Trigger(user_id="B", content="say foo"), TriggerContext.MIDDLEWARE) is False
    assert matcher.decide(Trigger(user_id="A", content="say foo"), TriggerContext.MIDDLEWARE) is True


def test_keyword_rules_ignored_for_commands() -> None:
    matcher = RuleMatcher([_rule(match_type="keyword", content="foo", action="limit")], RuleAction.IGNORE)
    trigger = Trigger(user_id="B", content="foo")
    assert matcher.decide(trigger, TriggerContext.COMMAND) is False
    assert matcher.decide(trigger, TriggerContext.MIDDLEWARE) is True


def test_applies_to_filters_context() -> None:
    matcher = RuleMatcher(
        [_rule(applies_to="middleware", match_type="channel", content="C", action="ignore")],
        RuleAction.LIMIT,
    )
    trigger = Trigger(user_id="A", channel_id="C", content="x")
    assert matcher.decide(trigger, TriggerContext.COMMAND) is True
    assert matcher.decide(trigger, TriggerContext.MIDDLEWARE) is False


def test_regex_rule_matches_with_search() -> None:
    matcher = RuleMatcher([_rule(match_type="regex", content=r"^!\w+", action="ignore")], RuleAction.LIMIT)
    assert matcher.decide(Trigger(user_id="A", content="!roll 2d6"), TriggerContext.MIDDLEWARE) is False
    assert matcher.decide(Trigger(user_id="A", content="roll !now"), TriggerContext.MIDDLEWARE) is True


def test_identity_rule_needs_identity() -> None:
    matcher = RuleMatcher([_rule(match_type="channel", content="C", action="ignore")], RuleAction.LIMIT)
    assert matcher.decide(Trigger(user_id="A"), TriggerContext.COMMAND) is True
