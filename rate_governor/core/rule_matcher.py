"""Decides whether a trigger is subject to rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from rate_governor.models.rules import FilterRule, MatchType, RuleAction, TriggerContext


@dataclass(frozen=True)
class Trigger:
    user_id: Optional[str] = None
    channel_id: Optional[str] = None
    content: Optional[str] = None


class RuleMatcher:
    def __init__(self, rules: Iterable[FilterRule] | None = None, default_action: RuleAction = RuleAction.LIMIT) -> None:
        self._rules = tuple(rules or ())
        self._default_action = default_action

    def _matches(self, rule: FilterRule, trigger: Trigger, context: TriggerContext) -> bool:
        if rule.match_type == MatchType.USER:
            return trigger.user_id is not None and rule.content == trigger.user_id
        if rule.match_type == MatchType.CHANNEL:
            return trigger.channel_id is not None and rule.content == trigger.channel_id
        # keyword/regex: commands carry no free text to match against
        if context != TriggerContext.MIDDLEWARE or not trigger.content:
            return False
        return rule.matches_text(trigger.content)

    def find_rule(self, trigger: Trigger, context: TriggerContext) -> Optional[FilterRule]:
        for rule in self._rules:
            if rule.applies_in(context) and self._matches(rule, trigger, context):
                return rule
        return None

    def decide(self, trigger: Trigger, context: TriggerContext) -> bool:
        """True when the trigger should go through the rate check."""
        rule = self.find_rule(trigger, context)
        if rule is not None:
            return rule.action == RuleAction.LIMIT
        return self._default_action == RuleAction.LIMIT
