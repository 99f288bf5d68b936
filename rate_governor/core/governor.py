"""Command and middleware gates.

Each gate returns a tri-state outcome for the host:
- None: proceed, no opinion
- "": suppress silently
- non-empty str: suppress and show the text to the user
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from rate_governor.bot.templates import cooldown_hint_text, quota_hint_text
from rate_governor.config.policy import GovernorPolicy, normalize_command_name
from rate_governor.core.rate_checker import BlockReason, RateChecker, RateVerdict, build_scope_key
from rate_governor.core.resolver import ComputedValue, ParameterResolver
from rate_governor.core.rule_matcher import RuleMatcher, Trigger
from rate_governor.models.rules import LimitScope, TriggerContext

LOGGER = logging.getLogger(__name__)

MIDDLEWARE_ACTION = "middleware"


@dataclass(frozen=True)
class CommandInvocation:
    user_id: Optional[str]
    channel_id: Optional[str]
    command_name: str
    # explicit values skip policy resolution
    min_interval: Optional[float] = None
    max_usage: Optional[int] = None
    scope: Optional[LimitScope] = None


@dataclass(frozen=True)
class MessageInvocation:
    user_id: Optional[str]
    channel_id: Optional[str]
    content: Optional[str]
    is_command: bool = False


@dataclass(frozen=True)
class ResolvedLimits:
    scope: LimitScope
    min_interval: float
    max_usage: int


def keyword_rule_action(index: int) -> str:
    return f"middleware-rule:{index}"


class RateGovernor:
    def __init__(
        self,
        policy: GovernorPolicy,
        command_checker: RateChecker | None = None,
        middleware_checker: RateChecker | None = None,
        resolver: ParameterResolver | None = None,
    ) -> None:
        self.policy = policy
        self.matcher = RuleMatcher(policy.rules.entries, policy.rules.default_action)
        # separate ledgers: a command and a middleware trigger never share a bucket
        self.command_checker = command_checker or RateChecker()
        self.middleware_checker = middleware_checker or RateChecker()
        self.resolver = resolver or ParameterResolver()

    def resolve_command_limits(self, invocation: CommandInvocation) -> ResolvedLimits:
        trigger = Trigger(user_id=invocation.user_id, channel_id=invocation.channel_id)
        defaults = self.policy.limits
        cfg = self.policy.commands.get(normalize_command_name(invocation.command_name))

        def _pick(explicit: Any, spec: Optional[ComputedValue[Any]], fallback: Any) -> Any:
            if explicit is not None:
                return explicit
            if spec is not None:
                return self.resolver.resolve(spec, trigger)
            return fallback

        return ResolvedLimits(
            scope=_pick(invocation.scope, cfg.scope if cfg else None, defaults.scope),
            min_interval=_pick(invocation.min_interval, cfg.min_interval if cfg else None, defaults.min_interval),
            max_usage=_pick(invocation.max_usage, cfg.max_usage if cfg else None, defaults.max_usage),
        )

    def _hint(self, verdict: RateVerdict) -> str:
        if not self.policy.limits.hint:
            return ""
        if verdict.reason == BlockReason.COOLDOWN:
            return cooldown_hint_text(verdict.remaining_seconds or 1, self.policy.ui.language)
        return quota_hint_text(self.policy.ui.language)

    def _run_check(
        self,
        checker: RateChecker,
        scope: LimitScope,
        action: str,
        min_interval: float,
        max_usage: int,
        trigger: Trigger,
    ) -> Optional[RateVerdict]:
        scope_key = build_scope_key(scope, trigger.user_id, trigger.channel_id)
        if scope_key is None:
            LOGGER.debug("rate check skipped, no id for scope=%s action=%s", scope.value, action)
            return None
        verdict = checker.check(scope_key, action, min_interval, max_usage)
        if verdict.allowed:
            return None
        LOGGER.info(
            "rate limited scope_key=%s action=%s reason=%s remaining_s=%s",
            scope_key,
            action,
            verdict.reason.value if verdict.reason else None,
            verdict.remaining_seconds,
        )
        return verdict

    def command_gate(self, invocation: CommandInvocation) -> Optional[str]:
        try:
            return self._command_gate(invocation)
        except Exception:  # gates never raise to the host
            LOGGER.exception("command gate failed, allowing command=%s", invocation.command_name)
            return None

    def _command_gate(self, invocation: CommandInvocation) -> Optional[str]:
        trigger = Trigger(user_id=invocation.user_id, channel_id=invocation.channel_id)
        if not self.matcher.decide(trigger, TriggerContext.COMMAND):
            return None

        action = normalize_command_name(invocation.command_name)
        if not action:
            return None
        limits = self.resolve_command_limits(invocation)
        verdict = self._run_check(
            self.command_checker,
            limits.scope,
            action,
            limits.min_interval,
            limits.max_usage,
            trigger,
        )
        if verdict is None:
            return None
        return self._hint(verdict)

    def middleware_gate(self, message: MessageInvocation) -> Optional[str]:
        try:
            return self._middleware_gate(message)
        except Exception:  # gates never raise to the host
            LOGGER.exception("middleware gate failed, allowing message")
            return None

    def _middleware_gate(self, message: MessageInvocation) -> Optional[str]:
        cfg = self.policy.middleware
        if not cfg.enabled or message.is_command or not message.content:
            return None

        trigger = Trigger(user_id=message.user_id, channel_id=message.channel_id, content=message.content)
        if not self.matcher.decide(trigger, TriggerContext.MIDDLEWARE):
            return None

        verdict = self._run_check(
            self.middleware_checker,
            cfg.scope,
            MIDDLEWARE_ACTION,
            cfg.min_interval,
            cfg.max_usage,
            trigger,
        )
        if verdict is not None:
            return self._hint(verdict)

        for index, rule in cfg.keyword_limits:
            if not rule.matches(message.content):
                continue
            verdict = self._run_check(
                self.middleware_checker,
                rule.scope or cfg.scope,
                keyword_rule_action(index),
                rule.min_interval,
                rule.max_usage,
                trigger,
            )
            if verdict is not None:
                return self._hint(verdict)
        return None
