"""Per-invocation resolution of computed limit parameters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from rate_governor.core.rule_matcher import Trigger

T = TypeVar("T")


@dataclass(frozen=True)
class ComputedCase(Generic[T]):
    value: T
    users: frozenset[str] = frozenset()
    channels: frozenset[str] = frozenset()

    def matches(self, trigger: Trigger) -> bool:
        if trigger.user_id is not None and trigger.user_id in self.users:
            return True
        return trigger.channel_id is not None and trigger.channel_id in self.channels


@dataclass(frozen=True)
class ComputedValue(Generic[T]):
    default: T
    cases: tuple[ComputedCase[T], ...] = ()

    @classmethod
    def fixed(cls, value: T) -> "ComputedValue[T]":
        return cls(default=value)


class ParameterResolver:
    """Turns a ComputedValue into a concrete value for one trigger.

    The first case listing the trigger's user or channel id wins.
    """

    def resolve(self, spec: ComputedValue[Any], trigger: Trigger) -> Any:
        for case in spec.cases:
            if case.matches(trigger):
                return case.value
        return spec.default
