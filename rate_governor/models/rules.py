"""Rule contracts for the rate governor.

Rules are loaded once from policy.yaml and never mutated afterwards.
Keyword and regex rules only make sense for free-text (middleware) triggers.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import cached_property
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LimitScope(str, Enum):
    USER = "user"
    CHANNEL = "channel"
    GLOBAL = "global"


class RuleAction(str, Enum):
    LIMIT = "limit"
    IGNORE = "ignore"


class TriggerContext(str, Enum):
    COMMAND = "command"
    MIDDLEWARE = "middleware"


class AppliesTo(str, Enum):
    COMMAND = "command"
    MIDDLEWARE = "middleware"
    BOTH = "both"


class MatchType(str, Enum):
    USER = "user"
    CHANNEL = "channel"
    KEYWORD = "keyword"
    REGEX = "regex"


def _ensure_regex(pattern: str) -> None:
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"invalid regex {pattern!r}: {exc}") from exc


class FilterRule(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    applies_to: AppliesTo = AppliesTo.BOTH
    match_type: MatchType = MatchType.USER
    content: str = Field(min_length=1)
    action: RuleAction = RuleAction.IGNORE

    @field_validator("content", mode="before")
    @classmethod
    def coerce_content(cls, value: object) -> object:
        # YAML turns bare numeric ids into ints.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @model_validator(mode="after")
    def validate_pattern(self) -> "FilterRule":
        if self.match_type == MatchType.REGEX:
            _ensure_regex(self.content)
        return self

    @cached_property
    def compiled(self) -> Optional[re.Pattern[str]]:
        if self.match_type != MatchType.REGEX:
            return None
        return re.compile(self.content)

    def applies_in(self, context: TriggerContext) -> bool:
        return self.applies_to == AppliesTo.BOTH or self.applies_to.value == context.value

    def matches_text(self, text: str) -> bool:
        if self.compiled is not None:
            return self.compiled.search(text) is not None
        return self.content in text


class KeywordLimitRule(BaseModel):
    """Per-pattern middleware limit with its own interval and quota."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pattern: str = Field(min_length=1)
    regex: bool = False
    scope: Optional[LimitScope] = None
    min_interval: float = Field(default=0, ge=0, allow_inf_nan=False)
    max_usage: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_pattern(self) -> "KeywordLimitRule":
        if self.regex:
            _ensure_regex(self.pattern)
        return self

    @cached_property
    def compiled(self) -> Optional[re.Pattern[str]]:
        return re.compile(self.pattern) if self.regex else None

    def matches(self, text: str) -> bool:
        if self.compiled is not None:
            return self.compiled.search(text) is not None
        return self.pattern in text
