"""Policy loader for the rate governor."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from rate_governor.core.resolver import ComputedCase, ComputedValue
from rate_governor.models.rules import FilterRule, KeywordLimitRule, LimitScope, RuleAction

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_NAMESPACE_SEPARATORS = re.compile(r"[./:]+")


@dataclass(frozen=True)
class LimitDefaults:
    scope: LimitScope
    min_interval: float
    max_usage: int
    hint: bool


@dataclass(frozen=True)
class MiddlewareConfig:
    enabled: bool
    scope: LimitScope
    min_interval: float
    max_usage: int
    # (position in policy file, rule); positions stay stable when bad entries are dropped
    keyword_limits: list[tuple[int, KeywordLimitRule]] = field(default_factory=list)


@dataclass(frozen=True)
class RuleSetConfig:
    default_action: RuleAction
    entries: list[FilterRule]


@dataclass(frozen=True)
class CommandLimitConfig:
    scope: Optional[ComputedValue[LimitScope]] = None
    min_interval: Optional[ComputedValue[float]] = None
    max_usage: Optional[ComputedValue[int]] = None


@dataclass(frozen=True)
class UiConfig:
    language: str


@dataclass(frozen=True)
class InstanceConfig:
    id: str


@dataclass(frozen=True)
class GovernorPolicy:
    version: str
    instance: InstanceConfig
    ui: UiConfig
    limits: LimitDefaults
    middleware: MiddlewareConfig
    rules: RuleSetConfig
    commands: dict[str, CommandLimitConfig]


class PolicyLoadError(RuntimeError):
    """Raised when policy cannot be loaded."""


def normalize_command_name(name: str) -> str:
    """Collapse namespace separators so aliases share one ledger key."""
    raw = (name or "").strip().lstrip("/")
    return _NAMESPACE_SEPARATORS.sub(":", raw).strip(":")


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise PolicyLoadError(f"{key} must be an object")
    return value


def _parse_scope(value: Any, key: str) -> LimitScope:
    try:
        return LimitScope(str(value).strip().lower())
    except ValueError as exc:
        raise PolicyLoadError(f"invalid {key}: {value}") from exc


def _parse_action(value: Any, key: str) -> RuleAction:
    try:
        return RuleAction(str(value).strip().lower())
    except ValueError as exc:
        raise PolicyLoadError(f"invalid {key}: {value}") from exc


def _parse_interval(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise PolicyLoadError(f"{key} must be a number")
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise PolicyLoadError(f"{key} must be a number") from exc
    if not math.isfinite(seconds):
        raise PolicyLoadError(f"{key} must be a finite number")
    return seconds


def _parse_usage(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise PolicyLoadError(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise PolicyLoadError(f"{key} must be an integer") from exc


def _parse_ids(value: Any, key: str) -> frozenset[str]:
    if value is None:
        return frozenset()
    if not isinstance(value, list):
        raise PolicyLoadError(f"{key} must be a list")
    return frozenset(str(x).strip() for x in value if str(x).strip())


def _parse_computed(value: Any, key: str, parse: Callable[[Any, str], T]) -> ComputedValue[T]:
    """A plain value, or {default: v, cases: [{users: [...], channels: [...], value: v}]}."""
    if not isinstance(value, dict):
        return ComputedValue.fixed(parse(value, key))
    if "default" not in value:
        raise PolicyLoadError(f"missing required policy key: {key}.default")
    cases_raw = value.get("cases") or []
    if not isinstance(cases_raw, list):
        raise PolicyLoadError(f"{key}.cases must be a list")

    cases: list[ComputedCase[T]] = []
    for i, case in enumerate(cases_raw):
        case_key = f"{key}.cases[{i}]"
        if not isinstance(case, dict) or "value" not in case:
            raise PolicyLoadError(f"{case_key} must be an object with a value")
        cases.append(
            ComputedCase(
                value=parse(case["value"], f"{case_key}.value"),
                users=_parse_ids(case.get("users"), f"{case_key}.users"),
                channels=_parse_ids(case.get("channels"), f"{case_key}.channels"),
            )
        )
    return ComputedValue(default=parse(value["default"], f"{key}.default"), cases=tuple(cases))


def _load_models(entries: Any, key: str, model: type[M]) -> list[tuple[int, M]]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise PolicyLoadError(f"{key} must be a list")

    loaded: list[tuple[int, M]] = []
    for i, entry in enumerate(entries):
        try:
            loaded.append((i, model.model_validate(entry)))
        except ValidationError as exc:
            reason = "; ".join(err["msg"] for err in exc.errors())
            LOGGER.warning("dropped invalid rule key=%s index=%s reason=%s", key, i, reason)
    return loaded


def _load_commands(raw: Any) -> dict[str, CommandLimitConfig]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise PolicyLoadError("commands must be an object")

    out: dict[str, CommandLimitConfig] = {}
    for name, cfg in raw.items():
        cmd = normalize_command_name(str(name))
        if not cmd:
            raise PolicyLoadError(f"invalid command name: {name!r}")
        cfg = cfg or {}
        if not isinstance(cfg, dict):
            raise PolicyLoadError(f"commands.{name} must be an object")
        prefix = f"commands.{name}"
        out[cmd] = CommandLimitConfig(
            scope=_parse_computed(cfg["scope"], f"{prefix}.scope", _parse_scope) if "scope" in cfg else None,
            min_interval=(
                _parse_computed(cfg["min_interval"], f"{prefix}.min_interval", _parse_interval)
                if "min_interval" in cfg
                else None
            ),
            max_usage=(
                _parse_computed(cfg["max_usage"], f"{prefix}.max_usage", _parse_usage)
                if "max_usage" in cfg
                else None
            ),
        )
    return out


def load_policy(path: Path) -> GovernorPolicy:
    if not path.exists():
        raise PolicyLoadError(f"policy file not found: {path}")

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise PolicyLoadError("policy root must be an object")
    if "version" not in raw:
        raise PolicyLoadError("missing required policy key: version")

    limits_raw = _section(raw, "limits")
    middleware_raw = _section(raw, "middleware")
    rules_raw = _section(raw, "rules")
    ui_raw = _section(raw, "ui")
    instance_raw = _section(raw, "instance")

    ui_language = str(ui_raw.get("language", "en")).strip().lower()
    if ui_language not in {"ja", "en"}:
        raise PolicyLoadError(f"invalid ui.language: {ui_language}")

    instance_id = str(instance_raw.get("id", "default")).strip()
    if not re.fullmatch(r"[A-Za-z0-9_-]{1,40}", instance_id):
        raise PolicyLoadError(f"invalid instance.id: {instance_id}")

    filter_rules = _load_models(rules_raw.get("entries"), "rules.entries", FilterRule)
    keyword_limits = _load_models(middleware_raw.get("keyword_limits"), "middleware.keyword_limits", KeywordLimitRule)

    policy = GovernorPolicy(
        version=str(raw["version"]),
        instance=InstanceConfig(id=instance_id),
        ui=UiConfig(language=ui_language),
        limits=LimitDefaults(
            scope=_parse_scope(limits_raw.get("scope", "user"), "limits.scope"),
            min_interval=_parse_interval(limits_raw.get("min_interval", 0), "limits.min_interval"),
            max_usage=_parse_usage(limits_raw.get("max_usage", 0), "limits.max_usage"),
            hint=bool(limits_raw.get("hint", True)),
        ),
        middleware=MiddlewareConfig(
            enabled=bool(middleware_raw.get("enabled", False)),
            scope=_parse_scope(middleware_raw.get("scope", "user"), "middleware.scope"),
            min_interval=_parse_interval(middleware_raw.get("min_interval", 0), "middleware.min_interval"),
            max_usage=_parse_usage(middleware_raw.get("max_usage", 0), "middleware.max_usage"),
            keyword_limits=keyword_limits,
        ),
        rules=RuleSetConfig(
            default_action=_parse_action(rules_raw.get("default_action", "limit"), "rules.default_action"),
            entries=[rule for _, rule in filter_rules],
        ),
        commands=_load_commands(raw.get("commands")),
    )
    LOGGER.info(
        "policy loaded version=%s rules=%s keyword_limits=%s commands=%s",
        policy.version,
        len(policy.rules.entries),
        len(policy.middleware.keyword_limits),
        len(policy.commands),
    )
    return policy
