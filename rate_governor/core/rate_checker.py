"""Cooldown and daily-quota checks over a usage ledger."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Callable, Optional

from rate_governor.core.ledger import UsageLedger, UsageRecord
from rate_governor.models.rules import LimitScope

LOGGER = logging.getLogger(__name__)

GLOBAL_SCOPE_KEY = "global"


class BlockReason(str, Enum):
    COOLDOWN = "cooldown"
    QUOTA_EXHAUSTED = "quota_exhausted"


@dataclass(frozen=True)
class RateVerdict:
    allowed: bool
    reason: Optional[BlockReason] = None
    remaining_seconds: Optional[int] = None
    uses_left: Optional[int] = None


ALLOWED = RateVerdict(allowed=True)


def build_scope_key(scope: LimitScope, user_id: Optional[str], channel_id: Optional[str]) -> Optional[str]:
    """Return the ledger bucket for a scope, or None when the id is missing."""
    if scope == LimitScope.GLOBAL:
        return GLOBAL_SCOPE_KEY
    ident = user_id if scope == LimitScope.USER else channel_id
    ident = (ident or "").strip()
    if not ident:
        return None
    return f"{scope.value}:{ident}"


def next_local_midnight_ms(now_ms: int, tz: Optional[tzinfo] = None) -> int:
    current = datetime.fromtimestamp(now_ms / 1000, tz=tz)
    # naive when tz is None; timestamp() then resolves through the OS timezone
    midnight = datetime.combine(current.date() + timedelta(days=1), datetime.min.time(), tzinfo=current.tzinfo)
    return int(midnight.timestamp() * 1000)


class RateChecker:
    def __init__(
        self,
        ledger: UsageLedger | None = None,
        clock: Callable[[], float] = time.time,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self._ledger = ledger if ledger is not None else UsageLedger()
        self._clock = clock
        self._tz = tz
        self._lock = threading.RLock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def check(self, scope_key: str, action: str, min_interval: float, max_usage: int) -> RateVerdict:
        """Test cooldown then quota; on success consume one use.

        The whole read-test-update sequence runs under one lock with no
        suspension point, so two invocations for the same key cannot both
        observe the pre-consumption state.
        """
        cooldown_on = min_interval > 0
        quota_on = max_usage > 0
        if not cooldown_on and not quota_on:
            return ALLOWED

        with self._lock:
            now = self._now_ms()
            record = self._ledger.record_for(scope_key, action)

            if cooldown_on and record.cooldown_expires_at is not None and now < record.cooldown_expires_at:
                remaining = math.ceil((record.cooldown_expires_at - now) / 1000)
                return RateVerdict(
                    allowed=False,
                    reason=BlockReason.COOLDOWN,
                    remaining_seconds=remaining,
                    uses_left=record.daily_uses_left if quota_on else None,
                )

            if quota_on:
                if record.daily_reset_at is None or now > record.daily_reset_at:
                    self._refresh_window(record, max_usage, now)
                if (record.daily_uses_left or 0) <= 0:
                    return RateVerdict(
                        allowed=False,
                        reason=BlockReason.QUOTA_EXHAUSTED,
                        remaining_seconds=math.ceil((record.daily_reset_at - now) / 1000),
                        uses_left=0,
                    )

            if cooldown_on:
                record.cooldown_expires_at = now + int(min_interval * 1000)
            if quota_on:
                record.daily_uses_left = (record.daily_uses_left or 0) - 1

            return RateVerdict(allowed=True, uses_left=record.daily_uses_left if quota_on else None)

    def _refresh_window(self, record: UsageRecord, max_usage: int, now: int) -> None:
        record.daily_uses_left = max_usage
        record.daily_reset_at = next_local_midnight_ms(now, self._tz)
        LOGGER.debug("quota window refreshed uses=%s reset_at=%s", max_usage, record.daily_reset_at)

    def snapshot(self, scope_key: str, action: str) -> Optional[UsageRecord]:
        with self._lock:
            record = self._ledger.get(scope_key, action)
            return record.copy() if record is not None else None
