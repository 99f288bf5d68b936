"""In-memory usage ledger (volatile, process lifetime)."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass
class UsageRecord:
    cooldown_expires_at: Optional[int] = None
    daily_uses_left: Optional[int] = None
    daily_reset_at: Optional[int] = None

    def copy(self) -> "UsageRecord":
        return replace(self)


class UsageLedger:
    """scope key -> action name -> UsageRecord.

    Records are created on first access and never removed.
    """

    def __init__(self) -> None:
        self._records: dict[str, dict[str, UsageRecord]] = {}

    def record_for(self, scope_key: str, action: str) -> UsageRecord:
        by_action = self._records.get(scope_key)
        if by_action is None:
            by_action = {}
            self._records[scope_key] = by_action
        record = by_action.get(action)
        if record is None:
            record = UsageRecord()
            by_action[action] = record
        return record

    def get(self, scope_key: str, action: str) -> Optional[UsageRecord]:
        return self._records.get(scope_key, {}).get(action)

    def __contains__(self, scope_key: object) -> bool:
        return scope_key in self._records

    def __len__(self) -> int:
        return sum(len(by_action) for by_action in self._records.values())
