from rate_governor.core.ledger import UsageLedger


def test_record_for_creates_lazily_and_reuses() -> None:
    ledger = UsageLedger()
    assert ledger.get("user:1", "ping") is None

    record = ledger.record_for("user:1", "ping")
    record.daily_uses_left = 2
    assert ledger.record_for("user:1", "ping") is record
    assert len(ledger) == 1


def test_actions_are_separate_buckets() -> None:
    ledger = UsageLedger()
    ledger.record_for("user:1", "ping").cooldown_expires_at = 10
    assert ledger.record_for("user:1", "middleware").cooldown_expires_at is None
    assert "user:1" in ledger
    assert len(ledger) == 2
