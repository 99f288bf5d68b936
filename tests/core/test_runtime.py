from pathlib import Path

import pytest

from rate_governor.config.secrets import RuntimeSecrets
from rate_governor.core.governor import CommandInvocation
from rate_governor.core.runtime import AppRuntime


def test_runtime_wires_policy_and_governor(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "rate_governor.core.runtime.load_runtime_secrets",
        lambda service_name: RuntimeSecrets(telegram_bot_token="tg_token"),
    )
    runtime = AppRuntime(policy_path=Path("config/policy.yaml"))

    assert runtime.telegram_bot_token == "tg_token"
    assert runtime.get_runtime_status() == {
        "instance_id": "default",
        "policy_id": "1",
        "middleware_limit": "on",
    }
    assert runtime.governor.command_checker is not runtime.governor.middleware_checker

    invocation = CommandInvocation(user_id="7", channel_id="-1", command_name="ping")
    assert runtime.governor.command_gate(invocation) is None
    assert runtime.governor.command_gate(invocation)
