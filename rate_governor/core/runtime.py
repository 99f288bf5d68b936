"""Application runtime wiring."""

from __future__ import annotations

from pathlib import Path

from rate_governor.config.policy import GovernorPolicy, load_policy
from rate_governor.config.secrets import load_runtime_secrets
from rate_governor.core.governor import RateGovernor
from rate_governor.core.ledger import UsageLedger
from rate_governor.core.rate_checker import RateChecker


class AppRuntime:
    def __init__(
        self,
        policy_path: Path,
        secret_service_name: str = "rategovernor",
    ) -> None:
        self.policy: GovernorPolicy = load_policy(policy_path)
        self.instance_id = self.policy.instance.id
        self.secret_service_name = secret_service_name

        secrets = load_runtime_secrets(service_name=secret_service_name)
        self.telegram_bot_token = secrets.telegram_bot_token

        # ledgers live as long as the process; nothing is persisted
        self.governor = RateGovernor(
            policy=self.policy,
            command_checker=RateChecker(UsageLedger()),
            middleware_checker=RateChecker(UsageLedger()),
        )

    def get_runtime_status(self) -> dict[str, str]:
        return {
            "instance_id": self.instance_id,
            "policy_id": self.policy.version,
            "middleware_limit": "on" if self.policy.middleware.enabled else "off",
        }
