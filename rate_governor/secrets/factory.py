"""Secret store factory."""

from __future__ import annotations

from rate_governor.secrets.keyring_store import KeyringSecretStore, SecretStoreError


def create_secret_store(service_name: str = "rategovernor") -> KeyringSecretStore:
    name = (service_name or "").strip()
    if not name:
        raise SecretStoreError("secret service name must not be empty")
    return KeyringSecretStore(service_name=name)
