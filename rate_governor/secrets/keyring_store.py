"""OS credential store adapter (Keychain, Credential Manager, Secret Service).

The bot token is read from the OS credential store, never from policy.yaml.
"""

from __future__ import annotations

import keyring
from keyring.errors import KeyringError


class SecretStoreError(RuntimeError):
    """Raised when a secret cannot be loaded."""


class KeyringSecretStore:
    def __init__(self, service_name: str) -> None:
        self._service_name = service_name

    @property
    def service_name(self) -> str:
        return self._service_name

    def get_secret(self, account: str) -> str:
        try:
            value = keyring.get_password(self._service_name, account)
        except KeyringError as exc:
            raise SecretStoreError(f"failed to read credential store secret '{account}'") from exc
        if not value:
            raise SecretStoreError(f"missing credential store secret '{account}'")
        return value


def require_secret(store: KeyringSecretStore, account: str) -> str:
    value = store.get_secret(account)
    if not value:
        raise SecretStoreError(f"secret is empty: {account}")
    return value
