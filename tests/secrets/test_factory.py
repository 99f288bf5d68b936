import keyring
import pytest
from keyring.errors import KeyringError

from rate_governor.secrets.factory import create_secret_store
from rate_governor.secrets.keyring_store import KeyringSecretStore, SecretStoreError


def test_factory_returns_keyring_store() -> None:
    store = create_secret_store("rategovernor.test")
    assert isinstance(store, KeyringSecretStore)
    assert store.service_name == "rategovernor.test"


def test_factory_rejects_empty_service_name() -> None:
    with pytest.raises(SecretStoreError):
        create_secret_store("  ")


def test_keyring_store_reads_password(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(keyring, "get_password", lambda service, account: f"{service}/{account}")
    assert KeyringSecretStore("svc").get_secret("telegram_bot_token") == "svc/telegram_bot_token"


def test_keyring_store_missing_password(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(keyring, "get_password", lambda service, account: None)
    with pytest.raises(SecretStoreError):
        KeyringSecretStore("svc").get_secret("telegram_bot_token")


def test_keyring_store_backend_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(service: str, account: str) -> str:
        raise KeyringError("locked")

    monkeypatch.setattr(keyring, "get_password", _fail)
    with pytest.raises(SecretStoreError):
        KeyringSecretStore("svc").get_secret("telegram_bot_token")
