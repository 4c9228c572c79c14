"""Tests for the credential variants and CredentialStore."""

import threading

import pytest

from iot_sdk.client.credentials import AppCredential, CredentialStore, StaticToken
from iot_sdk.errors import InvalidArgumentError


class TestCredentialStore:
    def test_static_token_is_current_token(self):
        store = CredentialStore(StaticToken("abc"))
        assert store.current_token() == "abc"
        assert store.requires_exchange is False

    def test_app_credential_starts_without_token(self):
        store = CredentialStore(AppCredential("app", "secret"))
        assert store.current_token() is None
        assert store.requires_exchange is True

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_blank_static_token_rejected(self, value):
        with pytest.raises(InvalidArgumentError):
            CredentialStore(StaticToken(value))

    @pytest.mark.parametrize(
        "app_id,app_secret",
        [("", "secret"), ("app", ""), (None, "secret"), (123, "secret"), ("app", b"secret")],
    )
    def test_incomplete_app_credential_rejected(self, app_id, app_secret):
        with pytest.raises(InvalidArgumentError):
            CredentialStore(AppCredential(app_id, app_secret))

    @pytest.mark.parametrize("value", [42, b"abc"])
    def test_non_string_static_token_rejected(self, value):
        with pytest.raises(InvalidArgumentError):
            CredentialStore(StaticToken(value))

    def test_unknown_credential_rejected(self):
        with pytest.raises(InvalidArgumentError):
            CredentialStore("not-a-credential")

    def test_replace_token(self):
        store = CredentialStore(AppCredential("app", "secret"))
        store.replace_token("tok-1")
        assert store.current_token() == "tok-1"
        store.replace_token("tok-2")
        assert store.current_token() == "tok-2"

    def test_static_token_cannot_be_replaced(self):
        store = CredentialStore(StaticToken("abc"))
        with pytest.raises(InvalidArgumentError):
            store.replace_token("other")
        assert store.current_token() == "abc"

    def test_app_credential_repr_hides_secret(self):
        assert "hunter2" not in repr(AppCredential("app", "hunter2"))

    def test_concurrent_reads_see_whole_tokens(self):
        store = CredentialStore(AppCredential("app", "secret"))
        written = {f"tok-{i}" for i in range(200)}
        seen: set = set()

        def writer():
            for token in sorted(written):
                store.replace_token(token)

        def reader():
            for _ in range(500):
                seen.add(store.current_token())

        threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert seen <= written | {None}
