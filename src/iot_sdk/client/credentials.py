import threading
from dataclasses import dataclass

from iot_sdk.errors import InvalidArgumentError


@dataclass(frozen=True)
class StaticToken:
    value: str


@dataclass(frozen=True)
class AppCredential:
    app_id: str
    app_secret: str

    def __repr__(self) -> str:
        return f"AppCredential(app_id={self.app_id!r}, app_secret='***')"


Credential = StaticToken | AppCredential


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


class CredentialStore:
    """Holds the client's credential and, for app credentials, the exchanged token.

    The cached token is the only state shared between threads using one client,
    so reads and replacements go through ``_lock``.
    """

    def __init__(self, credential: Credential) -> None:
        if isinstance(credential, StaticToken):
            if _is_blank(credential.value):
                raise InvalidArgumentError("Invalid token")
        elif isinstance(credential, AppCredential):
            if _is_blank(credential.app_id):
                raise InvalidArgumentError("Invalid appId")
            if _is_blank(credential.app_secret):
                raise InvalidArgumentError("Invalid appSecret")
        else:
            raise InvalidArgumentError(f"Unknown credential type: {type(credential).__name__}")

        self.credential = credential
        self._cached_token: str | None = None
        self._lock = threading.Lock()

    @property
    def requires_exchange(self) -> bool:
        return isinstance(self.credential, AppCredential)

    def current_token(self) -> str | None:
        if isinstance(self.credential, StaticToken):
            return self.credential.value
        with self._lock:
            return self._cached_token

    def replace_token(self, token: str) -> None:
        if not self.requires_exchange:
            raise InvalidArgumentError("Static tokens cannot be replaced")
        with self._lock:
            self._cached_token = token
