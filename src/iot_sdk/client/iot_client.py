from collections.abc import Mapping
from typing import Any

import httpx
import structlog

from iot_sdk.client.credentials import AppCredential, Credential, CredentialStore, StaticToken
from iot_sdk.client.executor import HttpMethod, RequestExecutor, RequestSpec
from iot_sdk.client.validator import error_message, is_successful
from iot_sdk.config import Settings, settings as default_settings
from iot_sdk.errors import (
    CredentialExchangeError,
    InvalidArgumentError,
    NotConfiguredForRefreshError,
    RefreshFailedError,
    RequestError,
)
from iot_sdk.observability.metrics import TOKEN_EXCHANGES_TOTAL

EXCHANGE_ENDPOINT = "/api/v1/oauth/auth"


def normalize_base_url(base_url: str | None) -> str:
    if not isinstance(base_url, str) or not base_url.strip():
        raise InvalidArgumentError("Invalid baseUrl")
    normalized = base_url.strip().rstrip("/")
    if not normalized:
        raise InvalidArgumentError("Invalid baseUrl")
    return normalized


def build_timeout(cfg: Settings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=cfg.connect_timeout_seconds,
        read=cfg.read_timeout_seconds,
        write=cfg.write_timeout_seconds,
        pool=cfg.connect_timeout_seconds,
    )


class IoTClient:
    """Authenticated entry point to the platform API.

    A client built from app credentials exchanges them for a token before the
    constructor returns; if the exchange fails the constructor raises and no
    client exists. Tokens are never refreshed implicitly: callers that see an
    expired-token response call ``refresh_token()`` themselves.
    """

    def __init__(
        self,
        base_url: str,
        credential: Credential,
        *,
        settings: Settings | None = None,
        http_client: httpx.Client | None = None,
        logger: Any = None,
    ) -> None:
        cfg = settings or default_settings
        self.base_url = normalize_base_url(base_url)
        self.credentials = CredentialStore(credential)
        self.logger = logger or structlog.get_logger()

        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=build_timeout(cfg))
        self.executor = RequestExecutor(self.http_client, cfg.token_header, self.logger)

        if self.credentials.requires_exchange:
            try:
                self._exchange(CredentialExchangeError)
            except CredentialExchangeError:
                self.close()
                raise

        self.logger.info(
            "iot_client_initialized",
            base_url=self.base_url,
            auth="app_credential" if self.credentials.requires_exchange else "static_token",
        )

    @classmethod
    def from_token(cls, base_url: str, token: str, **kwargs: Any) -> "IoTClient":
        return cls(base_url, StaticToken(token), **kwargs)

    @classmethod
    def from_credentials(cls, base_url: str, app_id: str, app_secret: str, **kwargs: Any) -> "IoTClient":
        return cls(base_url, AppCredential(app_id, app_secret), **kwargs)

    @classmethod
    def from_settings(cls, cfg: Settings | None = None, **kwargs: Any) -> "IoTClient":
        """Build a client from ``IOT_*`` settings; a static token wins over app credentials."""
        cfg = cfg or default_settings
        if cfg.token:
            return cls.from_token(cfg.base_url, cfg.token, settings=cfg, **kwargs)
        if cfg.app_id or cfg.app_secret:
            return cls.from_credentials(cfg.base_url, cfg.app_id, cfg.app_secret, settings=cfg, **kwargs)
        raise InvalidArgumentError("No credentials configured: set a token or an app id/secret pair")

    def current_token(self) -> str | None:
        return self.credentials.current_token()

    def make_request(
        self,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
        method: str | HttpMethod = HttpMethod.POST,
        headers: Mapping[str, str] | None = None,
    ) -> dict[str, Any]:
        spec = RequestSpec(
            endpoint=endpoint,
            payload=payload,
            method=HttpMethod.parse(method),
            extra_headers=dict(headers or {}),
        )
        return self.executor.execute(self.base_url, spec, self.current_token())

    def post(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return self.make_request(endpoint, payload, HttpMethod.POST)

    def get(self, endpoint: str, params: Mapping[str, Any] | None = None) -> dict[str, Any]:
        return self.make_request(endpoint, params, HttpMethod.GET)

    def check_response(self, response: Any) -> bool:
        return is_successful(response, self.logger)

    def refresh_token(self) -> None:
        if not self.credentials.requires_exchange:
            raise NotConfiguredForRefreshError()
        self._exchange(RefreshFailedError)
        self.logger.info("token_refreshed", base_url=self.base_url)

    def _exchange(self, error_cls: type[CredentialExchangeError]) -> str:
        credential = self.credentials.credential
        spec = RequestSpec(
            endpoint=EXCHANGE_ENDPOINT,
            payload={"appId": credential.app_id, "appSecret": credential.app_secret},
        )
        try:
            response = self.executor.execute(self.base_url, spec, token=None)
        except RequestError as exc:
            TOKEN_EXCHANGES_TOTAL.labels(outcome="request_error").inc()
            self.logger.error("token_exchange_failed", error=str(exc))
            raise error_cls(f"Token exchange failed: {exc}") from exc

        token = response.get("data")
        if not is_successful(response, self.logger) or not isinstance(token, str) or not token:
            TOKEN_EXCHANGES_TOTAL.labels(outcome="rejected").inc()
            message = error_message(response)
            self.logger.error("token_exchange_rejected", error_message=message)
            raise error_cls(
                f"Token exchange failed: {message or 'response carried no token'}",
                error_message=message,
            )

        self.credentials.replace_token(token)
        TOKEN_EXCHANGES_TOTAL.labels(outcome="ok").inc()
        return token

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> "IoTClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
