import json
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx
import structlog

from iot_sdk.errors import (
    HttpStatusError,
    InvalidArgumentError,
    MalformedResponseError,
    TransportError,
    UnexpectedShapeError,
    UnsupportedMethodError,
)
from iot_sdk.observability.metrics import HTTP_REQUEST_DURATION, HTTP_REQUESTS_TOTAL

JSON_CONTENT_TYPE = "application/json"


class HttpMethod(str, Enum):
    POST = "POST"
    GET = "GET"

    @classmethod
    def parse(cls, method: "str | HttpMethod") -> "HttpMethod":
        if isinstance(method, cls):
            return method
        if isinstance(method, str):
            try:
                return cls(method.upper())
            except ValueError:
                pass
        raise UnsupportedMethodError(method)


@dataclass(frozen=True)
class RequestSpec:
    endpoint: str
    payload: Mapping[str, Any] | None = None
    method: HttpMethod = HttpMethod.POST
    extra_headers: Mapping[str, str] = field(default_factory=dict)


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_params(payload: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten a payload into query parameters.

    None values are dropped rather than sent as empty strings; list values
    repeat the key once per non-None item.
    """
    params: list[tuple[str, str]] = []
    for key, value in (payload or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            params.extend((key, _query_value(item)) for item in value if item is not None)
        else:
            params.append((key, _query_value(value)))
    return params


class RequestExecutor:
    def __init__(
        self,
        http_client: httpx.Client,
        token_header: str = "token",
        logger: Any = None,
    ) -> None:
        self.http_client = http_client
        self.token_header = token_header
        self.logger = logger or structlog.get_logger()

    def build_headers(self, token: str | None, extra_headers: Mapping[str, str]) -> httpx.Headers:
        headers = httpx.Headers({"Content-Type": JSON_CONTENT_TYPE})
        if token:
            headers[self.token_header] = token
        for key, value in extra_headers.items():
            headers[key] = value
        return headers

    def build_request(self, base_url: str, spec: RequestSpec, token: str | None) -> httpx.Request:
        method = HttpMethod.parse(spec.method)
        url = base_url + spec.endpoint
        headers = self.build_headers(token, spec.extra_headers)

        if method is HttpMethod.POST:
            payload = dict(spec.payload) if spec.payload is not None else {}
            try:
                body = json.dumps(payload, ensure_ascii=False, allow_nan=False)
            except (TypeError, ValueError) as exc:
                raise InvalidArgumentError(f"Payload is not valid JSON: {exc}") from exc
            return self.http_client.build_request(
                "POST", url, headers=headers, content=body.encode("utf-8")
            )
        return self.http_client.build_request(
            "GET", url, headers=headers, params=build_query_params(spec.payload)
        )

    def execute(self, base_url: str, spec: RequestSpec, token: str | None) -> dict[str, Any]:
        request = self.build_request(base_url, spec, token)
        method = request.method
        endpoint = spec.endpoint

        self.logger.debug("http_request", method=method, url=str(request.url))
        start = time.perf_counter()
        try:
            response = self.http_client.send(request)
        except httpx.TransportError as exc:
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, outcome="transport_error").inc()
            self.logger.warning("http_transport_error", method=method, endpoint=endpoint, error=str(exc))
            raise TransportError(f"{method} {request.url} failed: {exc}") from exc
        duration = time.perf_counter() - start
        HTTP_REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

        if not response.is_success:
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, outcome="http_error").inc()
            self.logger.warning(
                "http_request_rejected",
                method=method,
                endpoint=endpoint,
                status_code=response.status_code,
            )
            raise HttpStatusError(response.status_code, response.reason_phrase)

        self.logger.debug(
            "http_response",
            method=method,
            endpoint=endpoint,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 1),
        )
        try:
            parsed = response.json()
        except ValueError as exc:
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, outcome="malformed").inc()
            raise MalformedResponseError(f"Response from {endpoint} is not valid JSON") from exc

        if not isinstance(parsed, dict):
            HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, outcome="unexpected_shape").inc()
            raise UnexpectedShapeError(
                f"Response from {endpoint} is a JSON {type(parsed).__name__}, expected an object"
            )

        HTTP_REQUESTS_TOTAL.labels(method=method, endpoint=endpoint, outcome="ok").inc()
        return parsed
