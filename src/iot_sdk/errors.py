"""Exception hierarchy for the IoT SDK.

Every failure in the request core is raised as one of these types so callers
can tell programming errors (bad arguments, unsupported methods) apart from
server rejections, transport failures and non-conforming response bodies.
"""


class IoTSdkError(Exception):
    """Base class for all SDK errors."""


class InvalidArgumentError(IoTSdkError, ValueError):
    pass


class UnsupportedMethodError(IoTSdkError, ValueError):
    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported HTTP method: {method}")
        self.method = method


class RequestError(IoTSdkError):
    """A single request did not produce a structured response."""


class HttpStatusError(RequestError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"Request failed: {status} {message}".rstrip())
        self.status = status
        self.message = message


class TransportError(RequestError):
    """The request never got an HTTP response (connect, read or write failure)."""


class MalformedResponseError(RequestError):
    pass


class UnexpectedShapeError(RequestError):
    pass


class CredentialExchangeError(IoTSdkError):
    """Trading the app id/secret pair for a token failed.

    ``error_message`` carries the server's ``errorMessage`` when the platform
    rejected the credentials. When the exchange failed at the request level the
    underlying ``RequestError`` is chained as ``__cause__``.
    """

    def __init__(self, detail: str, error_message: str | None = None) -> None:
        super().__init__(detail)
        self.error_message = error_message

    @property
    def retryable(self) -> bool:
        """True when the exchange never reached the credential check."""
        cause = self.__cause__
        if isinstance(cause, TransportError):
            return True
        return isinstance(cause, HttpStatusError) and cause.status >= 500


class RefreshFailedError(CredentialExchangeError):
    """A manual refresh failed; the previously cached token is still in use."""


class NotConfiguredForRefreshError(IoTSdkError):
    def __init__(self) -> None:
        super().__init__("Token refresh requires app credentials; this client uses a static token")
