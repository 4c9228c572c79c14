from prometheus_client import Counter, Histogram

# HTTP
HTTP_REQUEST_DURATION = Histogram(
    "iot_sdk_http_request_duration_seconds",
    "Duration of platform API requests in seconds",
    ["method", "endpoint"],
)
HTTP_REQUESTS_TOTAL = Counter(
    "iot_sdk_http_requests_total",
    "Total number of platform API requests",
    ["method", "endpoint", "outcome"],
)

# Credentials
TOKEN_EXCHANGES_TOTAL = Counter(
    "iot_sdk_token_exchanges_total",
    "Total number of app-credential token exchanges",
    ["outcome"],
)
