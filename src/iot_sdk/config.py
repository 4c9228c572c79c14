from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "IOT_"}

    # Platform
    base_url: str = ""

    # Credentials - either a static token or an app id/secret pair
    token: str = ""
    app_id: str = ""
    app_secret: str = ""
    token_header: str = "token"

    # HTTP transport
    connect_timeout_seconds: float = 10.0
    read_timeout_seconds: float = 30.0
    write_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"


settings = Settings()
