from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.0.1"

    # CORS, mirrored on every response including errors
    CORS_ALLOW_ORIGIN: str = "*"
    CORS_ALLOW_HEADERS: list[str] = [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
    ]
    CORS_ALLOW_METHODS: list[str] = ["GET", "POST", "OPTIONS"]

    # Security settings
    MAX_REQUEST_SIZE: int = 64 * 1024  # 64KB, login bodies are tiny

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.ENVIRONMENT.upper() == "PROD":
            if not self.CORS_ALLOW_ORIGIN:
                raise ValueError("CORS_ALLOW_ORIGIN must be set in production")
