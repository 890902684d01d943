"""API configuration from environment variables."""

from pydantic_settings import BaseSettings

DEFAULT_CORS_ORIGINS = ",".join(
    [
        "https://oi-wiki.org",
        "http://oi-wiki.com",
        "https://oi-wiki.net",
        "https://oi-wiki.wiki",
        "https://oi-wiki.win",
        "https://oi-wiki.xyz",
        "https://oiwiki.moe",
        "https://oiwiki.net",
        "https://oiwiki.org",
        "https://oiwiki.wiki",
        "https://oiwiki.win",
        "https://oiwiki.com",
        "https://oi.wiki",
    ]
)


class Settings(BaseSettings):
    """API settings loaded from environment."""

    cors_origins: str = DEFAULT_CORS_ORIGINS
    jwt_secret: str | None = None
    administrator_secret: str | None = None
    github_client_id: str = ""
    github_client_secret: str = ""
    debug: bool = False
    log_level: str = "INFO"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    model_config = {"env_prefix": "API_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
