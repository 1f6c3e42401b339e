from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    """
    Application configuration.

    - Secrets are NEVER stored in code.
    - All sensitive values are injected via environment variables (.env).
    - Validation happens at startup (fail fast).
    """

    # --------------------------------------------------
    # Shopify webhooks
    # --------------------------------------------------
    SHOPIFY_API_SECRET: str = ""
    # Unsigned deliveries are accepted unless this is on
    WEBHOOK_REQUIRE_SIGNATURE: bool = False

    # --------------------------------------------------
    # Database
    # --------------------------------------------------
    DATABASE_URL: str = "sqlite:///./app.db"

    # --------------------------------------------------
    # Internal Cache (seconds)
    # --------------------------------------------------
    DASHBOARD_TTL_SECONDS: int = 15

    # --------------------------------------------------
    # Notifications (email via SMTP, chat via webhook)
    # --------------------------------------------------
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM: str = "alerts@order-risk-guard.app"
    SMTP_START_TLS: bool = True

    NOTIFY_TIMEOUT_SECONDS: float = 10.0

    # --------------------------------------------------
    # Misc
    # --------------------------------------------------
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    class Config:
        env_file = ".env"
        extra = "ignore"   # Ignore unrelated env vars (Docker / CI friendly)

    def model_post_init(self, __context) -> None:
        """
        Fail fast ONLY when strict signature checking is enabled.
        """
        if self.WEBHOOK_REQUIRE_SIGNATURE and not self.SHOPIFY_API_SECRET:
            raise ValueError("WEBHOOK_REQUIRE_SIGNATURE=true requires SHOPIFY_API_SECRET in .env")


settings = Settings()
