from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.models.domain.shopify_domain import DEFAULT_API_VERSION, ApiConfig, RetryPolicy

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Shopify app credentials
    SHOPIFY_API_KEY: str = ""
    SHOPIFY_API_SECRET: str = ""
    SHOPIFY_SCOPES: str = "read_customers,read_products"
    SHOPIFY_APP_URL: str = "localhost:3000"
    SHOPIFY_API_VERSION: str | None = None

    # Store the proxy talks to
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_SHOP: str = ""

    # =================================================================
    # UPSTREAM RETRY SETTINGS
    # =================================================================
    SHOPIFY_MAX_RETRIES: int = 3
    SHOPIFY_RETRY_BASE_DELAY_MS: int = 1000
    SHOPIFY_RETRY_MAX_DELAY_MS: int = 10000
    SHOPIFY_REQUEST_TIMEOUT: float = 30.0

    # Personalization defaults
    DEFAULT_PROFILE_IMAGE_URL: str = "/assets/default-avatar.png"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def scopes(self) -> list[str]:
        return [scope.strip() for scope in self.SHOPIFY_SCOPES.split(",") if scope.strip()]

    def is_production(self) -> bool:
        return self.environment == "production"

    def allowed_origins(self) -> list[str]:
        """CORS origins derived from the app URL."""
        url = self.SHOPIFY_APP_URL.strip().rstrip("/")
        if not url:
            return []
        if url.startswith(("http://", "https://")):
            return [url]
        return [f"https://{url}", f"http://{url}"]

    def api_config(self) -> ApiConfig:
        """
        Build the immutable upstream configuration.

        Raises:
            ConfigurationError: If required credentials are missing
        """
        return ApiConfig(
            api_key=self.SHOPIFY_API_KEY,
            api_secret=self.SHOPIFY_API_SECRET,
            scopes=tuple(self.scopes()),
            host=self.SHOPIFY_APP_URL,
            api_version=self.SHOPIFY_API_VERSION or DEFAULT_API_VERSION,
            access_token=self.SHOPIFY_ACCESS_TOKEN,
            shop=self.SHOPIFY_SHOP,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.SHOPIFY_MAX_RETRIES,
            base_delay_ms=self.SHOPIFY_RETRY_BASE_DELAY_MS,
            max_delay_ms=self.SHOPIFY_RETRY_MAX_DELAY_MS,
        )


settings = Settings()
