"""Application settings and configuration.

This module defines all configuration options for the chainpress service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="chainpress", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Database configuration
    database_url: str = Field(default="sqlite:///./chainpress.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Nonce storage; the in-process store is used when no Redis URL is set
    redis_url: str | None = Field(default=None, alias="REDIS_URL")

    # Wallet sign-in
    service_domain: str = Field(default="localhost", alias="SERVICE_DOMAIN")
    sign_in_preamble: str = Field(default="Sign in with Ethereum", alias="SIGN_IN_PREAMBLE")
    nonce_ttl_seconds: int = Field(default=300, alias="NONCE_TTL_SECONDS")
    nonce_rate_limit_seconds: int = Field(default=10, alias="NONCE_RATE_LIMIT_SECONDS")
    session_ttl_seconds: int = Field(default=2 * 60 * 60, alias="SESSION_TTL_SECONDS")
    dashboard_path: str = Field(default="/dashboard", alias="DASHBOARD_PATH")

    # Identity / content store call bounds
    store_timeout_seconds: float = Field(default=3.0, alias="STORE_TIMEOUT_SECONDS")
    store_retry_backoff_seconds: float = Field(default=0.2, alias="STORE_RETRY_BACKOFF_SECONDS")

    # IPFS pinning integration
    ipfs_provider: str = Field(default="pinata", alias="IPFS_PROVIDER")
    ipfs_api_key: str | None = Field(default=None, alias="IPFS_API_KEY")
    ipfs_secret: str | None = Field(default=None, alias="IPFS_SECRET")
    ipfs_http_timeout_seconds: float = Field(default=30.0, alias="IPFS_HTTP_TIMEOUT_SECONDS")

    # CORS configuration for the wallet front-end
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url


settings = Settings()
