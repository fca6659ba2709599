"""Application settings and configuration.

All configuration for the phone claim service lives here. Settings are loaded
from environment variables (or a `.env` file) with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="Phone Claim", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")

    # Database configuration
    database_url: str = Field(default="sqlite:///./phone_claim.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    auto_create_tables: bool = Field(default=False, alias="AUTO_CREATE_TABLES")

    # One-time passcodes (validity doubles as the reissue cooldown)
    otp_validity_seconds: int = Field(default=900, alias="OTP_VALIDITY_SECONDS")
    otp_length: int = Field(default=6, alias="OTP_LENGTH")

    # Outbound SMS gateway; unset URL selects the logging channel
    sms_gateway_url: str | None = Field(default=None, alias="SMS_GATEWAY_URL")
    sms_api_key: str | None = Field(default=None, alias="SMS_API_KEY")
    sms_sender_id: str = Field(default="PhoneClaim", alias="SMS_SENDER_ID")
    sms_message_template: str = Field(
        default="Your verification code is {code}",
        alias="SMS_MESSAGE_TEMPLATE",
    )
    sms_timeout_seconds: float = Field(default=10.0, alias="SMS_TIMEOUT_SECONDS")

    # Claim authorization
    claim_token_ttl_seconds: int = Field(default=300, alias="CLAIM_TOKEN_TTL_SECONDS")
    claim_signature_threshold: int = Field(default=2, ge=1, alias="CLAIM_SIGNATURE_THRESHOLD")
    operator_api_key: str | None = Field(default=None, alias="OPERATOR_API_KEY")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"], alias="CORS_ALLOW_METHODS")
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
