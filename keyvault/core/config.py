from cryptography.fernet import Fernet
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "kv_user"
    postgres_password: str = "changeme"
    postgres_db: str = "keyvault"

    # Full SQLAlchemy URL; overrides the postgres_* parts when set
    database_url: str = ""

    @property
    def postgres_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def postgres_url_sync(self) -> str:
        """For Alembic migrations (sync driver)."""
        if self.database_url:
            return self.database_url.replace("+asyncpg", "+psycopg2").replace("+aiosqlite", "")
        return (
            f"postgresql+psycopg2://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Auth
    jwt_secret_key: str = "change-this-to-a-random-string"
    jwt_access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 30
    jwt_algorithm: str = "HS256"

    # Secret storage: "fernet" (authenticated encryption) or "base64" (legacy, no confidentiality)
    fernet_key: str = ""
    secret_codec: str = "fernet"

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Rate limits
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    register_rate_limit: str = "5/minute"
    reveal_rate_limit: str = "5/minute"

    # Dashboard windows
    recently_used_days: int = 7
    expiring_soon_days: int = 30

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if settings.jwt_secret_key in ("change-this-to-a-random-string", ""):
        errors.append("JWT_SECRET_KEY must be set to a secure random value")

    if len(settings.jwt_secret_key) < 32:
        errors.append("JWT_SECRET_KEY must be at least 32 characters")

    if settings.secret_codec not in ("fernet", "base64"):
        errors.append("SECRET_CODEC must be 'fernet' or 'base64'")

    if settings.secret_codec == "fernet" and not settings.fernet_key:
        errors.append(
            'FERNET_KEY must be set (generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())")'
        )
    elif settings.secret_codec == "fernet":
        try:
            Fernet(settings.fernet_key)
        except ValueError:
            errors.append("FERNET_KEY is malformed: must be 32 url-safe base64-encoded bytes")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")
        if settings.secret_codec == "base64":
            errors.append("SECRET_CODEC=base64 stores secrets without encryption and is not allowed in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
