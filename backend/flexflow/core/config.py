from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "FlexFlow Entitlements"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "flexflow.app"
    APP_DATABASE_DSN: str = "sqlite:////tmp/flexflow.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Identity tokens issued by the authentication service
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    # Shared key for internal callers (payment callbacks, support tooling).
    # Empty disables operator access.
    OPERATOR_API_KEY: str = ""

    # Length of the trial window granted to new accounts
    TRIAL_PERIOD_DAYS: int = 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False


settings = Settings()
