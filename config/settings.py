# config/settings.py
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEV_SECRET = "dev-only-secret-change-me"


class Settings(BaseSettings):
    """
    Project settings, read from environment variables or a .env file.
    The database location is never hardcoded beyond a local development file.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # Database (MONGODB_URI is still honoured for old deploy scripts)
    DATABASE_URL: str = Field(
        default="sqlite:///./javelin.db",
        validation_alias=AliasChoices("DATABASE_URL", "MONGODB_URI"),
    )

    APP_ENV: str = Field(default="development", validation_alias=AliasChoices("APP_ENV", "NODE_ENV"))
    HOST: str = "0.0.0.0"
    PORT: int = 3002

    # JWT
    SECRET_KEY: str = Field(default=_DEV_SECRET, validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    CORS_ORIGIN: str = "*"
    LOG_LEVEL: str = "INFO"

    TEMP_PASSWORD_LENGTH: int = 12

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGIN.split(",") if o.strip()]

    @model_validator(mode="after")
    def _check_secret(self):
        if self.is_production and self.SECRET_KEY == _DEV_SECRET:
            raise ValueError("SECRET_KEY must be set in production")
        return self


settings = Settings()


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # real delivery is opt-in
    EMAIL_ENABLED: bool = False

    # smtp | console
    EMAIL_BACKEND: str = "console"

    EMAIL_HOST: str = ""
    EMAIL_PORT: int = 587
    EMAIL_USERNAME: str = ""
    EMAIL_PASSWORD: str = ""
    EMAIL_FROM: str = ""
    EMAIL_FROM_NAME: str = "Javelin Security"

    EMAIL_USE_TLS: bool = True
    EMAIL_USE_SSL: bool = False


email_settings = EmailSettings()
