from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(default="development", validation_alias="APP_ENV")

    allow_public_register: bool = Field(default=False, validation_alias="ALLOW_PUBLIC_REGISTER")
    password_min_length: int = Field(default=8, validation_alias="PASSWORD_MIN_LENGTH")
    # scrypt cost exponent: N = 2**rounds
    password_scrypt_rounds: int = Field(default=14, validation_alias="PASSWORD_SCRYPT_ROUNDS")

    database_url: str = Field(
        default="sqlite+pysqlite:///./quizmaster.db",
        validation_alias="DATABASE_URL",
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias="REDIS_URL",
    )

    jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    jwt_access_token_minutes: int = Field(default=60, validation_alias="JWT_ACCESS_TOKEN_MINUTES")
    jwt_issuer: str = Field(default="quizmaster", validation_alias="JWT_ISSUER")

    auth_cookie_name: str = Field(default="quiz_token", validation_alias="AUTH_COOKIE_NAME")
    trust_proxy_headers: bool = Field(default=False, validation_alias="TRUST_PROXY_HEADERS")

    cors_allow_origins: str = Field(default="http://localhost:3000", validation_alias="CORS_ALLOW_ORIGINS")
    cors_allow_methods: str = Field(default="*", validation_alias="CORS_ALLOW_METHODS")
    cors_allow_headers: str = Field(default="*", validation_alias="CORS_ALLOW_HEADERS")

    # Working state outlives the time limit by this much so an expired session can still be submitted.
    quiz_session_grace_seconds: int = Field(default=300, validation_alias="QUIZ_SESSION_GRACE_SECONDS")

    seed_demo_data: bool = Field(default=True, validation_alias="SEED_DEMO_DATA")


settings = Settings()


def _is_prod() -> bool:
    return (settings.app_env or "").strip().lower() in {"prod", "production"}


if _is_prod():
    if not settings.jwt_secret_key or settings.jwt_secret_key.strip().lower() in {"change-me", "your-secret", "secret"}:
        raise RuntimeError("JWT_SECRET_KEY must be set to a strong value in production")
    if bool(settings.allow_public_register):
        raise RuntimeError("ALLOW_PUBLIC_REGISTER must be false in production")
    if bool(settings.seed_demo_data):
        raise RuntimeError("SEED_DEMO_DATA must be false in production")

    if settings.database_url.strip().startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point to a server database in production")
    if settings.redis_url.strip() == "redis://localhost:6379/0":
        raise RuntimeError("REDIS_URL must be set in production")
