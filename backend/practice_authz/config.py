from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (embedded SQLite by default; Postgres via postgresql+asyncpg://)
    database_url: str = "sqlite+aiosqlite:///./practice_authz.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # App
    secret_key: str = "dev-secret-key-change-in-production"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"  # "text" | "json"

    # Dev mode: seeds a dev admin and exposes its credentials
    is_dev: bool = False

    # Auth
    access_token_expire_minutes: int = 30
    default_signup_role: str = "pending"
    bcrypt_rounds: int = 12

    # Security
    allowed_origins: str = "http://localhost:3000,http://localhost"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _validate_production(self):
        if self.environment == "production":
            if self.secret_key == "dev-secret-key-change-in-production":
                raise ValueError(
                    "Production requires a non-default SECRET_KEY"
                )
            if self.is_dev:
                raise ValueError(
                    "IS_DEV must not be enabled in production"
                )
        if self.default_signup_role not in ("user", "pending"):
            raise ValueError("DEFAULT_SIGNUP_ROLE must be 'user' or 'pending'")
        return self


settings = Settings()
