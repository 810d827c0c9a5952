# session_guard/config/settings.py
import os
from urllib.parse import quote_plus
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # 🔵 Banco principal (PostgreSQL)
    db_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "session_guard"
    db_user: str = "postgres"
    db_password: str = ""

    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    api_prefix: str = os.getenv("API_PREFIX", "/api")

    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_access_minutes: int = int(os.getenv("JWT_ACCESS_MINUTES", "15"))
    jwt_issuer: str = os.getenv("JWT_ISSUER", "session-guard-api")
    jwt_audience: str = os.getenv("JWT_AUDIENCE", "session-guard-client")

    # 🟢 Refresh tokens opacos (famílias / rotação)
    refresh_token_ttl_days: int = 7
    max_families_per_user: int = 10

    rotation_rate_limit: int = 5
    rotation_rate_window_seconds: int = 60
    rate_limit_cleanup_probability: float = 0.1

    # "memory" só vale para uma instância; com várias, use "redis"
    rate_limit_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "session-guard"

    ip_hash_secret: str = os.getenv("IP_HASH_SECRET", "dev-ip-secret-change-me")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("db_host", "db_name", "db_user", "db_password", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip().strip('"').strip("'")
        return v

    @field_validator("rate_limit_backend")
    @classmethod
    def check_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "redis"):
            raise ValueError("rate_limit_backend deve ser 'memory' ou 'redis'.")
        return v

    @property
    def database_url(self) -> str:
        if self.db_url:
            return self.db_url

        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        host = self.db_host
        port = self.db_port
        db = self.db_name

        return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{db}"

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.refresh_token_ttl_days * 24 * 60 * 60


settings = Settings()
