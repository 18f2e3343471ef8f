# client_broker/adapters/configuration/config.py

from typing import Optional
from logging import getLevelName
from pydantic import PostgresDsn, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"

    # Environment
    ENVIRONMENT: str = "development"  # "development", "production", "testing"

    # Flag de debug
    DEBUG: bool = False

    # Database (ledger de segredos)
    DB_DRIVER: str = "asyncpg"
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None

    # IdP admin API
    IDP_BASE_URL: str = "http://localhost:8080"
    IDP_TOKEN_REALM: str = "master"
    IDP_ADMIN_CLIENT_ID: str = "admin-cli"
    IDP_ADMIN_CLIENT_SECRET: Optional[str] = None
    IDP_ADMIN_USERNAME: Optional[str] = None
    IDP_ADMIN_PASSWORD: Optional[str] = None
    IDP_TOKEN_SAFETY_MARGIN_SECONDS: int = 60
    IDP_HTTP_TIMEOUT_SECONDS: float = 10.0

    # Identidade do chamador (JWT emitido pela plataforma)
    IDENTITY_SECRET_KEY: str
    IDENTITY_ALGORITHM: str = "HS256"
    IDENTITY_AUDIENCE: Optional[str] = None
    IDENTITY_ACTOR_CLAIM: str = "sub"

    # Quantidade de eventos exibidos por client no histórico de segredos
    SECRET_HISTORY_DISPLAY_LIMIT: int = 4

    @model_validator(mode="after")
    def assemble_db_url(self):
        if self.DATABASE_URL:
            return self

        if not self.POSTGRES_HOST:
            raise ValueError("DATABASE_URL ou POSTGRES_HOST deve ser informado")

        self.DATABASE_URL = str(PostgresDsn.build(
            scheme=f"postgresql+{self.DB_DRIVER}",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            path=self.POSTGRES_DB,
        ))
        return self

    @field_validator("IDP_BASE_URL", mode="before")
    def strip_base_url(cls, v: str) -> str:
        """Remove a barra final para montar as URLs do IdP sem barras duplicadas"""
        return v.rstrip("/") if isinstance(v, str) else v

    @field_validator("LOG_LEVEL", mode="before")
    def validate_log_level(cls, v: str) -> str:
        """Garante que o valor é um nível válido do logging"""
        lvl = v.upper()
        if not isinstance(getLevelName(lvl), int):
            raise ValueError(f"LOG_LEVEL inválido: {v!r}")
        return lvl

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
