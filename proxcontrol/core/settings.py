from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from proxcontrol.core.http import DEFAULT_TIMEOUT
from proxcontrol.core.logger import LoggerConfig
from proxcontrol.domain.whitelist import parse_allowed_vms


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Proxmox API
    PVE_HOST: str  # например https://pve.local:8006
    PVE_TOKEN: str  # id токена, user@pam!bot
    PVE_SECRET: str  # секрет токена
    PVE_NODE: str
    # NoDecode: строка "100,101" разбирается валидатором, а не как JSON
    ALLOWED_VMS: Annotated[frozenset[int], NoDecode] = frozenset()
    PVE_VERIFY_SSL: bool = False  # самоподписанный сертификат Proxmox
    PVE_TIMEOUT: float = Field(DEFAULT_TIMEOUT, gt=0)

    # Discord
    DISCORD_APPLICATION_ID: str
    DISCORD_PUBLIC_KEY: str  # hex, из Developer Portal
    DISCORD_BOT_TOKEN: str | None = None  # нужен только для регистрации команд
    DISCORD_GUILD_ID: str | None = None
    DISCORD_SIGNATURE_MAX_AGE: int = Field(300, gt=0)  # секунды, защита от повтора запроса

    # Application
    APP_NAME: str = "proxcontrol"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "local"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "proxcontrol.log"
    LOG_DIR: str = "logs"
    CONSOLE_OUTPUT: bool = True
    USE_JSON: bool = False

    @field_validator("ALLOWED_VMS", mode="before")
    @classmethod
    def _parse_allowed_vms(cls, value):
        if isinstance(value, str):
            return parse_allowed_vms(value)
        return value

    def logger_config(self) -> LoggerConfig:
        return LoggerConfig(
            log_dir=self.LOG_DIR,
            log_file=self.LOG_FILE,
            log_level=self.LOG_LEVEL,
            console_output=self.CONSOLE_OUTPUT,
            use_json=self.USE_JSON,
        )


@lru_cache
def get_settings() -> Settings:
    """Настройки читаются один раз за процесс"""
    return Settings()
