from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ServiceStatus(str, Enum):
    success = "success"
    error = "error"
    info = "info"
    warning = "warning"
    access_denied = "access_denied"
    not_found = "not_found"
    timeout = "timeout"


class Severity(str, Enum):
    """Семантика ответа для пользователя"""
    success = "success"
    failure = "failure"
    neutral = "neutral"


# Цвета embed в Discord
COLOR_GREEN = 0x00FF00
COLOR_BLUE = 0x0099FF
COLOR_ORANGE = 0xFFA500
COLOR_RED = 0xFF0000

# Discord отклоняет embed с описанием длиннее 4096 символов
MAX_EMBED_DESCRIPTION = 4096

_SEVERITY = {
    ServiceStatus.success: Severity.success,
    ServiceStatus.info: Severity.neutral,
    ServiceStatus.warning: Severity.neutral,
}

_COLOR = {
    ServiceStatus.success: COLOR_GREEN,
    ServiceStatus.info: COLOR_BLUE,
    ServiceStatus.warning: COLOR_ORANGE,
}


@dataclass
class ServiceResponse:
    """Унифицированный формат ответа между сервисом и чат-интерфейсом"""
    status: ServiceStatus = ServiceStatus.success   # success, error, access_denied и т.д.
    message: str = ""             # Текст ответа пользователю
    error: str = None             # Сообщение об ошибке
    data: Any = field(default_factory=dict)  # Любые дополнительные данные

    @property
    def severity(self) -> Severity:
        return _SEVERITY.get(self.status, Severity.failure)

    @property
    def color(self) -> int:
        return _COLOR.get(self.status, COLOR_RED)

    def to_embed(self) -> dict:
        """Embed для Discord: описание + цвет"""
        description = self.message
        if len(description) > MAX_EMBED_DESCRIPTION:
            description = description[:MAX_EMBED_DESCRIPTION - 1] + "…"
        return {"description": description, "color": self.color}

    def to_dict(self) -> dict:
        """Конвертируем в словарь"""
        return {
            "status": self.status,
            "message": self.message,
            "error": self.error,
            "data": self.data
        }
