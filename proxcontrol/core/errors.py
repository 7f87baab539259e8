from proxcontrol.core.response import ServiceStatus


class ProxControlError(Exception):
    """Базовая ошибка: текст уходит пользователю как есть"""
    status = ServiceStatus.error


class NotAuthorizedError(ProxControlError):
    """VM не входит в белый список"""
    status = ServiceStatus.access_denied

    def __init__(self, vmid: int):
        self.vmid = vmid
        super().__init__(f"VM {vmid} is not authorized")


class NotFoundError(ProxControlError):
    """VM с таким именем не найдена среди разрешённых"""
    status = ServiceStatus.not_found

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"VM '{name}' not found")


class ParseError(ProxControlError):
    pass


class RemoteAPIError(ProxControlError):
    """HTTP-статус >= 400 или ошибка транспорта"""

    MAX_BODY = 1000

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        self.status_code = status_code
        self.body = body
        if status_code is not None:
            if len(body) > self.MAX_BODY:
                body = body[:self.MAX_BODY] + "…"
            message = f"{message}: {status_code} - {body}"
        super().__init__(message)


class DecodeError(ProxControlError):
    """Ответ API не соответствует ожидаемой структуре"""


class RequestTimeoutError(ProxControlError):
    status = ServiceStatus.timeout


class UnknownCommandError(ParseError):
    """Подкоманда, которой нет среди list/status/start/stop"""
