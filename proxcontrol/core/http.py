from dataclasses import dataclass, field
from time import monotonic
from typing import Any
import json
import logging

import requests
import urllib3

from proxcontrol.core.errors import RemoteAPIError, RequestTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass
class RequestFormat:
    """Описание HTTP-запроса"""
    method: str
    endpoint: str
    params: dict | None = None
    data: dict | None = None      # для POST/PUT уходит как x-www-form-urlencoded
    json: Any = None
    headers: dict = field(default_factory=dict)


@dataclass
class ResponseFormat:
    """Результат HTTP-запроса"""
    status_code: int
    text: str = ""
    data: Any = None              # JSON, если тело удалось разобрать

    @property
    def success(self) -> bool:
        return self.status_code < 400


class HttpClient:
    """Синхронная обертка над requests.Session с общим пулом соединений"""

    def __init__(self, url: str, headers: dict | None = None, verify_ssl: bool = True,
                 timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None,
                 logger: logging.Logger | None = None):
        self.url = url.rstrip("/")
        self.verify_ssl = verify_ssl
        self.timeout = timeout
        parent = logger or logging.getLogger(__name__)
        self.logger = logging.getLogger(f"{parent.name}.{self.__class__.__name__}")
        self.session = session or requests.Session()
        if headers:
            self.session.headers.update(headers)
        if not verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
            self.logger.warning(f"Проверка TLS-сертификата для {self.url} отключена")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.session.close()

    def _timed_out(self, request: RequestFormat, url: str, cause: Exception | None = None):
        self.logger.error(f"Таймаут {self.timeout}с: {request.method} {url}")
        raise RequestTimeoutError(f"request timed out after {self.timeout}s") from cause

    def request(self, request: RequestFormat) -> ResponseFormat:
        """Запрос с общим дедлайном self.timeout на соединение и чтение всего тела

        requests ограничивает только каждую операцию с сокетом, поэтому тело
        читается потоком и время проверяется между чанками.
        """
        url = f"{self.url}{request.endpoint}"
        self.logger.debug(f"{request.method} {url}")
        deadline = monotonic() + self.timeout
        try:
            resp = self.session.request(
                request.method,
                url,
                params=request.params,
                data=request.data,
                json=request.json,
                headers=request.headers or None,
                verify=self.verify_ssl,
                timeout=self.timeout,
                stream=True,
            )
            try:
                chunks = []
                for chunk in resp.iter_content(chunk_size=8192):
                    if monotonic() > deadline:
                        self._timed_out(request, url)
                    chunks.append(chunk)
                body = b"".join(chunks)
            finally:
                resp.close()
        except requests.Timeout as e:
            self._timed_out(request, url, e)
        except requests.RequestException as e:
            if monotonic() > deadline:
                self._timed_out(request, url, e)
            self.logger.error(f"Ошибка HTTP-запроса {request.method} {url}: {e}")
            raise RemoteAPIError(f"HTTP request failed: {e}") from e

        text = body.decode(resp.encoding or "utf-8", errors="replace")
        try:
            data = json.loads(text) if text else None
        except ValueError:
            data = None
        return ResponseFormat(status_code=resp.status_code, text=text, data=data)
