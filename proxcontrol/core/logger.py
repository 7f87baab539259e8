from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
import json
import logging


class JsonFormatter(logging.Formatter):
    """Одна запись лога = одна строка JSON"""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class LoggerConfig:
    """Настройка корневого логгера: консоль + файл с ротацией"""

    TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    def __init__(self, log_file: str = "app.log", log_dir: str = "logs", log_level: str = "INFO",
                 console_output: bool = True, use_json: bool = False,
                 max_bytes: int = 5 * 1024 * 1024, backup_count: int = 3):
        self.log_dir = Path(log_dir)
        self.log_file = log_file
        self.log_level = log_level.upper()
        self.console_output = console_output
        self.use_json = use_json
        self.max_bytes = max_bytes
        self.backup_count = backup_count

    def _formatter(self) -> logging.Formatter:
        if self.use_json:
            return JsonFormatter()
        return logging.Formatter(self.TEXT_FORMAT)

    def setup_logger(self) -> logging.Logger:
        root = logging.getLogger()
        root.setLevel(self.log_level)
        # повторный вызов не должен дублировать хендлеры
        for handler in list(root.handlers):
            if getattr(handler, "_proxcontrol", False):
                root.removeHandler(handler)
                handler.close()

        formatter = self._formatter()
        handlers: list[logging.Handler] = []
        if self.console_output:
            handlers.append(logging.StreamHandler())
        if self.log_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(RotatingFileHandler(
                self.log_dir / self.log_file,
                maxBytes=self.max_bytes,
                backupCount=self.backup_count,
                encoding="utf-8",
            ))
        for handler in handlers:
            handler.setFormatter(formatter)
            handler._proxcontrol = True
            root.addHandler(handler)

        logging.getLogger("urllib3").setLevel(logging.WARNING)
        return root

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)
