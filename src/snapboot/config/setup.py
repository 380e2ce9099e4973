import json
import os
import logging
from datetime import datetime, timezone
from logging import Logger
from typing import Any, Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}


def parse_level(level: str) -> int:
    """
    Convert a level name (``debug``, ``info``...) to a logging level.

    :raises ValueError: If the name is not a known level.
    """
    try:
        return LEVEL_NAMES[level.strip().lower()]
    except (KeyError, AttributeError):
        raise ValueError(f"unknown log level: {level!r}") from None


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def __init__(self, *, service: str, env: str) -> None:
        super().__init__()
        self._service = service
        self._env = env

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
            "env": self._env,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def setup_logging(
        name: Optional[str] = None,
        level: int = logging.INFO,
        json_format: bool = False,
        file_path: Optional[str] = None,
        env: str = "development"
) -> Logger:
    """
    Set up and configure a logger.

    :param name: Name for the logger. If None, returns root logger.
    :param level: Logging level.
    :param json_format: Emit one JSON object per record instead of plain text.
    :param file_path: Optional file that receives a copy of every record.
    :param env: Environment name included in JSON records.
    :return: Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    if json_format:
        formatter: logging.Formatter = JsonFormatter(service=name or "root", env=env)
    else:
        formatter = logging.Formatter(DEFAULT_FORMAT)

    if not logger.handlers:
        handler = logging.StreamHandler()
        logger.addHandler(handler)

    if file_path and not any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(file_path)
            for h in logger.handlers
    ):
        logger.addHandler(logging.FileHandler(file_path, encoding="utf-8"))

    for handler in logger.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    return logger
