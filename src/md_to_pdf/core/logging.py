"""Logging helpers for md-to-pdf conversions."""

from __future__ import annotations

import json
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "LOG_DIR_ENV",
    "JsonLogFormatter",
    "configure_logger",
    "default_log_dir",
]

LOG_DIR_ENV = "MD_TO_PDF_LOG_DIR"


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    _RESERVED = frozenset(
        logging.LogRecord(
            "", logging.INFO, "", 0, "", None, None
        ).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def default_log_dir(env: Optional[Mapping[str, str]] = None) -> Path:
    env_map = os.environ if env is None else env
    override = env_map.get(LOG_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(tempfile.gettempdir()) / "md-to-pdf-logs"


def configure_logger(
    name: str = "md_to_pdf",
    *,
    log_dir: Optional[Path] = None,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 2 * 1024 * 1024,
    backup_count: int = 2,
) -> tuple[logging.Logger, Path]:
    """Attach a JSON file handler and a stderr console handler to ``name``.

    The console always reports warnings (for example ignored front matter);
    ``verbose`` lowers it to DEBUG. Calling this repeatedly reuses the
    handlers installed by earlier calls.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    target_dir = log_dir if log_dir is not None else default_log_dir()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / f"{name.rsplit('.', 1)[-1]}.log"

    file_handler = _managed_handler(logger, "_md_to_pdf_file")
    if file_handler is None or getattr(
        file_handler, "baseFilename", None
    ) != os.path.abspath(log_path):
        if file_handler is not None:
            logger.removeHandler(file_handler)
            file_handler.close()
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonLogFormatter())
        file_handler._md_to_pdf_file = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    console = _managed_handler(logger, "_md_to_pdf_console")
    if console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        console._md_to_pdf_console = True  # type: ignore[attr-defined]
        logger.addHandler(console)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger, log_path


def _managed_handler(
    logger: logging.Logger, marker: str
) -> Optional[logging.Handler]:
    for handler in logger.handlers:
        if getattr(handler, marker, False):
            return handler
    return None


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.strip().upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, Mapping):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_coerce_value(item) for item in value]
    return repr(value)
