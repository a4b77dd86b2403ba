"""Logging utility for mailcodec"""

import json
import logging
import re
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from rich.logging import RichHandler

from .paths import LOGS_DIR

ROOT_LOGGER_NAME = "mailcodec"


def _prepare_log_dir(log_dir: Optional[Path]) -> Path:
    """Resolve the log directory, creating it if needed."""

    from .errors import FileSystemError

    target = Path(log_dir).expanduser() if log_dir else LOGS_DIR
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"Failed to create log directory: {target}") from e

    return target


## Custom JSON Formatter


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for log records."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in ("part_id", "context", "details"):
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, default=str)


## Log Masking


class SensitiveDataMasker:
    """Utility to mask credentials and addresses in log messages."""

    PATTERNS = {
        "password": re.compile(
            r'(password["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
        "token": re.compile(
            r'(token["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
        "bearer": re.compile(r"(bearer\s+)([A-Za-z0-9._~+/=-]+)", re.IGNORECASE),
        "authorization": re.compile(
            r'(authorization["\']?\s*[:=]\s*["\']?)([^"\'}\s]+)', re.IGNORECASE
        ),
        "email": re.compile(
            r"([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})", re.IGNORECASE
        ),
    }

    SENSITIVE_FIELDS = {
        "password",
        "passwd",
        "secret",
        "token",
        "access_token",
        "authorization",
        "auth",
        "credential",
    }

    REDACTED = "[REDACTED]"

    def mask_string(self, text: str) -> str:
        """Mask sensitive data in a string message."""

        if not text:
            return text

        masked = text

        for name, pattern in self.PATTERNS.items():
            if name == "email":
                masked = pattern.sub(lambda m: self._mask_email(m.group(0)), masked)
            else:
                masked = pattern.sub(lambda m: m.group(1) + self.REDACTED, masked)

        return masked

    def mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Mask sensitive data in a dictionary."""

        masked = {}

        for key, value in data.items():
            if str(key).lower() in self.SENSITIVE_FIELDS:
                masked[key] = self.REDACTED
            elif isinstance(value, dict):
                masked[key] = self.mask_dict(value)
            elif isinstance(value, str):
                masked[key] = self.mask_string(value)
            else:
                masked[key] = value

        return masked

    def _mask_email(self, address: str) -> str:
        """Mask an email address while preserving the first characters."""

        username, _, domain = address.partition("@")
        masked_username = username[0] + "***" if len(username) > 1 else "***"
        masked_domain = domain[0] + ("***" if len(domain) > 1 else "*")

        return f"{masked_username}@{masked_domain}"


class SensitiveDataFilter(logging.Filter):
    """Logging filter to mask sensitive data in log records."""

    def __init__(self):
        super().__init__()
        self.masker = SensitiveDataMasker()

    def filter(self, record) -> bool:
        """Filter log record to mask sensitive data."""

        if isinstance(record.msg, str):
            record.msg = self.masker.mask_string(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = self.masker.mask_dict(record.args)
            else:
                record.args = tuple(
                    self.masker.mask_string(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        for key, value in list(record.__dict__.items()):
            if key in ("msg", "args"):
                continue
            if key.lower() in self.masker.SENSITIVE_FIELDS:
                setattr(record, key, self.masker.REDACTED)
            elif isinstance(value, dict):
                setattr(record, key, self.masker.mask_dict(value))

        return True


## Main Log Manager


class LogManager:
    """Manages logging configuration and provides logger instances."""

    def __init__(
        self,
        log_level: str = "INFO",
        console_level: str = "WARNING",
        log_to_file: bool = False,
        log_dir: Optional[Path] = None,
        max_file_size: int = 5_242_880,
        backup_count: int = 5,
    ):
        self.log_level = _level(log_level)
        self.console_level = _level(console_level)
        self.log_to_file = log_to_file
        self.log_dir = log_dir
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self.root_logger.setLevel(logging.DEBUG)
        # Records stop at the mailcodec handlers instead of reaching the root logger
        self.root_logger.propagate = False
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Setup console and optional file handlers with sensitive data filtering."""

        from .errors import CodecError, FileSystemError

        sensitive_filter = SensitiveDataFilter()

        try:
            for handler in list(self.root_logger.handlers):
                self.root_logger.removeHandler(handler)
                handler.close()

            console_handler = RichHandler(
                show_time=True,
                show_path=False,
                markup=False,
                rich_tracebacks=True,
            )

            console_handler.setLevel(self.console_level)
            console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
            console_handler.addFilter(sensitive_filter)
            self.root_logger.addHandler(console_handler)

            if self.log_to_file:
                log_dir = _prepare_log_dir(self.log_dir)
                try:
                    file_handler = RotatingFileHandler(
                        log_dir / "mailcodec.log",
                        maxBytes=self.max_file_size,
                        backupCount=self.backup_count,
                        encoding="utf-8",
                    )

                except OSError as e:
                    raise FileSystemError(
                        f"Failed to create mailcodec.log handler: {str(e)}"
                    ) from e

                file_handler.setLevel(self.log_level)
                file_handler.setFormatter(JSONFormatter())
                file_handler.addFilter(sensitive_filter)
                self.root_logger.addHandler(file_handler)

        except CodecError:
            raise

        except Exception as e:
            raise FileSystemError(f"Failed to setup logging handlers: {str(e)}") from e

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Get a logger under the mailcodec namespace."""

        if name and not name.startswith(ROOT_LOGGER_NAME):
            name = f"{ROOT_LOGGER_NAME}.{name}"

        return logging.getLogger(name or ROOT_LOGGER_NAME)


def _level(name: str) -> int:
    """Translate a level name to its numeric value."""

    value = logging.getLevelName(str(name).upper())
    if not isinstance(value, int):
        raise ValueError(f"Invalid logging level: {name}")
    return value


## Decorators for Logging


def log_call(func):
    """Decorator to log function calls with their duration."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        func_name = f"{func.__module__}.{func.__qualname__}"
        logger.debug(f"-> Entering {func_name}")
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Exiting {func_name} (Duration: {duration:.3f}s)")
            return result

        except Exception as e:
            duration = (datetime.now() - start_time).total_seconds()
            logger.debug(f"<- Error in {func_name} after {duration:.3f}s: {e}")
            raise

    return wrapper


## Module-level LogManager Instance and Helper Functions

_log_manager: Optional[LogManager] = None


def init_logging(force: bool = False, **settings) -> LogManager:
    """Initialize logging system and return LogManager instance.

    Args:
        force: Rebuild the handlers even when logging is already set up.
        **settings: Keyword arguments accepted by ``LogManager``.
    """

    global _log_manager

    if _log_manager is None or force:
        _log_manager = LogManager(**settings)

    return _log_manager


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance under the mailcodec namespace."""

    return init_logging().get_logger(name)
