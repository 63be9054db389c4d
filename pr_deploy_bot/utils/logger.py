"""
Logging infrastructure for the PR deployment bot.

Provides structured logging with configurable formats and levels.

This module offers:
- JSON and text formatters
- Context injection (repository, pull request) into every record
- Redaction of credentials before anything reaches a handler

Example:
    >>> from pr_deploy_bot.utils.logger import get_logger, setup_logging
    >>> setup_logging(level="DEBUG", format_type="json")
    >>> logger = get_logger(__name__)
    >>> logger.info("Deleted deployment", extra={"uid": "dpl_123"})
"""

import logging
import sys
import json
import re
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List, Pattern
from pathlib import Path
from enum import Enum


class LogLevel(Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(Enum):
    """Supported log formats."""
    JSON = "json"
    TEXT = "text"


class Colors:
    """ANSI color codes for console output."""
    CYAN = '\033[36m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    RED = '\033[31m'
    MAGENTA = '\033[35m'
    RESET = '\033[0m'

    LEVEL_COLORS = {
        LogLevel.DEBUG.value: CYAN,
        LogLevel.INFO.value: GREEN,
        LogLevel.WARNING.value: YELLOW,
        LogLevel.ERROR.value: RED,
        LogLevel.CRITICAL.value: MAGENTA,
    }


# Extra-field names whose values are always redacted (substring match)
SENSITIVE_FIELDS = {
    'authorization', 'token', 'password', 'secret', 'credential',
    'private_key', 'api_key',
}

DEFAULT_TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

# Standard log record fields to exclude when copying extra fields
STANDARD_LOG_FIELDS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message', 'asctime'
}

REDACTED = "***REDACTED***"


class SensitiveDataRedactor:
    """
    Redacts credentials from log messages and extra fields.

    Field values are redacted when the field name looks sensitive;
    free text is scanned for Bearer and Basic credentials and for
    ``token=...`` style assignments.
    """

    def __init__(self):
        self.patterns: List[Pattern] = [
            re.compile(r'(?i)(bearer\s+)([a-zA-Z0-9_\-\.=]{8,})'),
            re.compile(r'(?i)(basic\s+)([A-Za-z0-9+/]{8,}={0,2})'),
            re.compile(r'(?i)((?:token|secret|password)["\s]*[:=]["\s]*)([^\s"&,]{6,})'),
        ]

    def is_sensitive_key(self, key: str) -> bool:
        lowered = key.lower()
        return any(sensitive in lowered for sensitive in SENSITIVE_FIELDS)

    def redact_string(self, text: str) -> str:
        """
        Redact sensitive information from a string.

        Args:
            text: String to redact

        Returns:
            Redacted string
        """
        if not isinstance(text, str):
            return text
        for pattern in self.patterns:
            text = pattern.sub(lambda match: f"{match.group(1)}{REDACTED}", text)
        return text

    def redact_value(self, key: str, value: Any) -> Any:
        """
        Redact a value based on its key and content.

        Args:
            key: The field key
            value: The value to potentially redact

        Returns:
            Original value or redacted version
        """
        if value is None:
            return value

        if isinstance(value, dict):
            return {k: self.redact_value(k, v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact_value(key, item) for item in value)

        if self.is_sensitive_key(key):
            return REDACTED
        if isinstance(value, str):
            return self.redact_string(value)
        return value


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Example output:
        {
            "timestamp": "2024-03-01T10:30:45.123Z",
            "level": "INFO",
            "logger": "pr_deploy_bot.reconciler",
            "message": "Deleted deployment",
            "line": 42,
            "repository": "acme/web",
            "uid": "dpl_123"
        }
    """

    def __init__(self, ensure_ascii: bool = False, sort_keys: bool = True):
        super().__init__()
        self.ensure_ascii = ensure_ascii
        self.sort_keys = sort_keys

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for key, value in record.__dict__.items():
            if key not in STANDARD_LOG_FIELDS:
                log_entry[key] = value
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(
            log_entry,
            default=str,
            ensure_ascii=self.ensure_ascii,
            sort_keys=self.sort_keys
        )


class TextFormatter(logging.Formatter):
    """
    Text formatter for human-readable logging with optional colors.

    Example output:
        [2024-03-01 10:30:45] INFO     pr_deploy_bot.reconciler:42 - Deleted deployment (uid=dpl_123)
    """

    def __init__(self, use_colors: bool = True, timestamp_format: Optional[str] = None):
        super().__init__()
        self.use_colors = use_colors and self._supports_color()
        self.timestamp_format = timestamp_format or DEFAULT_TIMESTAMP_FORMAT

    def _supports_color(self) -> bool:
        """Check if the terminal supports color output."""
        return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(self.timestamp_format)
        message = (
            f"[{timestamp}] {record.levelname:8} "
            f"{record.name}:{record.lineno} - {record.getMessage()}"
        )

        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in STANDARD_LOG_FIELDS
        ]
        if extras:
            message = f"{message} ({', '.join(extras)})"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        if self.use_colors:
            color = Colors.LEVEL_COLORS.get(record.levelname, '')
            message = f"{color}{message}{Colors.RESET}"

        return message


class ContextFilter(logging.Filter):
    """
    Injects run context (repository, pull request) into every record.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.context = {k: v for k, v in (context or {}).items() if v}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class SensitiveDataFilter(logging.Filter):
    """
    Sanitizes log messages, their arguments and extra fields.
    """

    def __init__(self):
        super().__init__()
        self.redactor = SensitiveDataRedactor()

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redactor.redact_string(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                self.redactor.redact_string(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        for key in list(record.__dict__.keys()):
            if key in STANDARD_LOG_FIELDS:
                continue
            setattr(record, key, self.redactor.redact_value(key, getattr(record, key)))

        return True


def validate_log_level(level: str) -> str:
    """
    Validate and normalize log level string.

    Raises:
        ValueError: If the log level is not supported
    """
    if not level:
        raise ValueError("Log level cannot be empty")

    level_upper = level.upper()
    valid_levels = {log_level.value for log_level in LogLevel}
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level: {level}. Valid levels: {', '.join(sorted(valid_levels))}")
    return level_upper


def validate_log_format(format_type: str) -> str:
    """
    Validate and normalize log format string.

    Raises:
        ValueError: If the log format is not supported
    """
    if not format_type:
        raise ValueError("Log format cannot be empty")

    format_lower = format_type.lower()
    valid_formats = {log_format.value for log_format in LogFormat}
    if format_lower not in valid_formats:
        raise ValueError(f"Invalid log format: {format_type}. Valid formats: {', '.join(sorted(valid_formats))}")
    return format_lower


def setup_logging(
    level: str = "INFO",
    format_type: str = "text",
    log_file: Optional[str] = None,
    use_colors: Optional[bool] = None,
    context: Optional[Dict[str, Any]] = None
) -> logging.Logger:
    """
    Configure the root logger.

    Console output uses the requested format; a log file, when given,
    always receives JSON lines. Credentials are redacted on every handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Log format ('json' or 'text')
        log_file: Optional log file path
        use_colors: Whether to use colors in text output (defaults to True)
        context: Key/value pairs attached to every record

    Returns:
        Configured root logger

    Raises:
        ValueError: If level or format is not supported
    """
    numeric_level = getattr(logging, validate_log_level(level))
    validated_format = validate_log_format(format_type)

    logger = logging.getLogger()
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    filters: List[logging.Filter] = [ContextFilter(context), SensitiveDataFilter()]

    if validated_format == LogFormat.JSON.value:
        console_formatter: logging.Formatter = JSONFormatter()
    else:
        console_formatter = TextFormatter(use_colors=True if use_colors is None else use_colors)

    logger.addHandler(_create_handler(logging.StreamHandler(sys.stderr), numeric_level, console_formatter, filters))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        logger.addHandler(_create_handler(file_handler, numeric_level, JSONFormatter(), filters))

    # httpx logs every request at INFO; keep it for DEBUG runs only
    logging.getLogger("httpx").setLevel(
        logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    )

    return logger


def _create_handler(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    filters: List[logging.Filter]
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for filter_obj in filters:
        handler.addFilter(filter_obj)
    return handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
