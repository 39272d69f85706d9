# offboarding/logging.py
"""
Structured logging for the offboarding approval service.

Each log line is a JSON object with consistent fields:
- timestamp: ISO 8601
- level: DEBUG/INFO/WARNING/ERROR/CRITICAL
- logger: Module name
- message: Event name
- **kwargs: Additional structured fields

Usage:
    from offboarding.logging import get_logger
    logger = get_logger(__name__)
    logger.info("approval_recorded", request_id=request.id, approval_level=2)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

RESERVED_FIELDS = frozenset({"timestamp", "level", "logger", "message", "exception", "source"})


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter: one object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "structured_data"):
            clashes = {}
            for key, value in record.structured_data.items():
                if key in RESERVED_FIELDS:
                    clashes[key] = value
                else:
                    log_data[key] = value
            # Fields named like a core key never overwrite it
            if clashes:
                log_data["fields"] = clashes

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Source location for errors
        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """
    Wrapper around a stdlib logger that takes keyword fields.

    Example:
        logger = get_logger(__name__)
        logger.info("approval_escalated", request_id=rid, escalate_to="hr-director")
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, log_level: int, message: str, exc_info: bool = False, **kwargs):
        self._logger.log(log_level, message, exc_info=exc_info, extra={"structured_data": kwargs})

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log at ERROR with the current traceback."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)


_configured = False


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    log_file: Optional[str] = None,
    force: bool = False,
):
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Use JSON format (True) or plain text (False)
        log_file: Optional file path to write logs to
        force: Reconfigure even if already configured
    """
    global _configured
    if _configured and not force:
        return
    _configured = True

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredLogFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
        )
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredLogFormatter())
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.WARNING)


def get_logger(name: str) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        StructuredLogger instance
    """
    if not _configured:
        configure_logging()
    return StructuredLogger(name)


# Convenience loggers for key components
def get_engine_logger() -> StructuredLogger:
    """Get logger for the approval engine."""
    return get_logger("offboarding.approvals.engine")


def get_webhook_logger() -> StructuredLogger:
    """Get logger for webhook delivery."""
    return get_logger("offboarding.webhooks")


def get_api_logger() -> StructuredLogger:
    """Get logger for API routes."""
    return get_logger("offboarding.api")
