"""
Custom Logger with named levels for service events.
Levels: warning, info, request, error, slow, great
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Any

from agro_auth.logging.log_levels import LogLevel
from agro_auth.logging.formatters import get_formatter_for_level


LOG_LEVEL_MAP = {
    LogLevel.WARNING: logging.WARNING,
    LogLevel.INFO: logging.INFO,
    LogLevel.REQUEST: logging.INFO,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.SLOW: logging.WARNING,
    LogLevel.GREAT: logging.INFO,
}


class CustomLogger:
    """
    Wraps a standard logger and renders keyword context after the message.

    Usage:
        logger = get_logger("password_reset")
        logger.info("Reset code issued", email="j***@example.com")
        logger.error("Delivery failed", exc_info=True)
        logger.slow("Slow request", duration=2.4, path="/api/auth/forgot-password")
    """

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: bool = False,
        **context: Any
    ) -> None:
        std_level = LOG_LEVEL_MAP[level]
        if not self.logger.isEnabledFor(std_level):
            return

        log_data = {
            "level": level.value,
            "module": self.name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **context
        }

        record = logging.LogRecord(
            name=self.name,
            level=std_level,
            pathname="",
            lineno=0,
            msg=message,
            args=(),
            exc_info=None
        )
        record.__dict__.update(log_data)
        record.context = self._render_context(context)
        formatted_message = get_formatter_for_level(level).format(record)

        self.logger.log(
            std_level,
            formatted_message,
            extra={"custom_data": log_data},
            exc_info=exc_info
        )

    @staticmethod
    def _render_context(context: Dict[str, Any]) -> str:
        if not context:
            return ""
        return " | " + " ".join(f"{key}={value}" for key, value in context.items())

    def warning(self, message: str, **context: Any) -> None:
        """Something deserves attention but is not an error."""
        self._log(LogLevel.WARNING, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, **context)

    def request(
        self,
        message: str,
        method: str,
        path: str,
        status_code: int,
        duration: float,
        **context: Any
    ) -> None:
        """
        HTTP request log

        Example:
            logger.request(
                "API request",
                method="POST",
                path="/api/auth/reset-password",
                status_code=200,
                duration=0.152
            )
        """
        self._log(
            LogLevel.REQUEST,
            message,
            method=method,
            path=path,
            status_code=status_code,
            duration=duration,
            **context
        )

    def error(
        self,
        message: str,
        exc_info: bool = True,
        **context: Any
    ) -> None:
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **context)

    def slow(
        self,
        message: str,
        duration: float,
        threshold: float = 1.0,
        **context: Any
    ) -> None:
        """Operation took longer than `threshold` seconds."""
        self._log(
            LogLevel.SLOW,
            message,
            duration=duration,
            threshold=threshold,
            **context
        )

    def great(self, message: str, **context: Any) -> None:
        """A flow completed successfully, e.g. a password was replaced."""
        self._log(LogLevel.GREAT, message, **context)


_loggers: Dict[str, CustomLogger] = {}


def get_logger(name: str) -> CustomLogger:
    """
    Returns the cached CustomLogger for `name`

    Usage:
        from agro_auth.logging import get_logger
        logger = get_logger(__name__)
    """
    if name not in _loggers:
        _loggers[name] = CustomLogger(name)
    return _loggers[name]
