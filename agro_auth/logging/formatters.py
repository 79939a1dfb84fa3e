import logging
from agro_auth.logging.log_levels import LogLevel


class BaseFormatter(logging.Formatter):
    """Base formatter; timestamp and level are added by the root handler."""
    def __init__(self, fmt=None):
        super().__init__(fmt or '%(message)s%(context)s')

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "context"):
            record.context = ""
        return super().format(record)


class ErrorFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('❌ [ERROR] %(message)s%(context)s')


class WarningFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('⚠️  [WARNING] %(message)s%(context)s')


class InfoFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('ℹ️  [INFO] %(message)s%(context)s')


class RequestFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('🌐 [REQUEST] %(message)s%(context)s')


class SlowFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('🐌 [SLOW] %(message)s%(context)s')


class GreatFormatter(BaseFormatter):
    def __init__(self):
        super().__init__('✅ [GREAT] %(message)s%(context)s')


_FORMATTERS = {
    LogLevel.ERROR: ErrorFormatter(),
    LogLevel.WARNING: WarningFormatter(),
    LogLevel.INFO: InfoFormatter(),
    LogLevel.REQUEST: RequestFormatter(),
    LogLevel.SLOW: SlowFormatter(),
    LogLevel.GREAT: GreatFormatter(),
}


def get_formatter_for_level(level: LogLevel) -> logging.Formatter:
    """Returns the formatter for the given log level"""
    return _FORMATTERS.get(level) or BaseFormatter()
