"""
Service logger with per-level formatting.
"""
from agro_auth.logging.custom_logger import CustomLogger, get_logger
from agro_auth.logging.log_levels import LogLevel

__all__ = [
    'CustomLogger',
    'LogLevel',
    'get_logger',
]
