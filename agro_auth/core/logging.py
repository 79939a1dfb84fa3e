"""
Centralized logging configuration with Sentry integration.

Sets up stdout logging for the service and error tracking for the reset
endpoints.
"""

import logging
import sys
from typing import Dict, Any, Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.redis import RedisIntegration

from agro_auth.core.config import settings

SENSITIVE_FIELDS = [
    'password', 'new_password', 'newPassword', 'otp', 'code',
    'token', 'secret', 'authorization', 'api_key', 'access_token',
]

SENSITIVE_HEADERS = ['Authorization', 'Cookie', 'X-API-Key', 'X-Auth-Token']


def init_sentry() -> bool:
    """
    Initialize Sentry for error tracking.

    Only initializes if SENTRY_DSN is configured. Returns whether Sentry
    was enabled.
    """
    if not settings.SENTRY_DSN:
        logging.info("SENTRY_DSN not configured. Sentry disabled.")
        return False

    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.SENTRY_ENVIRONMENT or settings.MODE,
            traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
            integrations=[
                FastApiIntegration(),
                SqlalchemyIntegration(),
                RedisIntegration(),
            ],
            before_send=filter_sensitive_data,
            send_default_pii=False,
            attach_stacktrace=True,
            max_breadcrumbs=50,
        )
        logging.info(f"Sentry initialized successfully for environment: {settings.MODE}")
        return True
    except Exception as e:
        logging.error(f"Failed to initialize Sentry: {e}")
        return False


def filter_sensitive_data(event: Dict[str, Any], hint: Dict[str, Any] = None) -> Optional[Dict[str, Any]]:
    """
    Filter sensitive data before sending to Sentry.

    Reset codes and passwords travel in request bodies, so both the body
    and the auth headers are scrubbed.
    """
    request = event.get('request') or {}

    data = request.get('data')
    if isinstance(data, dict):
        for field in SENSITIVE_FIELDS:
            if field in data:
                data[field] = '[FILTERED]'

    headers = request.get('headers')
    if isinstance(headers, dict):
        for header in SENSITIVE_HEADERS:
            if header in headers:
                headers[header] = '[FILTERED]'

    return event


def capture_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None
) -> Optional[str]:
    """
    Capture an error and send to Sentry with context.

    Returns the Sentry event ID, or None when nothing was sent.
    """
    logging.error(f"Error occurred: {error}", exc_info=error)

    if not sentry_sdk.is_initialized():
        return None

    with sentry_sdk.new_scope() as scope:
        if context:
            for key, value in context.items():
                scope.set_context(key, value)
        if tags:
            for key, value in tags.items():
                scope.set_tag(key, value)

        event_id = sentry_sdk.capture_exception(error)
        logging.info(f"Error captured in Sentry with event ID: {event_id}")
        return event_id


def setup_logging():
    """
    Configure the root logger: level from settings, one stdout handler.
    """
    log_level = settings.LOG_LEVEL.upper()

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level, logging.INFO))
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(console_handler)

    logging.info(f"Logging configured with level: {log_level}")
