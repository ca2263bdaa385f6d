"""
JSON structured logging configuration using python-json-logger

Log records emitted while a request is being handled carry that
request's id, set by the request id middleware in app.main.
"""
import logging
import logging.config
import sys
from contextvars import ContextVar
from typing import Dict, Any, Optional

import pythonjsonlogger.jsonlogger

from app.config import get_settings
from app.time_utils import isoformat, utcnow


# Shared application logger
logger = logging.getLogger("app")

# Id of the request being handled, None outside a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


class RequestContextFilter(logging.Filter):
    """Copies the current request id onto every record"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, 'request_id'):
            record.request_id = request_id_var.get() or "-"
        return True


class CustomJsonFormatter(pythonjsonlogger.jsonlogger.JsonFormatter):
    """JSON formatter adding service, UTC timestamp and request id"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['service'] = 'errorcue'
        log_record['timestamp'] = isoformat(utcnow())
        log_record['level'] = record.levelname

        if getattr(record, 'request_id', "-") != "-":
            log_record['request_id'] = record.request_id


def build_logging_config(log_level: str, json_output: bool, sql_echo: bool = False) -> Dict[str, Any]:
    """
    Build the dictConfig for the application

    Args:
        log_level: Level for the app and root loggers
        json_output: Emit JSON lines instead of plain text
        sql_echo: Log SQL statements through the sqlalchemy.engine logger

    Returns:
        Dictionary accepted by logging.config.dictConfig
    """
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'filters': {
            'request_context': {
                '()': RequestContextFilter
            }
        },
        'formatters': {
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(name)s %(message)s'
            },
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s'
            }
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': log_level,
                'formatter': 'json' if json_output else 'standard',
                'filters': ['request_context'],
                'stream': sys.stdout
            }
        },
        'loggers': {
            'app': {
                'level': log_level,
                'handlers': ['console'],
                'propagate': False
            },
            'uvicorn': {
                'level': 'INFO',
                'handlers': ['console'],
                'propagate': False
            },
            'uvicorn.access': {
                'level': 'WARNING',
                'handlers': ['console'],
                'propagate': False
            },
            'sqlalchemy.engine': {
                'level': 'INFO' if sql_echo else 'WARNING',
                'handlers': ['console'],
                'propagate': False
            },
            'httpx': {
                'level': 'WARNING',
                'handlers': ['console'],
                'propagate': False
            }
        },
        'root': {
            'level': log_level,
            'handlers': ['console']
        }
    }


def setup_logging() -> None:
    """Setup JSON structured logging in production, plain text elsewhere"""
    settings = get_settings()
    log_level = settings.log_level.upper()

    logging.config.dictConfig(build_logging_config(
        log_level,
        json_output=settings.environment == 'production',
        sql_echo=settings.database_echo
    ))

    logger.info(
        "Logging configured",
        extra={
            'log_level': log_level,
            'environment': settings.environment
        }
    )
