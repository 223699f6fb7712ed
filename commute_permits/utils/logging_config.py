"""Logging configuration for the commute permit service."""

import logging
import logging.config
import os
from pythonjsonlogger import jsonlogger


AUDIT_LOGGER = 'commute_permits.audit'
ERROR_LOGGER = 'commute_permits.errors'

LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _rotating(filename, level, formatter):
    return {
        'level': level,
        'formatter': formatter,
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': filename,
        'maxBytes': LOG_MAX_BYTES,
        'backupCount': LOG_BACKUP_COUNT,
        'encoding': 'utf-8',
    }


def setup_logging(log_level='INFO', log_dir='logs'):
    """Console plus rotating files; audit events go to a JSON log of their own."""
    os.makedirs(log_dir, exist_ok=True)

    logging.config.dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'console': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s %(funcName)s:%(lineno)d %(threadName)s: %(message)s'
            },
            'audit': {
                '()': jsonlogger.JsonFormatter,
                'format': '%(asctime)s %(levelname)s %(event_type)s %(message)s',
                'rename_fields': {'asctime': 'timestamp'},
            },
        },
        'handlers': {
            'console': {
                'level': log_level,
                'formatter': 'console',
                'class': 'logging.StreamHandler',
                'stream': 'ext://sys.stdout',
            },
            'app_file': _rotating(os.path.join(log_dir, 'commute_permits.log'), log_level, 'detailed'),
            'audit_file': _rotating(os.path.join(log_dir, 'audit.jsonl'), 'INFO', 'audit'),
            'error_file': _rotating(os.path.join(log_dir, 'errors.log'), 'ERROR', 'detailed'),
        },
        'loggers': {
            '': {
                'handlers': ['console', 'app_file', 'error_file'],
                'level': log_level,
            },
            AUDIT_LOGGER: {
                'handlers': ['audit_file'],
                'level': 'INFO',
                'propagate': False,
            },
            ERROR_LOGGER: {
                'handlers': ['console', 'error_file'],
                'level': 'INFO',
                'propagate': False,
            },
        },
    })

    # Quiet chatty libraries
    for name in ('werkzeug', 'sqlalchemy.engine', 'apscheduler', 'fontTools', 'PIL'):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name):
    return logging.getLogger(name)


def log_audit_event(event_type, **details):
    """Write a structured audit event (approvals, permits, monitor runs)."""
    get_logger(AUDIT_LOGGER).info(event_type.replace('_', ' '), extra=dict(details, event_type=event_type))
