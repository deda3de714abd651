import logging
import json
import os
from typing import Any, Dict, Optional

# Extra attributes callers may attach via ``logger.info(..., extra={...})``.
CONTEXT_FIELDS = ("video_id", "thread_id", "run_id")


class JsonFormatter(logging.Formatter):
    """Format log records as JSON with detailed context."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt or "%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "module": record.module,
            "funcName": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def build_logging_config(log_level: str, log_dir: str, json_file: Optional[str] = None) -> Dict[str, Any]:
    """Return a ``dictConfig`` mapping: console, rotating text file and rotating JSON file.

    Creates ``log_dir`` if needed.
    """
    os.makedirs(log_dir, exist_ok=True)
    handlers = ['console', 'app_file', 'json_file']
    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
            'json': {
                '()': JsonFormatter,
                'datefmt': '%Y-%m-%d %H:%M:%S'
            },
        },
        'handlers': {
            'console': {
                'level': log_level,
                'class': 'logging.StreamHandler',
                'formatter': 'standard',
                'stream': 'ext://sys.stdout',
            },
            'app_file': {
                'level': log_level,
                'class': 'logging.handlers.RotatingFileHandler',
                'formatter': 'standard',
                'filename': os.path.join(log_dir, 'app.log'),
                'maxBytes': 10485760,
                'backupCount': 5,
                'encoding': 'utf8',
            },
            'json_file': {
                'level': log_level,
                'class': 'logging.handlers.RotatingFileHandler',
                'formatter': 'json',
                'filename': json_file or os.path.join(log_dir, 'app.json'),
                'maxBytes': 10485760,
                'backupCount': 5,
                'encoding': 'utf8',
            }
        },
        'loggers': {
            '': {'handlers': handlers, 'level': log_level, 'propagate': True},
            'werkzeug': {'handlers': handlers, 'level': 'INFO', 'propagate': False},
            'httpx': {'handlers': handlers, 'level': 'WARNING', 'propagate': False},
            'openai': {'handlers': handlers, 'level': 'WARNING', 'propagate': False},
            'learnmode_app': {'handlers': handlers, 'level': log_level, 'propagate': False},
        }
    }
