#!/usr/bin/env python3
"""
Structured logging configuration with JSON output and extraction tracking
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Optional

from config import config

# Context variable for per-extraction tracking
extraction_id_var: ContextVar[Optional[str]] = ContextVar('extraction_id', default=None)

class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""

        log_entry = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        extraction_id = get_extraction_id()
        if extraction_id:
            log_entry['extraction_id'] = extraction_id

        # Extra fields passed through `extra=`
        for field in ('duration', 'external_service', 'external_duration',
                      'status_code', 'relay_provider', 'outcome', 'url'):
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if config.DEBUG_MODE:
            log_entry.update({
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno,
            })

        return json.dumps(log_entry, ensure_ascii=False)

def setup_logging(level: Optional[str] = None):
    """Configure logging based on config settings"""

    log_level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps stdout free for CLI output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)

    if config.STRUCTURED_LOGGING:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Silence noisy third-party loggers
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)

    return root_logger

def new_extraction_id() -> str:
    """Create and bind a short id for the current extraction"""
    extraction_id = str(uuid.uuid4())[:8]
    extraction_id_var.set(extraction_id)
    return extraction_id

def get_extraction_id() -> Optional[str]:
    return extraction_id_var.get()

def clear_extraction_context():
    """Clear extraction context variables"""
    extraction_id_var.set(None)

class TimedLogger:
    """Context manager for timing operations with structured logging"""

    def __init__(self, logger: logging.Logger, operation: str,
                 external_service: str = None, **extra_fields):
        self.logger = logger
        self.operation = operation
        self.external_service = external_service
        self.extra_fields = extra_fields
        self.start_time = None
        self.duration = None

    def __enter__(self):
        self.start_time = time.monotonic()
        self.logger.info(
            f"Starting {self.operation}",
            extra={
                'external_service': self.external_service,
                **self.extra_fields
            }
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.monotonic() - self.start_time

        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation} in {self.duration:.2f}s",
                extra={
                    'duration': self.duration,
                    'external_service': self.external_service,
                    **self.extra_fields
                }
            )
        else:
            self.logger.error(
                f"Failed {self.operation}: {exc_val}",
                extra={
                    'duration': self.duration,
                    'external_service': self.external_service,
                    **self.extra_fields
                },
                exc_info=True
            )
        return False

def log_external_call(logger: logging.Logger, service_name: str,
                     duration: float, status_code: int = None, **extra):
    """Log external service call timing"""
    logger.info(
        f"External call to {service_name} took {duration:.2f}s (status: {status_code})",
        extra={
            'external_service': service_name,
            'external_duration': duration,
            'status_code': status_code,
            **extra
        }
    )
