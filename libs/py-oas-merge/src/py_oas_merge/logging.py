"""
Structured logging for merge runs

This module provides:
- structlog configuration (JSON or console output)
- Service context on every entry
- Performance logging around whole merge calls
"""
import os
import sys
import time
import logging
import structlog
from typing import Any, Dict, Optional


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    json_logs: bool = True,
    include_stdlib: bool = True
):
    """Configure structured logging for the process"""

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_context(service_name),
    ]

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    if include_stdlib:
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stderr,
            level=getattr(logging, log_level.upper()),
        )


def add_service_context(service_name: str):
    """Add service context to all log entries"""
    def processor(logger, method_name, event_dict):
        event_dict["service"] = service_name
        event_dict["environment"] = os.getenv("ENVIRONMENT", "development")
        return event_dict
    return processor


class PerformanceLogger:
    """Context manager for performance logging"""

    def __init__(self, operation: str, **context):
        self.operation = operation
        self.context = context
        self.logger = structlog.get_logger()
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        self.logger.debug(
            "operation_started",
            operation=self.operation,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time

        if exc_type is None:
            self.logger.info(
                "operation_completed",
                operation=self.operation,
                duration_ms=round(duration * 1000, 2),
                **self.context
            )
        else:
            self.logger.error(
                "operation_failed",
                operation=self.operation,
                duration_ms=round(duration * 1000, 2),
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                **self.context
            )


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None):
    """Log errors with context"""
    logger = structlog.get_logger()
    logger.error(
        "error_occurred",
        error_type=type(error).__name__,
        error_message=str(error),
        context=context or {},
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a structured logger instance"""
    return structlog.get_logger(name)
