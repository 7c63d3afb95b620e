"""
Structured logging configuration using structlog.

This module configures structlog for use throughout the entrypoint, providing
consistent, structured logging with JSON formatting in Lambda and readable
console output for development. Progress records go to standard output and
records at ERROR and above go to standard error.
"""

import logging
import sys
from typing import Any, cast

import structlog

# Marks handlers installed here so reconfiguration replaces rather than stacks them.
_HANDLER_MARKER = "_entrypoint_handler"


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def _build_handlers(formatter: logging.Formatter) -> list[logging.Handler]:
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_BelowErrorFilter())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)

    handlers: list[logging.Handler] = [stdout_handler, stderr_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
    return handlers


def configure_structlog(
    log_level: str = "INFO", json_logs: bool = False, include_stdlib_logs: bool = True
) -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to output logs in JSON format (useful for production)
        include_stdlib_logs: Whether to include standard library logs in structured format
    """

    timestamper = structlog.processors.TimeStamper(fmt="ISO")

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        timestamper,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
            + ([] if json_logs else [structlog.processors.CallsiteParameter.LINENO])
        ),
    ]

    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[structlog.stdlib.filter_by_level]
        + shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *([structlog.processors.format_exc_info] if json_logs else []),
            renderer,
        ],
        foreign_pre_chain=shared_processors if include_stdlib_logs else None,
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root_logger.removeHandler(existing)
    for handler in _build_handlers(formatter):
        root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Set levels for noisy third-party libraries
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Logger name (defaults to calling module)

    Returns:
        Configured structlog logger
    """
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))


def add_global_context(**kwargs: Any) -> None:
    """
    Add global context that will be included in all log messages.

    Args:
        **kwargs: Key-value pairs to add to global context
    """
    structlog.contextvars.bind_contextvars(**kwargs)


class LogContext:
    """Context manager for adding temporary structured logging context."""

    def __init__(self, **context: Any):
        self.context = context
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)


def with_context(**context: Any) -> LogContext:
    """
    Create a log context manager.

    Usage:
        with with_context(aws_request_id=context.aws_request_id):
            logger.info("processing items")
            # All log messages within this block include aws_request_id

    Args:
        **context: Context to add to log messages

    Returns:
        LogContext manager
    """
    return LogContext(**context)


def configure_lambda_logging() -> None:
    """
    Configure structured logging specifically for AWS Lambda environment.
    Enables JSON logging and attaches the function identity to every record.
    """
    from .settings import settings

    logging_config = settings.get_logging_config()

    configure_structlog(
        log_level=logging_config["level"],
        json_logs=True,
        include_stdlib_logs=logging_config["include_stdlib"],
    )

    add_global_context(
        lambda_function=logging_config["aws_lambda_function"],
        lambda_version=logging_config["aws_lambda_version"],
        aws_region=logging_config["aws_region"],
    )


def configure_dev_logging() -> None:
    """
    Configure structured logging for development environment.
    Console output and debug logging unless a level is set explicitly.
    """
    from .settings import settings

    logging_config = settings.get_logging_config()
    log_level = logging_config["level"]
    if log_level == "INFO":
        log_level = "DEBUG"

    configure_structlog(
        log_level=log_level,
        json_logs=logging_config["json_logs"],
        include_stdlib_logs=logging_config["include_stdlib"],
    )


def auto_configure() -> None:
    """
    Automatically configure logging based on environment variables.
    """
    from .settings import settings

    if settings.get_logging_config()["json_logs"]:
        configure_lambda_logging()
    else:
        configure_dev_logging()


# Initialize logging when module is imported
auto_configure()
