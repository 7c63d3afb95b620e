"""
Centralized error handling and logging utilities for the entrypoint.

Provides the error taxonomy raised by the smoke checks and structured error
logging used by the top-level handler.
"""

import traceback
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

import whenever

from .logging_config import get_logger

logger = get_logger(__name__)


class ErrorType(Enum):
    """Enumeration of error types for structured logging and handling."""

    CONFIGURATION_ERROR = "configuration_error"
    RESOURCE_NOT_FOUND = "resource_not_found"
    MALFORMED_EVENT = "malformed_event"
    STORAGE_ERROR = "storage_error"
    PROCESSING_ERROR = "processing_error"
    UNKNOWN_ERROR = "unknown_error"


@dataclass
class ErrorContext:
    """Structured error context for logging and debugging."""

    error_type: ErrorType
    setting: str | None = None
    table_name: str | None = None
    request_id: str | None = None
    timestamp: str | None = None
    additional_data: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = whenever.Instant.now().format_common_iso()


class EntrypointError(Exception):
    """Base exception class for entrypoint smoke-check failures."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.UNKNOWN_ERROR,
        context: ErrorContext | None = None,
    ):
        super().__init__(message)
        self.error_type = error_type
        self.context = context or ErrorContext(error_type=error_type)


class ConfigurationError(EntrypointError):
    """A required setting is missing or empty."""

    def __init__(self, message: str, setting: str) -> None:
        context = ErrorContext(
            error_type=ErrorType.CONFIGURATION_ERROR, setting=setting
        )
        super().__init__(message, ErrorType.CONFIGURATION_ERROR, context)
        self.setting = setting


class ResourceNotFoundError(EntrypointError):
    """An expected storage table does not exist."""

    def __init__(self, table_name: str) -> None:
        context = ErrorContext(
            error_type=ErrorType.RESOURCE_NOT_FOUND, table_name=table_name
        )
        super().__init__(
            f"Database does not contain table {table_name}",
            ErrorType.RESOURCE_NOT_FOUND,
            context,
        )
        self.table_name = table_name


class MalformedEventError(EntrypointError):
    """The invocation event does not carry a records collection."""

    def __init__(self, message: str = "SQS event does not contain records") -> None:
        super().__init__(message, ErrorType.MALFORMED_EVENT)


class StorageError(EntrypointError):
    """Storage operation errors."""

    def __init__(
        self, message: str, operation: str | None = None, table_name: str | None = None
    ) -> None:
        context = ErrorContext(
            error_type=ErrorType.STORAGE_ERROR,
            table_name=table_name,
            additional_data={"operation": operation} if operation else None,
        )
        super().__init__(message, ErrorType.STORAGE_ERROR, context)


class ProcessingError(EntrypointError):
    """The processing delegate failed or was cancelled."""

    def __init__(self, message: str, item_count: int | None = None) -> None:
        additional_data = {"item_count": item_count} if item_count is not None else None
        context = ErrorContext(
            error_type=ErrorType.PROCESSING_ERROR, additional_data=additional_data
        )
        super().__init__(message, ErrorType.PROCESSING_ERROR, context)


def log_error(
    error: BaseException,
    context: ErrorContext | None = None,
    level: str = "ERROR",
) -> str:
    """
    Log an error with structured context information.

    Args:
        error: The exception to log
        context: Optional error context
        level: Log level (ERROR, WARNING, CRITICAL)

    Returns:
        Error ID for tracking
    """
    error_id = f"err_{whenever.Instant.now().timestamp()}"

    log_data: dict[str, Any] = {
        "error_id": error_id,
        "error_message": str(error),
        "error_type": getattr(error, "error_type", ErrorType.UNKNOWN_ERROR).value,
        "error_class": error.__class__.__name__,
        "traceback": "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        ),
    }

    if context:
        log_data.update(asdict(context))
    elif isinstance(error, EntrypointError):
        log_data.update(asdict(error.context))
    # asdict keeps the enum; render it like the top-level field
    if isinstance(log_data.get("error_type"), ErrorType):
        log_data["error_type"] = log_data["error_type"].value

    if level == "CRITICAL":
        logger.critical(f"Critical error: {error.__class__.__name__}", **log_data)
    elif level == "WARNING":
        logger.warning(f"Warning: {error.__class__.__name__}", **log_data)
    else:
        logger.error(f"Error: {error.__class__.__name__}", **log_data)

    return error_id
