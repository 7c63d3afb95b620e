"""
AWS Lambda entrypoint for the collection aggregation queue consumer.

The handler performs smoke checks before relaying work to the processing
delegate:

- required environment variables are present
- the entity table exists in DynamoDB
- the SQS event carries records

Once every check passes, the message bodies are handed to the processing
delegate. Any failure is logged and discharged; the handler never raises
back to the Lambda runtime.
"""

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError
from returns.result import Failure, Result, Success

from .error_handler import (
    EntrypointError,
    ErrorContext,
    ErrorType,
    MalformedEventError,
    ProcessingError,
    ResourceNotFoundError,
    log_error,
)
from .logging_config import get_logger, with_context
from .processor import ItemProcessor, process_items
from .settings import EntrypointConfig, resolve_config
from .sqs_models import SQSEvent
from .storage import TableInspector

logger = get_logger(__name__)


def parse_event(event: Any) -> SQSEvent:
    """
    Validate the raw invocation payload as an SQS event.

    Raises:
        MalformedEventError: if the event has no records collection or a
            record does not match the SQS message shape
    """
    if not isinstance(event, Mapping) or event.get("Records") is None:
        raise MalformedEventError()

    try:
        return SQSEvent.model_validate(event)
    except ValidationError as e:
        raise MalformedEventError(f"SQS event is malformed: {e}") from e


async def ensure_table(config: EntrypointConfig, inspector: TableInspector) -> None:
    """Raise ResourceNotFoundError unless the configured table exists."""
    if not await inspector.has_table(config.table_name):
        raise ResourceNotFoundError(config.table_name)


async def forward_bodies(
    bodies: list[str], config: EntrypointConfig, processor: ItemProcessor
) -> None:
    """
    Await the processing delegate, tagging its failures as processing errors.

    Raises:
        ProcessingError: wrapping any exception or cancellation from the delegate
    """
    try:
        await processor(bodies, config)
    except EntrypointError:
        raise
    except (Exception, asyncio.CancelledError) as e:
        raise ProcessingError(
            f"Processing delegate failed: {e!r}", item_count=len(bodies)
        ) from e


async def handle_event(
    event: Any,
    processor: ItemProcessor | None = None,
    inspector: TableInspector | None = None,
) -> Result[int, BaseException]:
    """
    Run the smoke checks and forward message bodies to the processor.

    Args:
        event: Raw SQS invocation event
        processor: Processing delegate (defaults to process_items)
        inspector: Table inspector (defaults to one built from the resolved config)

    Returns:
        Success with the number of forwarded bodies, or Failure with the
        first error raised by a check or by the processor
    """
    try:
        config = resolve_config()
        await ensure_table(config, inspector or TableInspector(config))

        bodies = parse_event(event).bodies()

        logger.info("processing items", item_count=len(bodies))
        await forward_bodies(bodies, config, processor or process_items)
    except (Exception, asyncio.CancelledError) as e:
        return Failure(e)

    return Success(len(bodies))


def log_failure(error: BaseException, request_id: str | None) -> str:
    """Log an invocation failure, attaching the Lambda request id."""
    if isinstance(error, EntrypointError):
        error.context.request_id = request_id
        return log_error(error)
    context = ErrorContext(error_type=ErrorType.UNKNOWN_ERROR, request_id=request_id)
    return log_error(error, context=context)


def lambda_handler(event: Any, context: Any) -> None:
    """
    Main Lambda handler for SQS-triggered invocations.

    Args:
        event: SQS event data containing the queue records
        context: Lambda execution context
    """
    request_id = getattr(context, "aws_request_id", None)
    if not isinstance(request_id, str):
        request_id = None
    request_context: dict[str, Any] = {}
    if request_id:
        request_context["aws_request_id"] = request_id

    with with_context(**request_context):
        try:
            result = asyncio.run(handle_event(event))
        except (Exception, asyncio.CancelledError) as e:
            log_failure(e, request_id)
            return None

        if isinstance(result, Failure):
            log_failure(result.failure(), request_id)
        else:
            logger.info("Invocation complete", item_count=result.unwrap())

    return None
