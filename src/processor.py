"""
Default processing delegate for forwarded SQS message bodies.

Item processing belongs to the deployment that wires this entrypoint; the
default delegate only records what it received.
"""

from collections.abc import Awaitable, Callable, Sequence

from .logging_config import get_logger
from .settings import EntrypointConfig

logger = get_logger(__name__)

ItemProcessor = Callable[[Sequence[str], EntrypointConfig], Awaitable[None]]


async def process_items(bodies: Sequence[str], config: EntrypointConfig) -> None:
    """Record receipt of a batch of message bodies."""
    logger.info("Items received", item_count=len(bodies), table_name=config.table_name)
    for index, body in enumerate(bodies):
        logger.debug("Item received", index=index, body_length=len(body))
