"""
DynamoDB table inspection for the entrypoint smoke checks.
"""

import asyncio
from typing import Any

import boto3
from botocore.exceptions import ClientError

from .error_handler import StorageError
from .logging_config import get_logger
from .settings import EntrypointConfig

logger = get_logger(__name__)


class TableInspector:
    """Checks DynamoDB table availability using the invocation's credentials."""

    def __init__(self, config: EntrypointConfig, client: Any | None = None) -> None:
        self.config = config
        self.dynamodb = client or boto3.client("dynamodb", **config.get_aws_config())

    def _describe_table(self, name: str) -> dict[str, Any] | None:
        try:
            response = self.dynamodb.describe_table(TableName=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                return None
            logger.error("Failed to describe table", table_name=name, error=str(e))
            raise StorageError(
                f"Failed to describe table {name}: {e}",
                operation="describe_table",
                table_name=name,
            ) from e
        return dict(response.get("Table", {}))

    async def has_table(self, name: str) -> bool:
        """Return whether the named table exists in the configured region."""
        table = await asyncio.to_thread(self._describe_table, name)
        if table is None:
            logger.info("Table not found", table_name=name, region=self.config.region)
            return False

        logger.debug(
            "Table found",
            table_name=name,
            table_status=table.get("TableStatus"),
        )
        return True
