"""
Pydantic models for SQS invocation events.

Only ``body`` is needed to forward a record; the remaining SQS fields are
accepted so real Lambda payloads validate without loss.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SQSRecord(BaseModel):
    """One queue message within an invocation event."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    body: str
    message_id: str | None = Field(default=None, alias="messageId")
    receipt_handle: str | None = Field(default=None, alias="receiptHandle")
    attributes: dict[str, Any] = Field(default_factory=dict)
    message_attributes: dict[str, Any] = Field(
        default_factory=dict, alias="messageAttributes"
    )
    md5_of_body: str | None = Field(default=None, alias="md5OfBody")
    event_source: str | None = Field(default=None, alias="eventSource")
    event_source_arn: str | None = Field(default=None, alias="eventSourceARN")
    aws_region: str | None = Field(default=None, alias="awsRegion")


class SQSEvent(BaseModel):
    """The payload delivered by the triggering queue to a single execution."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    records: list[SQSRecord] | None = Field(default=None, alias="Records")

    def bodies(self) -> list[str]:
        """Message bodies in record order; an absent collection yields none."""
        return [record.body for record in self.records or []]


__all__ = ["SQSEvent", "SQSRecord"]
