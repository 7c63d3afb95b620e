#!/usr/bin/env python3
"""
Collection aggregation lambda admin CLI

Operator interface for smoke-checking configuration, invoking the entrypoint
locally, feeding the queue, and reading the function's logs.

Usage:
    admin_cli.py check                            # Run the entrypoint smoke checks
    admin_cli.py invoke <event.json>              # Run the handler against an event file
    admin_cli.py send <body> [<body> ...]         # Send message bodies to QUEUE_URL
    admin_cli.py logs tail [--function-name=...] [--lines=100]
"""

import asyncio
import json
import sys
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import boto3
import click
from botocore.exceptions import ClientError, NoCredentialsError
from returns.result import Failure, Result, Success

from src.lambda_function import ensure_table, lambda_handler
from src.logging_config import get_logger
from src.settings import EntrypointConfig, resolve_config, settings
from src.storage import TableInspector

logger = get_logger(__name__)

# SQS SendMessageBatch accepts at most ten entries per call.
SQS_BATCH_LIMIT = 10


def run_smoke_checks() -> Result[EntrypointConfig, Exception]:
    """Resolve configuration and verify the entity table exists."""
    try:
        config = resolve_config()
        asyncio.run(ensure_table(config, TableInspector(config)))
        return Success(config)
    except Exception as e:
        return Failure(e)


def load_event(path: Path) -> Result[dict[str, Any], Exception]:
    """Load an SQS event from a JSON file."""
    try:
        event = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        return Failure(ValueError(f"Invalid JSON in {path}: {e}"))
    except OSError as e:
        return Failure(e)

    if not isinstance(event, dict):
        return Failure(ValueError(f"Event in {path} must be a JSON object"))
    return Success(event)


class QueueClient:
    """Send message bodies to the configured SQS queue."""

    def __init__(self, config: EntrypointConfig):
        self.config = config
        self._sqs = None

    @property
    def sqs(self):
        if self._sqs is None:
            self._sqs = boto3.client("sqs", **self.config.get_aws_config())
        return self._sqs

    def send_bodies(self, bodies: Sequence[str]) -> Result[list[str], Exception]:
        """Send bodies in order, returning the assigned message ids."""
        message_ids: list[str] = []
        try:
            for start in range(0, len(bodies), SQS_BATCH_LIMIT):
                chunk = bodies[start : start + SQS_BATCH_LIMIT]
                response = self.sqs.send_message_batch(
                    QueueUrl=self.config.queue_url,
                    Entries=[
                        {"Id": str(start + offset), "MessageBody": body}
                        for offset, body in enumerate(chunk)
                    ],
                )
                failed = response.get("Failed", [])
                if failed:
                    return Failure(
                        RuntimeError(
                            f"{len(failed)} message(s) rejected: "
                            + ", ".join(f["Id"] for f in failed)
                        )
                    )
                message_ids.extend(entry["MessageId"] for entry in response["Successful"])
            return Success(message_ids)
        except ClientError as e:
            return Failure(RuntimeError(f"SQS error: {e}"))
        except NoCredentialsError:
            return Failure(RuntimeError("AWS credentials not configured"))
        except Exception as e:
            return Failure(e)


class LogReader:
    """Read the function's CloudWatch logs."""

    def __init__(self, region: str | None = None):
        self.session = boto3.Session()
        self.region = region
        self._logs = None

    @property
    def logs(self):
        if self._logs is None:
            self._logs = self.session.client("logs", region_name=self.region)
        return self._logs

    def get_logs(
        self, function_name: str, since_hours: int = 1, limit: int = 100
    ) -> Result[list[dict[str, Any]], Exception]:
        """Get CloudWatch log events for the Lambda function."""
        try:
            start_time = int(
                (datetime.now() - timedelta(hours=since_hours)).timestamp() * 1000
            )
            response = self.logs.filter_log_events(
                logGroupName=f"/aws/lambda/{function_name}",
                startTime=start_time,
                limit=limit,
            )
            return Success(response.get("events", []))
        except ClientError as e:
            return Failure(RuntimeError(f"CloudWatch error: {e}"))
        except Exception as e:
            return Failure(e)


# CLI Commands


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool):
    """Collection aggregation lambda admin tool."""
    if verbose:
        logger.debug("Verbose mode enabled", settings=repr(settings))


@cli.command()
def check():
    """Run the entrypoint smoke checks against the current environment."""
    match run_smoke_checks():
        case Success(config):
            click.echo(f"Configuration OK, table {config.table_name} found.")

        case Failure(error):
            click.echo(f"Smoke check failed: {error}", err=True)
            sys.exit(1)


@cli.command()
@click.argument("event_file", type=click.Path(exists=True, path_type=Path))
def invoke(event_file: Path):
    """Run the Lambda handler locally against an SQS event file."""
    match load_event(event_file):
        case Success(event):
            lambda_handler(event, None)
            records = event.get("Records")
            count = len(records) if isinstance(records, list) else 0
            click.echo(f"Invoked handler with {count} record(s).")

        case Failure(error):
            click.echo(f"Error loading event: {error}", err=True)
            sys.exit(1)


@cli.command()
@click.argument("bodies", nargs=-1, required=True)
def send(bodies: tuple[str, ...]):
    """Send message bodies to the queue at QUEUE_URL."""
    try:
        config = resolve_config()
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    match QueueClient(config).send_bodies(list(bodies)):
        case Success(message_ids):
            click.echo(f"Sent {len(message_ids)} message(s):")
            for message_id in message_ids:
                click.echo(f"  {message_id}")

        case Failure(error):
            click.echo(f"Error sending messages: {error}", err=True)
            sys.exit(1)


@cli.group()
def logs():
    """Log management."""
    pass


@logs.command("tail")
@click.option(
    "--function-name",
    default=lambda: settings.AWS_LAMBDA_FUNCTION_NAME or None,
    required=True,
    help="Lambda function name (defaults to AWS_LAMBDA_FUNCTION_NAME)",
)
@click.option("--since", default=1, help="Hours of history to read")
@click.option("--lines", default=100, help="Number of lines to show")
def logs_tail(function_name: str, since: int, lines: int):
    """Show recent log events for the function."""
    reader = LogReader(region=settings.AWS_REGION or None)

    match reader.get_logs(function_name, since_hours=since, limit=lines):
        case Success(events):
            if not events:
                click.echo("No log events found.")
                return

            for event in events:
                timestamp = datetime.fromtimestamp(event["timestamp"] / 1000)
                click.echo(f"{timestamp.isoformat()} | {event['message'].strip()}")

        case Failure(error):
            click.echo(f"Error getting logs: {error}", err=True)
            sys.exit(1)


if __name__ == "__main__":
    cli()
