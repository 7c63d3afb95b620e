"""
Centralized configuration management for the collection aggregation lambda.

This module provides a single point of configuration using python-decouple
to manage environment variables with proper defaults and type casting.

Ambient settings (logging, environment detection) are read once at import.
The values the entrypoint depends on are resolved per invocation through
``resolve_config`` so that a warm Lambda container always sees the current
environment.
"""

from typing import Any

from decouple import config  # type: ignore
from pydantic import BaseModel, ConfigDict, SecretStr

# Checked in this order; the first missing one is reported.
REQUIRED_SETTINGS: tuple[str, ...] = (
    "ENTITY_TABLE_NAME",
    "AWS_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "QUEUE_URL",
)


class Settings:
    """Centralized application settings."""

    # Logging Configuration
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")

    # Environment Detection
    IS_TEST_ENV: bool = config("IS_TEST_ENV", default=False, cast=bool)
    IS_LAMBDA_ENV: bool = bool(config("AWS_LAMBDA_FUNCTION_NAME", default=""))

    # Lambda-specific Configuration
    AWS_LAMBDA_FUNCTION_NAME: str = config("AWS_LAMBDA_FUNCTION_NAME", default="")
    AWS_LAMBDA_FUNCTION_VERSION: str = config(
        "AWS_LAMBDA_FUNCTION_VERSION", default="unknown"
    )
    AWS_REGION: str = config("AWS_REGION", default="")

    # Debug and Development
    DEBUG: bool = config("DEBUG", default=False, cast=bool)

    def get_logging_config(self) -> dict[str, object]:
        """Get logging-specific configuration."""
        return {
            "level": self.LOG_LEVEL,
            "json_logs": self.IS_LAMBDA_ENV,
            "include_stdlib": True,
            "aws_lambda_function": self.AWS_LAMBDA_FUNCTION_NAME,
            "aws_lambda_version": self.AWS_LAMBDA_FUNCTION_VERSION,
            "aws_region": self.AWS_REGION,
        }

    def __repr__(self) -> str:
        """String representation of settings (safe - no secrets)."""
        safe_attrs = [
            "LOG_LEVEL",
            "IS_TEST_ENV",
            "IS_LAMBDA_ENV",
            "AWS_LAMBDA_FUNCTION_NAME",
            "DEBUG",
        ]
        attrs = {attr: getattr(self, attr) for attr in safe_attrs}
        return f"Settings({attrs})"


class EntrypointConfig(BaseModel):
    """Configuration snapshot resolved for a single invocation."""

    model_config = ConfigDict(frozen=True)

    table_name: str
    region: str
    access_key_id: str
    secret_access_key: SecretStr
    queue_url: str

    def get_aws_config(self) -> dict[str, Any]:
        """Get keyword arguments for boto3 client construction."""
        return {
            "region_name": self.region,
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key.get_secret_value(),
            "aws_session_token": config("AWS_SESSION_TOKEN", default=None),
        }


def read_required(name: str) -> str:
    """Read a required setting, raising ConfigurationError when blank."""
    from .error_handler import ConfigurationError

    value = config(name, default="")
    if not value or not str(value).strip():
        raise ConfigurationError(f"Missing {name} environment variable", setting=name)
    return str(value)


def resolve_config() -> EntrypointConfig:
    """
    Resolve the entrypoint configuration from the current environment.

    Returns:
        EntrypointConfig populated from the required environment variables

    Raises:
        ConfigurationError: for the first required variable that is unset or empty
    """
    values = {name: read_required(name) for name in REQUIRED_SETTINGS}
    return EntrypointConfig(
        table_name=values["ENTITY_TABLE_NAME"],
        region=values["AWS_REGION"],
        access_key_id=values["AWS_ACCESS_KEY_ID"],
        secret_access_key=SecretStr(values["AWS_SECRET_ACCESS_KEY"]),
        queue_url=values["QUEUE_URL"],
    )


# Global settings instance
settings = Settings()

