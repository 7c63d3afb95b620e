"""
Pytest configuration and shared fixtures for the entrypoint tests.

Environment variables are set before any ``src`` import so that the settings
module picks up test values when it is first loaded.
"""

import os
from unittest.mock import AsyncMock, Mock, patch

import pytest

# CRITICAL: Set test environment variables IMMEDIATELY before any imports
TEST_ENV_VARS = {
    "ENTITY_TABLE_NAME": "test-entity-table",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing-key-id",
    "AWS_SECRET_ACCESS_KEY": "testing-secret-key",
    "QUEUE_URL": "https://sqs.us-east-1.amazonaws.com/123456789012/test-queue",
    "IS_TEST_ENV": "true",
    "LOG_LEVEL": "DEBUG",
    "AWS_LAMBDA_FUNCTION_NAME": "",  # Not in Lambda during tests
}

for key, value in TEST_ENV_VARS.items():
    os.environ[key] = value
os.environ.pop("AWS_SESSION_TOKEN", None)


@pytest.fixture(autouse=True)
def entrypoint_env(monkeypatch):
    """Reset the required environment for every test; tests remove what they need."""
    for key, value in TEST_ENV_VARS.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("AWS_SESSION_TOKEN", raising=False)
    yield monkeypatch


@pytest.fixture
def entrypoint_config():
    """A resolved configuration built from the test environment."""
    from src.settings import resolve_config

    return resolve_config()


@pytest.fixture
def mock_table_inspector():
    """Patch the handler's TableInspector; the table exists unless a test says otherwise."""
    with patch("src.lambda_function.TableInspector") as inspector_cls:
        inspector = Mock()
        inspector.has_table = AsyncMock(return_value=True)
        inspector_cls.return_value = inspector
        yield inspector_cls


@pytest.fixture
def mock_processor():
    """Patch the default processing delegate."""
    with patch("src.lambda_function.process_items", new_callable=AsyncMock) as proc:
        yield proc


@pytest.fixture
def mock_log_error():
    """Patch the handler's error logger."""
    with patch("src.lambda_function.log_error") as log_error:
        yield log_error


@pytest.fixture
def make_sqs_event():
    """Build a minimal SQS event with one record per body."""

    def build(*bodies: str) -> dict:
        return {
            "Records": [
                {
                    "messageId": f"msg-{index}",
                    "body": body,
                    "eventSource": "aws:sqs",
                    "awsRegion": "us-east-1",
                }
                for index, body in enumerate(bodies)
            ]
        }

    return build


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "aws: mark test as requiring AWS services")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add default markers."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif not any(mark.name in ["integration"] for mark in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
