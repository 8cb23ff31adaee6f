"""
pytest configuration for ingestion tests.

Adds src directory to Python path for imports and keeps the process
environment from leaking into config tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

CONFIG_ENV_VARS = (
    "EVENTHUB_NAMESPACE",
    "EVENTHUB_ENTITY_PATH",
    "EVENTHUB_KEY_NAME",
    "EVENTHUB_KEY",
    "EVENTHUB_DOMAIN",
    "EVENTHUB_SAS_TTL_SECONDS",
    "EVENTHUB_MAX_BATCH_BYTES",
    "EVENTHUB_REQUEST_TIMEOUT",
    "EVENTHOUSE_CLUSTER",
    "EVENTHOUSE_DATABASE",
    "EVENTHOUSE_TABLE",
    "EVENTHOUSE_CATEGORY",
    "EVENTHOUSE_CREATE_MERGE",
    "EVENTHOUSE_DETECT_DATETIME_STRINGS",
    "EVENTHOUSE_REQUEST_TIMEOUT",
    "EVENTHOUSE_ACCESS_TOKEN",
    "AZURE_TENANT_ID",
    "AZURE_CLIENT_ID",
    "AZURE_CLIENT_SECRET",
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Remove ingestion env vars so tests only see what they set."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def clean_log_context():
    from core.logging.context import clear_log_context

    clear_log_context()
    yield
    clear_log_context()
