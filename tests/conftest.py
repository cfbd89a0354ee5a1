"""
pytest configuration for secure_config tests.

Adds src directory to Python path for imports and provides shared fixtures.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from secure_config.logging.context import clear_log_context  # noqa: E402
from secure_config.secrets.models import SecretMetadata, SecretRecord  # noqa: E402

API_METADATA = [
    ("Instance", "https://login.microsoftonline.com/{0}"),
    ("TenantId", "tid-1"),
    ("ClientId", "cid-1"),
    ("ClientSecret", "s3cr3t"),
    ("BaseAddress", "https://api.example.com"),
    ("Endpoint", "/v1"),
    ("ResourceID", "api://orders/.default"),
]


@pytest.fixture
def api_secret():
    """Orders.Api secret carrying complete AuthCredential metadata."""
    return SecretRecord(
        name="Orders.Api",
        value="",
        category="Api",
        description="Orders API",
        metadata=[SecretMetadata(name, value) for name, value in API_METADATA],
    )


@pytest.fixture
def restore_root_logger():
    """Remove handlers a test installs on the root logger and restore its level."""
    root = logging.getLogger()
    level = root.level
    yield root
    # pytest attaches its own capture handlers per phase; leave those alone
    for handler in list(root.handlers):
        if type(handler).__module__.startswith("_pytest"):
            continue
        root.removeHandler(handler)
        handler.close()
    root.setLevel(level)
    clear_log_context()
