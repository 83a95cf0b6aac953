"""
pytest configuration for amsecurity tests.

Adds src directory to Python path for imports and provides shared fixtures
for security configuration tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from core.logging.context import clear_log_context  # noqa: E402
from core.security.identity import LoginIdentity  # noqa: E402


class StaticIdentityProvider:
    """Identity provider returning a fixed identity (or None), counting lookups."""

    def __init__(self, identity=None, error=None):
        self.identity = identity
        self.error = error
        self.calls = 0

    def get_login_identity(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.identity


@pytest.fixture
def make_identity_provider():
    return StaticIdentityProvider


@pytest.fixture
def identity_provider():
    return StaticIdentityProvider(LoginIdentity("app/host.example.com@EXAMPLE.COM"))


@pytest.fixture
def secure_cluster():
    return {"hadoop.security.authentication": "kerberos"}


@pytest.fixture
def insecure_cluster():
    return {"hadoop.security.authentication": "simple"}


@pytest.fixture(autouse=True)
def _clear_log_context():
    clear_log_context()
    yield
    clear_log_context()
