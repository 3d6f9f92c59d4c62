"""
Shared pytest fixtures for qixin-mcp tests.

No test here talks to the real Qixin API: HTTP goes through
httpx.MockTransport (see helpers.py) and backoff sleeps are recorded
instead of awaited.
"""

import pytest

from config import Settings
from models import Credentials

from tests.helpers import FakeSleep

APP_KEY = "test-app-key-0001"
SECRET_KEY = "test-secret-key-0001"
BASE_URL = "https://api.test/APIService"


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_key=APP_KEY, secret_key=SECRET_KEY)


@pytest.fixture
def settings() -> Settings:
    """Settings as load_settings() would build them for stdio."""
    return Settings(
        app_key=APP_KEY,
        secret_key=SECRET_KEY,
        base_url=BASE_URL,
        timeout_ms=5000,
        max_retries=3,
    )


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
