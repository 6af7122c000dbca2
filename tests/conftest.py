"""
Pytest fixtures for SaaS Template tests
"""

import os

# Settings are cached on first use; configure the environment before any app import
os.environ.update({
    "ENVIRONMENT": "test",
    "APP_URL": "http://localhost:8000",
    "SECRET_KEY": "test-secret-key",
    "SUPABASE_URL": "https://project.supabase.co",
    "SUPABASE_ANON_KEY": "anon-key",
    "STRIPE_SECRET_KEY": "sk_test_123",
    "STRIPE_WEBHOOK_SECRET": "whsec_test",
    "STRIPE_PRICE_PRO_MONTHLY": "price_pro_monthly",
    "STRIPE_PRICE_PRO_YEARLY": "price_pro_yearly",
    "STRIPE_PRICE_ENTERPRISE_MONTHLY": "price_enterprise_monthly",
    "STRIPE_PRICE_ENTERPRISE_YEARLY": "",
    "INITIAL_CREDITS": "100",
})

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from saas_template.models.auth import SerializableUser, SerializableSession
from saas_template.services import credits_service, webhook_service
from saas_template.services.session_service import SessionState
from saas_template.utils import redis_client, stripe_client, supabase_client
from saas_template.utils.dependencies import AuthContext


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test."
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Shared clients are rebuilt for every test"""
    yield
    supabase_client._supabase_client = None
    stripe_client._stripe_client = None
    redis_client._redis_client = None
    credits_service._credits_service = None
    webhook_service._webhook_service = None


@pytest.fixture
def user() -> SerializableUser:
    return SerializableUser(
        id="user-123",
        email="test@example.com",
        created_at="2024-01-15T10:00:00+00:00",
    )


@pytest.fixture
def auth_context(user) -> AuthContext:
    return AuthContext(user=user, access_token="access-token")


@pytest.fixture
def new_session() -> SerializableSession:
    return SerializableSession(
        access_token="new-access-token",
        expires_at=2_000_000_000,
        refresh_token="new-refresh-token",
    )


@pytest.fixture
def session_state(user) -> SessionState:
    return SessionState(user=user, access_token="access-token", expires_at=2_000_000_000)


@pytest.fixture
def mock_redis():
    """Mock redis.asyncio client"""
    redis = AsyncMock()
    redis.set.return_value = True
    redis.exists.return_value = 0
    return redis


@pytest.fixture
def client():
    """Anonymous test client"""
    from saas_template.main import app
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def signed_in_client(session_state):
    """Test client whose cookies resolve to session_state"""
    from saas_template.main import app

    with patch(
        "saas_template.utils.dependencies.SessionService.resolve_session",
        new_callable=AsyncMock,
        return_value=session_state,
    ):
        test_client = TestClient(app, follow_redirects=False)
        test_client.cookies.set("sb-access-token", "access-token")
        test_client.cookies.set("sb-refresh-token", "refresh-token")
        test_client.cookies.set("sb-expires-at", "2000000000")
        yield test_client
