"""
Test configuration and fixtures for ChatDesk.

Services are wired exactly as in production by `build_context`, but over
an in-memory storage gateway and a mocked WhatsiPlus transport.
"""

import pytest
from unittest.mock import patch

from fastapi.testclient import TestClient

from chatdesk.config.settings import Settings
from chatdesk.context import build_context
from chatdesk.domain.models import UserRole
from tests.fakes import FakeReplyService, FakeWhatsiPlus, InMemoryStorageGateway


ADMIN_KEY = "test-admin-key"


# =============================================================================
# Infrastructure Fixtures
# =============================================================================

@pytest.fixture
def test_settings():
    """Settings with background jobs disabled."""
    return Settings(
        _env_file=None,
        admin_api_key=ADMIN_KEY,
        ingestion_enabled=False,
        subscription_job_enabled=False,
        whatsapp_api_base_url="https://whatsiplus.test",
    )


@pytest.fixture
def storage():
    return InMemoryStorageGateway()


@pytest.fixture
def whatsiplus():
    return FakeWhatsiPlus()


@pytest.fixture
def reply_service():
    return FakeReplyService()


@pytest.fixture
def context(test_settings, storage, whatsiplus, reply_service):
    """Fully wired application context."""
    return build_context(
        test_settings,
        storage,
        transport=whatsiplus.transport,
        reply_service=reply_service,
    )


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(context, test_settings):
    """FastAPI application bound to the test context."""
    from chatdesk.main import app

    app.state.context = context
    with patch("chatdesk.api.dependencies.get_settings", return_value=test_settings):
        yield app
    app.state.context = None


@pytest.fixture
def client(app):
    """Synchronous test client (lifespan not started)."""
    return TestClient(app)


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def admin(storage):
    return storage.add_user("admin", role=UserRole.ADMIN, phone="09120000000")


@pytest.fixture
def operator(storage):
    """Level-1 operator that parents auto-registered accounts."""
    return storage.add_user("operator", role=UserRole.LEVEL_1, phone="09121111111")


@pytest.fixture
def default_plan(storage):
    return storage.add_plan("Trial", is_default=True, user_level=UserRole.LEVEL_2)

