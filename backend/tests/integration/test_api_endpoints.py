"""
Integration tests for the admin API endpoints.

Tests the full request/response cycle against the in-memory gateway.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from chatdesk.config.settings import Settings
from chatdesk.domain.models import MessageStatus, UserRole
from chatdesk.domain.subscription import GrantStatus
from chatdesk.infrastructure.db.models.settings import DEFAULT_AI_NAME
from tests.fakes import upstream_message


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()

    def test_health_endpoint(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "chatdesk"}


class TestAdminAuth:
    """X-Admin-Key protection."""

    def test_missing_key(self, client: TestClient):
        response = client.get("/api/admin/whatsapp/status")
        assert response.status_code == 422

    def test_wrong_key(self, client: TestClient):
        response = client.get("/api/admin/whatsapp/status", headers={"X-Admin-Key": "nope"})
        assert response.status_code == 403

    def test_key_not_configured(self, client: TestClient):
        with patch(
            "chatdesk.api.dependencies.get_settings",
            return_value=Settings(_env_file=None, admin_api_key=None),
        ):
            response = client.get("/api/admin/whatsapp/status", headers={"X-Admin-Key": "anything"})
        assert response.status_code == 503

    def test_context_not_initialized(self, app, client: TestClient, admin_headers):
        app.state.context = None
        response = client.get("/api/admin/whatsapp/status", headers=admin_headers)
        assert response.status_code == 503


class TestIngestionEndpoints:
    """Polling loop status and manual trigger."""

    def test_status(self, client: TestClient, admin_headers, reply_service):
        reply_service.active = False

        response = client.get("/api/admin/whatsapp/status", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "is_running": False,
            "is_fetching": False,
            "last_fetch_time": None,
            "gemini_active": False,
        }

    def test_manual_fetch(self, client: TestClient, admin_headers, storage, whatsiplus, admin, operator):
        storage.set_whatsapp_token("global-tok")
        whatsiplus.inboxes["global-tok"] = [upstream_message("m1", "989121234567")]

        response = client.post("/api/admin/whatsapp/fetch", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["last_fetch_time"] is not None

        page = client.get(
            "/api/admin/messages/received",
            params={"user_id": str(admin.id)},
            headers=admin_headers,
        ).json()
        assert page["total"] == 1
        assert page["messages"][0]["upstream_id"] == "m1"


class TestMessageEndpoints:
    """Inbound and outbound logs."""

    def test_received_pagination(self, client: TestClient, admin_headers, storage, operator):
        for i in range(9):
            storage.add_inbound(operator, f"m{i}")

        first = client.get(
            "/api/admin/messages/received",
            params={"user_id": str(operator.id)},
            headers=admin_headers,
        ).json()
        second = client.get(
            "/api/admin/messages/received",
            params={"user_id": str(operator.id), "page": 2},
            headers=admin_headers,
        ).json()

        assert first["total"] == 9
        assert first["total_pages"] == 2
        assert len(first["messages"]) == 7
        assert first["messages"][0]["upstream_id"] == "m8"
        assert [m["upstream_id"] for m in second["messages"]] == ["m1", "m0"]

    def test_mark_read(self, client: TestClient, admin_headers, storage, operator):
        record = storage.add_inbound(operator, "m1")

        response = client.put(f"/api/admin/messages/received/{record.id}/read", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "read"
        assert record.status == MessageStatus.READ

    def test_mark_read_unknown(self, client: TestClient, admin_headers):
        response = client.put(
            "/api/admin/messages/received/00000000-0000-0000-0000-000000000000/read",
            headers=admin_headers,
        )
        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_sent_messages(self, client: TestClient, admin_headers, storage, whatsiplus, admin, operator):
        """The welcome message to a new sender is logged for the parent operator."""
        storage.set_whatsapp_token("global-tok")
        whatsiplus.inboxes["global-tok"] = [upstream_message("m1", "989121234567")]
        client.post("/api/admin/whatsapp/fetch", headers=admin_headers)

        response = client.get(
            "/api/admin/messages/sent",
            params={"user_id": str(operator.id)},
            headers=admin_headers,
        )

        assert response.status_code == 200
        [welcome] = response.json()
        assert welcome["recipient"] == "989121234567"
        assert welcome["status"] == "sent"


class TestSettingsEndpoints:
    """Global credentials and per-tenant messaging profile."""

    def test_whatsapp_settings_default(self, client: TestClient, admin_headers):
        response = client.get("/api/admin/whatsapp-settings", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "token": None,
            "is_enabled": False,
            "notifications": [],
            "ai_name": DEFAULT_AI_NAME,
        }

    def test_update_whatsapp_settings_masks_token(self, client: TestClient, admin_headers, storage):
        response = client.put(
            "/api/admin/whatsapp-settings",
            json={"token": "global-token", "ai_name": "Nova"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["token"] == "********oken"
        assert response.json()["ai_name"] == "Nova"
        assert storage.whatsapp_settings.token == "global-token"

    def test_blank_ai_name_resets_to_default(self, client: TestClient, admin_headers, storage):
        storage.set_whatsapp_token("tok").ai_name = "Nova"

        response = client.put(
            "/api/admin/whatsapp-settings", json={"ai_name": "  "}, headers=admin_headers
        )

        assert response.json()["ai_name"] == DEFAULT_AI_NAME

    def test_update_ai_token(self, client: TestClient, admin_headers, storage):
        response = client.put(
            "/api/admin/ai-token", json={"token": " gemini-key "}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json() == {"token": "******-key", "provider": "gemini", "is_active": True}
        assert storage.ai_settings.token == "gemini-key"

    def test_blank_ai_token_rejected(self, client: TestClient, admin_headers):
        response = client.put("/api/admin/ai-token", json={"token": "   "}, headers=admin_headers)
        assert response.status_code == 400

    def test_messaging_profile(self, client: TestClient, admin_headers, operator):
        response = client.put(
            f"/api/admin/users/{operator.id}/messaging",
            json={"whatsapp_token": "op-token", "ai_name": "Sara", "welcome_message": "Hi {firstName}"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["whatsapp_token"] == "****oken"
        assert operator.whatsapp_token == "op-token"
        assert operator.ai_name == "Sara"
        assert operator.welcome_message == "Hi {firstName}"

    def test_empty_value_clears_override(self, client: TestClient, admin_headers, operator):
        operator.ai_name = "Sara"

        client.put(
            f"/api/admin/users/{operator.id}/messaging",
            json={"ai_name": ""},
            headers=admin_headers,
        )

        assert operator.ai_name is None

    def test_personal_token_only_for_level_1(self, client: TestClient, admin_headers, storage):
        customer = storage.add_user("customer", role=UserRole.LEVEL_2)

        response = client.put(
            f"/api/admin/users/{customer.id}/messaging",
            json={"whatsapp_token": "tok"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert customer.whatsapp_token is None

    def test_messaging_profile_unknown_user(self, client: TestClient, admin_headers):
        response = client.put(
            "/api/admin/users/00000000-0000-0000-0000-000000000000/messaging",
            json={"ai_name": "x"},
            headers=admin_headers,
        )
        assert response.status_code == 404


class TestSubscriptionEndpoints:
    """Plans, purchase and countdown."""

    def test_list_plans(self, client: TestClient, admin_headers, storage, default_plan):
        storage.add_plan("Gold", is_active=False)

        all_plans = client.get("/api/admin/subscription-plans", headers=admin_headers).json()
        active = client.get(
            "/api/admin/subscription-plans", params={"active_only": True}, headers=admin_headers
        ).json()

        assert [p["name"] for p in all_plans] == ["Trial", "Gold"]
        assert [p["name"] for p in active] == ["Trial"]

    def test_update_plan(self, client: TestClient, admin_headers, storage):
        plan = storage.add_plan("Silver")

        response = client.put(
            f"/api/admin/subscription-plans/{plan.id}",
            json={"name": "Silver+", "features": ["priority support"]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Silver+"
        assert response.json()["features"] == ["priority support"]

    def test_default_plan_is_read_only(self, client: TestClient, admin_headers, default_plan):
        update = client.put(
            f"/api/admin/subscription-plans/{default_plan.id}",
            json={"name": "Changed"},
            headers=admin_headers,
        )
        delete = client.delete(f"/api/admin/subscription-plans/{default_plan.id}", headers=admin_headers)

        assert update.status_code == 400
        assert delete.status_code == 400

    def test_delete_plan(self, client: TestClient, admin_headers, storage):
        plan = storage.add_plan()

        response = client.delete(f"/api/admin/subscription-plans/{plan.id}", headers=admin_headers)

        assert response.status_code == 204
        assert plan.id not in storage.plans

    def test_subscribe_and_reduce(self, client: TestClient, admin_headers, storage, operator):
        plan = storage.add_plan("Monthly")

        subscribed = client.post(
            "/api/admin/user-subscriptions/subscribe",
            json={"user_id": str(operator.id), "plan_id": str(plan.id)},
            headers=admin_headers,
        )
        assert subscribed.status_code == 201
        assert subscribed.json()["remaining_days"] == 30

        again = client.post(
            "/api/admin/user-subscriptions/subscribe",
            json={"user_id": str(operator.id), "plan_id": str(plan.id)},
            headers=admin_headers,
        )
        assert again.status_code == 400

        reduced = client.post("/api/admin/user-subscriptions/daily-reduction", headers=admin_headers)
        assert reduced.json() == {"updated": 1, "expired": 0}

        grants = client.get(
            "/api/admin/user-subscriptions",
            params={"user_id": str(operator.id), "status": GrantStatus.ACTIVE.value},
            headers=admin_headers,
        ).json()
        assert [g["remaining_days"] for g in grants] == [29]

    def test_subscribe_unknown_plan(self, client: TestClient, admin_headers, operator):
        response = client.post(
            "/api/admin/user-subscriptions/subscribe",
            json={"user_id": str(operator.id), "plan_id": "00000000-0000-0000-0000-000000000000"},
            headers=admin_headers,
        )
        assert response.status_code == 404
