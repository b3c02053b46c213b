"""
Unit tests for the asset API endpoints.

Runs the Flask app against an in-memory store; the caller is identified by
the X-User-Id header.
"""

import pytest
from unittest.mock import patch

from assettrail.errors import PartialWriteError
from assettrail.records import User
from assettrail.store import MemoryEntityStore, set_entity_store
from server import create_app


ADMIN = {"X-User-Id": "admin-1"}
EMPLOYEE = {"X-User-Id": "user-1"}


@pytest.fixture
def store():
    store = MemoryEntityStore()
    store.save(User(user_id="admin-1", fullname="Ada Admin", role="admin"))
    store.save(User(user_id="user-1", fullname="Uma One"))
    store.save(User(user_id="user-2", fullname="Theo Two"))
    set_entity_store(store)
    return store


@pytest.fixture
def client(store):
    app = create_app()
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def asset_id(client):
    response = client.post(
        '/api/v1/assets',
        json={"name": "ThinkPad T14", "serial_number": "LT-0001", "category_id": "laptop"},
        headers=ADMIN,
    )
    assert response.status_code == 201
    return response.get_json()["asset"]["id"]


# =============================================================================
# Asset records
# =============================================================================

class TestAssetEndpoints:
    """Tests for create / get / update."""

    def test_create_requires_admin(self, client):
        response = client.post('/api/v1/assets', json={"name": "Dock", "serial_number": "DK-1"}, headers=EMPLOYEE)

        assert response.status_code == 403
        assert response.get_json() == {
            "ok": False,
            "error": "permission_denied",
            "message": "You do not have permission to perform this action.",
        }

    def test_missing_caller_is_401(self, client):
        response = client.post('/api/v1/assets', json={"name": "Dock", "serial_number": "DK-1"})
        assert response.status_code == 401

    def test_create_validation_error(self, client):
        response = client.post('/api/v1/assets', json={"name": "Dock", "serial_number": "DK-1", "quantity": 0}, headers=ADMIN)

        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"

    def test_create_rejects_non_text_name(self, client):
        response = client.post('/api/v1/assets', json={"name": 123, "serial_number": "DK-1"}, headers=ADMIN)

        assert response.status_code == 400
        assert response.get_json()["error"] == "validation_error"

    def test_rejected_patch_keeps_status(self, client, asset_id):
        client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )
        response = client.patch(f'/api/v1/assets/{asset_id}', json={"status": "free", "quantity": 0}, headers=ADMIN)
        assert response.status_code == 400

        asset = client.get(f'/api/v1/assets/{asset_id}', headers=ADMIN).get_json()["asset"]
        assert asset["status"] == "using"
        assert asset["assignee_id"] == "user-1"
        history = client.get(f'/api/v1/assets/{asset_id}/history', headers=ADMIN).get_json()["history"]
        assert len(history) == 1

    def test_get_asset(self, client, asset_id):
        response = client.get(f'/api/v1/assets/{asset_id}', headers=ADMIN)

        assert response.status_code == 200
        data = response.get_json()
        assert data["ok"] is True
        assert data["asset"]["status"] == "free"
        assert data["asset"]["assignee_id"] is None

    def test_get_unknown_asset(self, client):
        response = client.get('/api/v1/assets/missing', headers=ADMIN)
        assert response.status_code == 404

    def test_patch_status_is_recorded(self, client, asset_id):
        response = client.patch(f'/api/v1/assets/{asset_id}', json={"status": "maintenance"}, headers=ADMIN)
        assert response.status_code == 200
        assert response.get_json()["asset"]["status"] == "maintenance"

        history = client.get(f'/api/v1/assets/{asset_id}/history', headers=ADMIN).get_json()["history"]
        assert [entry["type"] for entry in history] == ["status_change"]


# =============================================================================
# Lifecycle
# =============================================================================

class TestLifecycleEndpoints:
    """Tests for assign, status and history."""

    def test_assign_and_reassign(self, client, asset_id):
        first = client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )
        assert first.status_code == 200
        assert first.get_json()["previous_user"] is None
        assert first.get_json()["event"]["type"] == "assignment"

        second = client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-2", "handover_date": "2024-02-01"},
            headers=ADMIN,
        )
        assert second.get_json()["previous_user"] == "user-1"

    def test_assign_bad_date(self, client, asset_id):
        response = client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "yesterday"},
            headers=ADMIN,
        )
        assert response.status_code == 400

    def test_status_free_reports_released_user(self, client, asset_id):
        client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )
        response = client.post(f'/api/v1/assets/{asset_id}/status', json={"status": "free"}, headers=ADMIN)

        assert response.status_code == 200
        assert response.get_json()["released_user"] == "user-1"

    def test_history_visible_to_assignee_only(self, client, asset_id):
        client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )

        own = client.get(f'/api/v1/assets/{asset_id}/history', headers=EMPLOYEE)
        assert own.status_code == 200
        data = own.get_json()
        assert data["asset_id"] == asset_id
        assert data["history"][0]["assigned_to"] == {"id": "user-1", "fullname": "Uma One"}

        other = client.get(f'/api/v1/assets/{asset_id}/history', headers={"X-User-Id": "user-2"})
        assert other.status_code == 403

    def test_partial_write_is_reported(self, client, asset_id):
        error = PartialWriteError("history lost", asset_id=asset_id, asset_written=True)
        with patch('assettrail.services.asset_lifecycle.AssetLifecycleService.change_status', side_effect=error):
            response = client.post(f'/api/v1/assets/{asset_id}/status', json={"status": "retired"}, headers=ADMIN)

        assert response.status_code == 500
        data = response.get_json()
        assert data["error"] == "partial_write"
        assert data["asset_written"] is True

    def test_assets_for_user(self, client, asset_id):
        client.post(
            f'/api/v1/assets/{asset_id}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )

        own = client.get('/api/v1/users/user-1/assets', headers=EMPLOYEE)
        assert [a["id"] for a in own.get_json()["assets"]] == [asset_id]

        other = client.get('/api/v1/users/user-1/assets', headers={"X-User-Id": "user-2"})
        assert other.status_code == 403


# =============================================================================
# Listing
# =============================================================================

class TestListEndpoint:
    """Admins list every asset; other users only what they hold."""

    def _create(self, client, serial, **extra):
        response = client.post('/api/v1/assets', json={"name": "Item", "serial_number": serial, **extra}, headers=ADMIN)
        return response.get_json()["asset"]["id"]

    def test_admin_sees_all_newest_first(self, client):
        first = self._create(client, "SN-1")
        second = self._create(client, "SN-2", category_id="monitor")

        response = client.get('/api/v1/assets', headers=ADMIN)
        assert response.status_code == 200
        assert [a["id"] for a in response.get_json()["assets"]] == [second, first]

        filtered = client.get('/api/v1/assets?category_id=monitor', headers=ADMIN).get_json()["assets"]
        assert [a["id"] for a in filtered] == [second]

    def test_employee_sees_only_held_assets(self, client):
        held = self._create(client, "SN-1")
        self._create(client, "SN-2")
        client.post(
            f'/api/v1/assets/{held}/assign',
            json={"user_id": "user-1", "handover_date": "2024-01-10"},
            headers=ADMIN,
        )

        own = client.get('/api/v1/assets', headers=EMPLOYEE).get_json()["assets"]
        assert [a["id"] for a in own] == [held]

        other = client.get('/api/v1/assets', headers={"X-User-Id": "user-2"}).get_json()["assets"]
        assert other == []

    def test_bad_query_parameters(self, client):
        assert client.get('/api/v1/assets?status=lost', headers=ADMIN).status_code == 400
        assert client.get('/api/v1/assets?limit=0', headers=ADMIN).status_code == 400
        assert client.get('/api/v1/assets?limit=ten', headers=ADMIN).status_code == 400

    def test_requires_caller(self, client):
        assert client.get('/api/v1/assets').status_code == 401


class TestHealth:

    def test_health(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.get_json()["status"] == "ok"
