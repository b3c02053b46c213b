"""
Unit tests for PermissionService.
"""

import pytest
from datetime import date

from assettrail.errors import PermissionDenied
from assettrail.records import Asset, User
from assettrail.services import PermissionService


@pytest.fixture
def permissions(memory_store):
    memory_store.save(User(user_id="admin-1", fullname="Ada Admin", role="admin"))
    memory_store.save(User(user_id="user-1", fullname="Uma One"))
    memory_store.save(User(user_id="user-2", fullname="Theo Two"))
    asset = Asset(asset_id="asset-1", name="ThinkPad", category_id=None, serial_number="LT-1")
    asset.hand_over("user-1", date(2024, 1, 10))
    memory_store.save(asset)
    return PermissionService(memory_store)


class TestPermissionService:
    """Admins see and change everything; assignees see their own assets."""

    def test_is_admin(self, permissions):
        assert permissions.is_admin("admin-1")
        assert not permissions.is_admin("user-1")
        assert not permissions.is_admin("ghost")
        assert not permissions.is_admin(None)

    def test_ensure_admin(self, permissions):
        permissions.ensure_admin("admin-1")
        with pytest.raises(PermissionDenied) as exc:
            permissions.ensure_admin("user-1")
        assert exc.value.http_status == 403

    def test_history_visible_to_admin_and_assignee(self, permissions):
        permissions.ensure_can_view_history("admin-1", "asset-1")
        permissions.ensure_can_view_history("user-1", "asset-1")

        with pytest.raises(PermissionDenied) as exc:
            permissions.ensure_can_view_history("user-2", "asset-1")
        assert "history" in exc.value.message

    def test_asset_visibility(self, permissions):
        permissions.ensure_can_view_asset("user-1", "asset-1")
        with pytest.raises(PermissionDenied):
            permissions.ensure_can_view_asset("user-2", "asset-1")
        with pytest.raises(PermissionDenied):
            permissions.ensure_can_view_asset("user-1", "missing")
