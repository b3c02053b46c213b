"""
PermissionService: capability checks the HTTP layer runs before calling
the lifecycle core.
"""

from typing import Optional

from assettrail.errors import PermissionDenied
from assettrail.records import ASSETS, USERS
from assettrail.store import EntityStore, get_entity_store


class PermissionService:

    def __init__(self, store: Optional[EntityStore] = None):
        self._store = store

    @property
    def store(self) -> EntityStore:
        if self._store is None:
            self._store = get_entity_store()
        return self._store

    def is_admin(self, user_id: Optional[str]) -> bool:
        if not user_id:
            return False
        user = self.store.get(USERS, user_id)
        return user is not None and user.is_admin

    def is_assignee(self, user_id: Optional[str], asset_id: str) -> bool:
        if not user_id:
            return False
        asset = self.store.get(ASSETS, asset_id)
        return asset is not None and asset.assignee_id == user_id

    def ensure_admin(self, user_id: Optional[str]) -> None:
        if not self.is_admin(user_id):
            raise PermissionDenied("You do not have permission to perform this action.")

    def ensure_can_view_asset(self, user_id: Optional[str], asset_id: str) -> None:
        """Admins see every asset; other users only the assets they hold."""
        if self.is_admin(user_id) or self.is_assignee(user_id, asset_id):
            return
        raise PermissionDenied("You do not have permission to view this asset.")

    def ensure_can_view_history(self, user_id: Optional[str], asset_id: str) -> None:
        if self.is_admin(user_id) or self.is_assignee(user_id, asset_id):
            return
        raise PermissionDenied("You do not have permission to view this asset's history.")
