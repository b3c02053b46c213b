"""
HistoryQueryService: caller-facing audit trail for one asset.

Reads every history event of the asset, most recent first, and normalizes
the two event shapes into plain dicts:

    {"type": "assignment", "assigned_to", "previous_user", "handover_date",
     "assigned_by", ...}
    {"type": "status_change", "new_status", "previous_status",
     "previous_user", "changed_by", "change_date", "unassigned_date", ...}

User references render as {"id", "fullname"}; users that no longer
resolve render as "Unknown User" instead of failing the query.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from assettrail.errors import NotFound
from assettrail.records import (
    ASSETS,
    HISTORY,
    UNKNOWN_USER,
    USERS,
    AssignmentEvent,
    HistoryEvent,
    StatusChangeEvent,
)
from assettrail.store import EQ, EntityStore, Filter, get_entity_store


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class HistoryQueryService:

    def __init__(self, store: Optional[EntityStore] = None):
        self._store = store
        self.logger = logging.getLogger("service.HistoryQueryService")

    @property
    def store(self) -> EntityStore:
        if self._store is None:
            self._store = get_entity_store()
        return self._store

    def get_history(self, asset_id: str) -> List[Dict[str, Any]]:
        """
        Return the normalized history of an asset, newest first.

        Raises NotFound for an unknown asset; an asset without history
        returns an empty list. Every call re-reads the full log.
        """
        if self.store.get(ASSETS, asset_id) is None:
            raise NotFound("Asset", asset_id)

        events = self.events_for(asset_id)
        user_names: Dict[str, Optional[str]] = {}
        history = [self._normalize(event, user_names) for event in events]
        self.logger.debug(f"Loaded {len(history)} history events for asset {asset_id}")
        return history

    def events_for(self, asset_id: str) -> List[HistoryEvent]:
        """Raw history events for an asset, newest first."""
        return self.store.find(
            HISTORY,
            filters=[Filter("asset_id", EQ, asset_id)],
            order_by="created_at",
            descending=True,
        )

    def _normalize(self, event: HistoryEvent, user_names: Dict[str, Optional[str]]) -> Dict[str, Any]:
        common = {
            "id": event.event_id,
            "asset_id": event.asset_id,
            "type": event.kind,
            "created_at": _iso(event.created_at),
        }
        if isinstance(event, StatusChangeEvent):
            return {
                **common,
                "new_status": event.new_status.value,
                "previous_status": event.previous_status.value if event.previous_status else None,
                "previous_user": self._user_ref(event.previous_user, user_names),
                "changed_by": self._user_ref(event.changed_by, user_names),
                "change_date": _iso(event.change_date),
                "unassigned_date": _iso(event.unassigned_date),
            }
        if isinstance(event, AssignmentEvent):
            return {
                **common,
                "assigned_to": self._user_ref(event.assigned_to, user_names),
                "previous_user": self._user_ref(event.previous_user, user_names),
                "handover_date": _iso(event.handover_date),
                "assigned_by": self._user_ref(event.assigned_by, user_names),
            }
        raise TypeError(f"Unhandled history event type: {type(event).__name__}")

    def _user_ref(self, user_id: Optional[str], user_names: Dict[str, Optional[str]]) -> Optional[Dict[str, str]]:
        if not user_id:
            return None
        if user_id not in user_names:
            user = self.store.get(USERS, user_id)
            user_names[user_id] = user.fullname if user is not None else None
        return {"id": user_id, "fullname": user_names[user_id] or UNKNOWN_USER}
