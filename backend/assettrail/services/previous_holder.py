"""
Previous-Holder Resolver.

Works out who held an asset right before a new assignment.

Resolution strategies (in order):
1. The asset's live assignee, when set and different from the new assignee
2. Fallback to the history log: the most recent assignment event for the
   asset whose target differs from the new assignee

The live state is only a snapshot; it can be missing or stale (for example
after a write that updated the asset but never reached the log), so the
fallback rebuilds the answer from the immutable history.
"""

import logging
from typing import Optional

from assettrail.records import HISTORY, Asset, AssignmentEvent
from assettrail.store import EQ, NE, EntityStore, Filter, get_entity_store


class PreviousHolderResolver:

    def __init__(self, store: Optional[EntityStore] = None):
        self._store = store
        self.logger = logging.getLogger("service.PreviousHolderResolver")

    @property
    def store(self) -> EntityStore:
        if self._store is None:
            self._store = get_entity_store()
        return self._store

    def resolve(self, asset: Asset, new_user_id: str) -> Optional[str]:
        """
        Return the previous holder's user id, or None.

        None means "no previous holder" (first-ever assignment), not an error.
        """
        if asset.assignee_id and asset.assignee_id != new_user_id:
            return asset.assignee_id

        self.logger.debug(
            f"Live state inconclusive for asset {asset.asset_id} "
            f"(assignee={asset.assignee_id}); falling back to history"
        )
        return self.last_other_assignee(asset.asset_id, new_user_id)

    def last_other_assignee(self, asset_id: str, new_user_id: str) -> Optional[str]:
        """Most recent assignment target for the asset other than ``new_user_id``."""
        matches = self.store.find(
            HISTORY,
            filters=[
                Filter("asset_id", EQ, asset_id),
                Filter("kind", EQ, AssignmentEvent.kind),
                Filter("assigned_to", NE, new_user_id),
            ],
            order_by="created_at",
            descending=True,
            limit=1,
        )
        if not matches:
            return None
        return matches[0].assigned_to
