"""
Asset trail services.

- AssetLifecycleService: assign / change_status and asset records
- PreviousHolderResolver: who held an asset before a new assignment
- HistoryLogWriter: append-only history events
- HistoryQueryService: normalized audit trail per asset
- PermissionService: admin / assignee capability checks
"""

from .history_log import HistoryLogWriter
from .previous_holder import PreviousHolderResolver
from .asset_lifecycle import AssetLifecycleService
from .history_query import HistoryQueryService
from .permissions import PermissionService

__all__ = [
    "AssetLifecycleService",
    "PreviousHolderResolver",
    "HistoryLogWriter",
    "HistoryQueryService",
    "PermissionService",
]
