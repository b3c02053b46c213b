"""
SQLAlchemy models for the asset trail core.

These are the PostgreSQL tables behind the SQL entity store.
"""

from .user import UserRow
from .asset import AssetRow
from .history import AssetHistoryRow, AssignmentRow, StatusChangeRow

__all__ = [
    "UserRow",
    "AssetRow",
    "AssetHistoryRow",
    "AssignmentRow",
    "StatusChangeRow",
]
