"""
Error kinds raised by the asset lifecycle core.

NotFound, ValidationError and PermissionDenied are caller mistakes (4xx).
PersistenceError and PartialWriteError are infrastructure faults (5xx).
"""

from typing import Any, Dict, Optional


class AssetTrailError(Exception):
    """Base class for every error the core surfaces to its callers."""

    kind = "error"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {"ok": False, "error": self.kind, "message": self.message}


class NotFound(AssetTrailError):
    kind = "not_found"
    http_status = 404

    def __init__(self, record_type: str, record_id: Optional[str]):
        super().__init__(f"{record_type} '{record_id}' does not exist")
        self.record_type = record_type
        self.record_id = record_id


class ValidationError(AssetTrailError):
    kind = "validation_error"
    http_status = 400


class PermissionDenied(AssetTrailError):
    kind = "permission_denied"
    http_status = 403


class PersistenceError(AssetTrailError):
    """A store call failed or timed out."""

    kind = "persistence_error"
    http_status = 503


class PartialWriteError(PersistenceError):
    """
    One of the two writes of a mutation landed and the other did not.

    The live asset state and the audit trail are out of sync until an
    operator reconciles them; the core never repairs this on its own.
    """

    kind = "partial_write"
    http_status = 500

    def __init__(self, message: str, asset_id: str, asset_written: bool):
        super().__init__(message)
        self.asset_id = asset_id
        self.asset_written = asset_written

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["asset_id"] = self.asset_id
        data["asset_written"] = self.asset_written
        return data
