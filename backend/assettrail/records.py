"""
Storage-independent records for assets, users and history events.

HistoryEvent is a sum type of two frozen dataclasses. Code that consumes
history branches on the variant with isinstance and treats any other type
as a programming error.
"""

import enum
import uuid
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Union

from assettrail.errors import ValidationError

# Collection names shared by every store backend
USERS = "app_user"
ASSETS = "asset"
HISTORY = "asset_history"

UNKNOWN_USER = "Unknown User"


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every backend stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return uuid.uuid4().hex


def parse_date(value: Union[date, datetime, str, None], field_name: str = "date") -> date:
    """Accept a date, a datetime or an ISO-8601 string."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}: {value!r}")


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class AssetStatus(str, enum.Enum):
    FREE = "free"
    USING = "using"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"

    @classmethod
    def parse(cls, value: Union["AssetStatus", str, None]) -> "AssetStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        allowed = ", ".join(s.value for s in cls)
        raise ValidationError(f"Invalid status: {value!r} (expected one of {allowed})")


@dataclass
class User:
    user_id: str
    fullname: Optional[str] = None
    email: Optional[str] = None
    role: str = "employee"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        return self.fullname or UNKNOWN_USER


@dataclass
class Asset:
    """Current state of a tracked item."""

    asset_id: str
    name: str
    category_id: Optional[str]
    serial_number: str
    status: AssetStatus = AssetStatus.FREE
    quantity: int = 1
    remark: Optional[str] = None
    assignee_id: Optional[str] = None
    handover_date: Optional[date] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_assigned(self) -> bool:
        return self.assignee_id is not None

    def hand_over(self, user_id: str, handover_date: date) -> None:
        self.assignee_id = user_id
        self.handover_date = handover_date
        self.status = AssetStatus.USING

    def release(self) -> Optional[str]:
        """Clear the holder and return who held the asset."""
        holder = self.assignee_id
        self.assignee_id = None
        self.handover_date = None
        return holder

    def check_invariants(self) -> None:
        if (self.assignee_id is None) != (self.handover_date is None):
            raise ValidationError(
                f"Asset {self.asset_id}: assignee and handover date must be set together"
            )
        if self.status == AssetStatus.FREE and self.assignee_id is not None:
            raise ValidationError(f"Asset {self.asset_id}: a free asset cannot have a holder")
        if not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValidationError(f"Asset {self.asset_id}: quantity must be an integer >= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses."""
        return {
            "id": self.asset_id,
            "name": self.name,
            "category_id": self.category_id,
            "serial_number": self.serial_number,
            "status": self.status.value,
            "quantity": self.quantity,
            "remark": self.remark,
            "assignee_id": self.assignee_id,
            "handover_date": self.handover_date.isoformat() if self.handover_date else None,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class AssignmentEvent:
    kind: ClassVar[str] = "assignment"

    event_id: str
    asset_id: str
    assigned_to: str
    handover_date: date
    assigned_by: str
    previous_user: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class StatusChangeEvent:
    kind: ClassVar[str] = "status_change"

    event_id: str
    asset_id: str
    new_status: AssetStatus
    previous_status: Optional[AssetStatus]
    changed_by: str
    change_date: datetime
    previous_user: Optional[str] = None
    unassigned_date: Optional[datetime] = None
    created_at: Optional[datetime] = None


HistoryEvent = Union[AssignmentEvent, StatusChangeEvent]

EVENT_TYPES = {
    AssignmentEvent.kind: AssignmentEvent,
    StatusChangeEvent.kind: StatusChangeEvent,
}


def collection_for(record: Any) -> str:
    if isinstance(record, Asset):
        return ASSETS
    if isinstance(record, (AssignmentEvent, StatusChangeEvent)):
        return HISTORY
    if isinstance(record, User):
        return USERS
    raise TypeError(f"Not a storable record: {type(record).__name__}")


def record_id(record: Any) -> str:
    if isinstance(record, Asset):
        return record.asset_id
    if isinstance(record, (AssignmentEvent, StatusChangeEvent)):
        return record.event_id
    if isinstance(record, User):
        return record.user_id
    raise TypeError(f"Not a storable record: {type(record).__name__}")


# -----------------------------------------------------------------------------
# Document mapping (Firestore and in-memory backends)
# -----------------------------------------------------------------------------

def to_document(record: Any) -> Dict[str, Any]:
    """Flatten a record into a JSON-friendly dict. Dates become ISO strings."""
    doc = asdict(record)
    for key, value in doc.items():
        if isinstance(value, enum.Enum):
            doc[key] = value.value
        elif isinstance(value, date) and not isinstance(value, datetime):
            doc[key] = value.isoformat()
    if isinstance(record, (AssignmentEvent, StatusChangeEvent)):
        doc["kind"] = record.kind
    return doc


def from_document(collection: str, doc: Dict[str, Any]) -> Any:
    if collection == USERS:
        return User(**_known(User, doc))
    if collection == ASSETS:
        data = _known(Asset, doc)
        data["status"] = AssetStatus.parse(data.get("status"))
        if data.get("handover_date") is not None:
            data["handover_date"] = parse_date(data["handover_date"], "handover_date")
        for key in ("created_at", "updated_at"):
            data[key] = _naive_utc(data.get(key))
        return Asset(**data)
    if collection == HISTORY:
        return event_from_document(doc)
    raise ValueError(f"Unknown collection: {collection}")


def event_from_document(doc: Dict[str, Any]) -> HistoryEvent:
    kind = doc.get("kind")
    event_type = EVENT_TYPES.get(kind)
    if event_type is None:
        raise ValueError(f"Unknown history event kind: {kind!r}")
    data = _known(event_type, doc)
    data["created_at"] = _naive_utc(data.get("created_at"))
    if event_type is AssignmentEvent:
        data["handover_date"] = parse_date(data["handover_date"], "handover_date")
    else:
        data["new_status"] = AssetStatus.parse(data["new_status"])
        if data.get("previous_status") is not None:
            data["previous_status"] = AssetStatus.parse(data["previous_status"])
        data["change_date"] = _naive_utc(data["change_date"])
        data["unassigned_date"] = _naive_utc(data.get("unassigned_date"))
    return event_type(**data)


def _known(record_type: type, doc: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(record_type)}
    return {key: value for key, value in doc.items() if key in names}
