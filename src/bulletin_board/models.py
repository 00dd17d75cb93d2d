"""
Data models for bulletin-board.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RecordType(str, Enum):
    """The two kinds of bulletin record."""

    SUGGESTION = "Suggestion"
    SUPPORT = "Support Request"

    @classmethod
    def from_string(cls, value: str) -> "RecordType":
        """Create RecordType from its display value."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(
                f"Invalid record type: {value}. Must be one of: {', '.join(t.value for t in cls)}"
            ) from None


class Tab(str, Enum):
    """Board tabs."""

    SUGGESTIONS = "suggestions"
    SUPPORT = "support"

    @property
    def record_type(self) -> RecordType:
        return RecordType.SUGGESTION if self is Tab.SUGGESTIONS else RecordType.SUPPORT


class DetailState(str, Enum):
    """Lifecycle of the detail panel."""

    CLOSED = "closed"
    LOADING = "loading"
    OPEN = "open"


class ModalState(str, Enum):
    """Lifecycle of the submission modal."""

    CLOSED = "closed"
    OPEN = "open"


class ViewMode(str, Enum):
    """Record list render modes."""

    TABLE = "table"
    KANBAN = "kanban"


# Owner scope values sent to the list endpoints
OWNER_ANY = "ANY"
OWNER_ME = "ME"
OWNER_UNASSIGNED = "UNASSIGNED"
OWNER_USER_PREFIX = "USER:"

# Used when the service cannot supply a status vocabulary
DEFAULT_STATUSES: dict[RecordType, list[str]] = {
    RecordType.SUGGESTION: ["Under Review", "Accepted", "Rejected", "Implemented"],
    RecordType.SUPPORT: ["New", "In Review", "In Progress", "Done", "Closed"],
}


def user_scope(user_id: str) -> str:
    """Owner scope selecting one specific user."""
    return f"{OWNER_USER_PREFIX}{user_id}"


def is_valid_owner_scope(value: str | None) -> bool:
    """Check a value against ANY, ME, UNASSIGNED or USER:<id>."""
    if not value:
        return False
    if value in (OWNER_ANY, OWNER_ME, OWNER_UNASSIGNED):
        return True
    return value.startswith(OWNER_USER_PREFIX) and len(value) > len(OWNER_USER_PREFIX)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp from the service."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class Option:
    """An id/name pair: a category, a status option or a user."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Option":
        return cls(id=str(data.get("id", "")), name=data.get("name") or "")

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass
class RoleContext:
    """The current user's role and the rosters used for owner scoping."""

    is_admin: bool = False
    user_id: str | None = None
    admin_users: list[Option] = field(default_factory=list)
    bulletin_users: list[Option] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "RoleContext":
        data = data or {}
        return cls(
            is_admin=bool(data.get("isAdmin")),
            user_id=data.get("userId"),
            admin_users=[Option.from_dict(u) for u in data.get("adminUsers") or []],
            bulletin_users=[Option.from_dict(u) for u in data.get("bulletinUsers") or []],
        )


@dataclass
class Record:
    """A Suggestion or Support Request."""

    id: str
    record_number: str
    type: RecordType
    title: str
    status: str
    description_html: str = ""
    priority: str | None = None
    owner_id: str | None = None
    owner_name: str | None = None
    created_by_id: str | None = None
    created_by_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    categories: list[str] = field(default_factory=list)
    comment_count: int = 0

    @property
    def is_support(self) -> bool:
        return self.type is RecordType.SUPPORT

    @property
    def category_text(self) -> str:
        return ", ".join(self.categories)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Record":
        """Create Record from the service's JSON representation."""
        return cls(
            id=str(data["id"]),
            record_number=data.get("recordNumber") or "",
            type=RecordType.from_string(data.get("type", RecordType.SUGGESTION.value)),
            title=data.get("title") or "",
            status=data.get("status") or "",
            description_html=data.get("descriptionHtml") or "",
            priority=data.get("priority"),
            owner_id=data.get("ownerId"),
            owner_name=data.get("ownerName"),
            created_by_id=data.get("createdById"),
            created_by_name=data.get("createdByName"),
            created_at=parse_timestamp(data.get("createdDate")),
            updated_at=parse_timestamp(data.get("updatedDate")),
            categories=list(data.get("categories") or []),
            comment_count=int(data.get("commentCount") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert record back to the service's JSON representation."""
        return {
            "id": self.id,
            "recordNumber": self.record_number,
            "type": self.type.value,
            "title": self.title,
            "status": self.status,
            "descriptionHtml": self.description_html,
            "priority": self.priority,
            "ownerId": self.owner_id,
            "ownerName": self.owner_name,
            "createdById": self.created_by_id,
            "createdByName": self.created_by_name,
            "createdDate": self.created_at.isoformat() if self.created_at else None,
            "updatedDate": self.updated_at.isoformat() if self.updated_at else None,
            "categories": list(self.categories),
            "commentCount": self.comment_count,
        }


@dataclass
class Comment:
    """A comment in a record's thread."""

    id: str
    request_id: str
    body: str
    author_name: str | None = None
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=str(data["id"]),
            request_id=str(data.get("requestId", "")),
            body=data.get("body") or "",
            author_name=data.get("createdByName"),
            created_at=parse_timestamp(data.get("createdDate")),
        )


@dataclass
class Filters:
    """Per-tab list filters as sent to the list endpoints."""

    search: str = ""
    status: str = ""
    category_name: str = ""
    owner_scope: str = OWNER_ANY
    page_size: int = 50

    def to_payload(self) -> dict[str, Any]:
        """Wire shape: {search, status, categoryName, ownerScope, pageSize}."""
        return {
            "search": self.search,
            "status": self.status,
            "categoryName": self.category_name,
            "ownerScope": self.owner_scope,
            "pageSize": self.page_size,
        }
