"""
Record list projections: a flat table, and a status board for Support.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from .models import DEFAULT_STATUSES, Record, RecordType, ViewMode
from .text import format_date

OpenHandler = Callable[[str], Awaitable[None] | None]
CreateHandler = Callable[[], Awaitable[None] | None]


@dataclass
class BoardColumn:
    """One status column of the kanban view."""

    label: str
    items: list[Record] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.label.lower().replace(" ", "-")


class RecordListView:
    """Read-only projection of the records the controller pushes down."""

    def __init__(
        self,
        record_type: RecordType,
        on_open: OpenHandler | None = None,
        on_create: CreateHandler | None = None,
    ):
        self.record_type = record_type
        self.on_open = on_open
        self.on_create = on_create
        self.records: list[Record] = []
        self.loading = False
        self.mode = ViewMode.TABLE
        self.status_vocabulary: list[str] = list(DEFAULT_STATUSES[record_type])

    @property
    def supports_kanban(self) -> bool:
        return self.record_type is RecordType.SUPPORT

    def set_records(self, records: list[Record]) -> None:
        self.records = list(records)

    def set_status_vocabulary(self, statuses: list[str]) -> None:
        if statuses:
            self.status_vocabulary = list(statuses)

    def show_table(self) -> None:
        self.mode = ViewMode.TABLE

    def show_kanban(self) -> None:
        if not self.supports_kanban:
            raise ValueError("Kanban view is only available for Support Requests")
        self.mode = ViewMode.KANBAN

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    @property
    def column_labels(self) -> list[str]:
        """Table headings, in display order."""
        if self.record_type is RecordType.SUGGESTION:
            return ["#", "Title", "Decision", "Category", "Submitter", "Comments", "Updated"]
        return ["#", "Title", "Priority", "Status", "Category", "Assignee", "Comments", "Updated"]

    def rows(self) -> list[dict[str, Any]]:
        """Table rows in the order the service returned them."""
        rows = []
        for record in self.records:
            row: dict[str, Any] = {
                "id": record.id,
                "number": record.record_number,
                "title": record.title,
                "status": record.status,
                "categoryText": record.category_text,
                "commentCount": record.comment_count,
                "updatedDate": format_date(record.updated_at),
            }
            if record.is_support:
                row["priority"] = record.priority or ""
                row["ownerName"] = record.owner_name or ""
            else:
                row["createdByName"] = record.created_by_name or ""
            rows.append(row)
        return rows

    def columns(self) -> list[BoardColumn]:
        """Group records by status; unknown statuses go to the first column."""
        columns = [BoardColumn(label=label) for label in self.status_vocabulary]
        if not columns:
            return columns
        by_status = {c.label.lower(): c for c in columns}
        for record in self.records:
            column = by_status.get((record.status or "").strip().lower(), columns[0])
            column.items.append(record)
        return columns

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    async def open(self, record_id: str) -> None:
        if not record_id or self.on_open is None:
            return
        result = self.on_open(record_id)
        if inspect.isawaitable(result):
            await result

    async def create_new(self) -> None:
        if self.on_create is None:
            return
        result = self.on_create()
        if inspect.isawaitable(result):
            await result
