"""Shared pytest fixtures for bulletin-board tests."""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest

from bulletin_board.board import BoardController
from bulletin_board.config import BoardConfig
from bulletin_board.models import (
    DEFAULT_STATUSES,
    Comment,
    Filters,
    Option,
    Record,
    RecordType,
    RoleContext,
)
from bulletin_board.notify import Notifier
from bulletin_board.service import BulletinService, BulletinServiceError
from bulletin_board.storage import MemoryStore

ADMIN_CONTEXT = RoleContext(
    is_admin=True,
    user_id="005A",
    admin_users=[Option(id="005A", name="Ada Admin")],
    bulletin_users=[Option(id="005A", name="Ada Admin"), Option(id="005B", name="Ben Builder")],
)

USER_CONTEXT = RoleContext(
    is_admin=False,
    user_id="005B",
    admin_users=[Option(id="005A", name="Ada Admin")],
    bulletin_users=[Option(id="005A", name="Ada Admin"), Option(id="005B", name="Ben Builder")],
)


def make_record(
    record_id: str = "rec1",
    record_type: RecordType = RecordType.SUGGESTION,
    status: str | None = None,
    **fields: Any,
) -> Record:
    """Build a record with sensible defaults."""
    prefix = "SUG" if record_type is RecordType.SUGGESTION else "SUP"
    defaults: dict[str, Any] = {
        "record_number": f"{prefix}-{''.join(ch for ch in record_id if ch.isdigit()).zfill(4)}",
        "title": f"Record {record_id}",
        "description_html": "<p>Body</p>",
        "created_by_id": "005B",
        "created_by_name": "Ben Builder",
        "created_at": datetime(2024, 3, 1, 9, 0, tzinfo=UTC),
        "updated_at": datetime(2024, 3, 2, 10, 0, tzinfo=UTC),
        "categories": ["Hardware"],
    }
    defaults.update(fields)
    return Record(
        id=record_id,
        type=record_type,
        status=status or DEFAULT_STATUSES[record_type][0],
        **defaults,
    )


class FakeBulletinService(BulletinService):
    """In-memory bulletin service that records every call.

    Add a method name to ``fail`` to make that call raise.
    """

    def __init__(self, context: RoleContext | None = None, records: list[Record] | None = None):
        self.context = context or USER_CONTEXT
        self.records: dict[str, Record] = {r.id: r for r in records or []}
        self.comments: dict[str, list[Comment]] = {}
        self.categories = [Option(id="cat1", name="Hardware"), Option(id="cat2", name="Software")]
        self.statuses = {t: list(v) for t, v in DEFAULT_STATUSES.items()}
        self.owners = [Option(id="005A", name="Ada Admin")]
        self.calls: list[tuple[str, tuple]] = []
        self.fail: set[str] = set()
        self._next_id = 100

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise BulletinServiceError(f"{name} failed", status_code=500)

    def calls_to(self, name: str) -> list[tuple]:
        return [args for called, args in self.calls if called == name]

    def _lookup(self, record_id: str) -> Record:
        if record_id not in self.records:
            raise BulletinServiceError(f"Record {record_id} not found", status_code=404)
        return self.records[record_id]

    async def get_context(self) -> RoleContext:
        self._call("get_context")
        return self.context

    async def list_active_categories(self) -> list[Option]:
        self._call("list_active_categories")
        return list(self.categories)

    async def list_active_category_names(self) -> list[str]:
        self._call("list_active_category_names")
        return [c.name for c in self.categories]

    async def list_active_status_options(self, record_type: RecordType) -> list[Option]:
        self._call("list_active_status_options", record_type)
        return [Option(id=f"st{i}", name=n) for i, n in enumerate(self.statuses[record_type])]

    async def list_suggestions(self, filters: Filters) -> list[Record]:
        self._call("list_suggestions", filters)
        return [replace(r) for r in self.records.values() if r.type is RecordType.SUGGESTION]

    async def list_support_tickets(self, filters: Filters) -> list[Record]:
        self._call("list_support_tickets", filters)
        return [replace(r) for r in self.records.values() if r.type is RecordType.SUPPORT]

    async def get_request(self, record_id: str) -> Record:
        self._call("get_request", record_id)
        return replace(self._lookup(record_id))

    async def create_request(
        self,
        record_type: RecordType,
        title: str,
        body_html: str,
        category_ids: list[str],
    ) -> Record:
        self._call("create_request", record_type, title, body_html, category_ids)
        self._next_id += 1
        record = make_record(
            f"rec{self._next_id}",
            record_type,
            title=title or "New request",
            description_html=body_html,
        )
        self.records[record.id] = record
        return record

    async def update_status(self, record_id: str, status: str) -> Record:
        self._call("update_status", record_id, status)
        record = self._lookup(record_id)
        record.status = status
        return replace(record)

    async def update_description(self, record_id: str, body_html: str) -> Record:
        self._call("update_description", record_id, body_html)
        record = self._lookup(record_id)
        record.description_html = body_html
        return replace(record)

    async def update_owner(self, record_id: str, owner_id: str | None) -> Record:
        self._call("update_owner", record_id, owner_id)
        record = self._lookup(record_id)
        record.owner_id = owner_id
        record.owner_name = {o.id: o.name for o in self.owners}.get(owner_id or "")
        return replace(record)

    async def list_comments(self, request_id: str) -> list[Comment]:
        self._call("list_comments", request_id)
        return list(self.comments.get(request_id, []))

    async def create_comment(self, request_id: str, body: str) -> Comment:
        self._call("create_comment", request_id, body)
        self._lookup(request_id)
        self._next_id += 1
        comment = Comment(
            id=f"cmt{self._next_id}",
            request_id=request_id,
            body=body,
            author_name="Ben Builder",
            created_at=datetime.now(UTC),
        )
        self.comments.setdefault(request_id, []).append(comment)
        return comment

    async def get_support_owner_options(self) -> list[Option]:
        self._call("get_support_owner_options")
        return list(self.owners)


@pytest.fixture
def sample_records() -> list[Record]:
    return [
        make_record("rec1", RecordType.SUGGESTION, status="Under Review"),
        make_record("rec2", RecordType.SUGGESTION, status="Accepted"),
        make_record(
            "rec3",
            RecordType.SUPPORT,
            status="In Progress",
            priority="High",
            owner_id="005A",
            owner_name="Ada Admin",
        ),
    ]


@pytest.fixture
def service(sample_records) -> FakeBulletinService:
    """Service acting as an ordinary (non-admin) user."""
    return FakeBulletinService(USER_CONTEXT, sample_records)


@pytest.fixture
def admin_service(sample_records) -> FakeBulletinService:
    """Service acting as an admin."""
    return FakeBulletinService(ADMIN_CONTEXT, sample_records)


@pytest.fixture
def config() -> BoardConfig:
    """Config without search debouncing so filter changes apply at once."""
    config = BoardConfig()
    config.filters.search_debounce_seconds = 0
    return config


@pytest.fixture
async def board(service, config):
    board = BoardController(service, config=config, store=MemoryStore(), notifier=Notifier())
    await board.initialize()
    yield board
    await board.aclose()


@pytest.fixture
async def admin_board(admin_service, config):
    board = BoardController(admin_service, config=config, store=MemoryStore(), notifier=Notifier())
    await board.initialize()
    yield board
    await board.aclose()
