"""
Detail panel for a single record and its comment thread.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .models import DEFAULT_STATUSES, Comment, Option, Record, RecordType
from .text import format_short

logger = logging.getLogger(__name__)

SaveHandler = Callable[[str, Any], Awaitable[bool]]
CloseHandler = Callable[[], Awaitable[None] | None]


class DetailPanel:
    """
    Role-gated view of one record.

    Every save is reported upward through a handler that returns True on
    success. Saves are independent: a failed one leaves its own draft in
    place and does not touch the others.
    """

    def __init__(
        self,
        record: Record,
        comments: list[Comment] | None = None,
        is_admin: bool = False,
        current_user_id: str | None = None,
        status_options: list[str] | None = None,
        owner_options: list[Option] | None = None,
    ):
        self.record = record
        self.comments: list[Comment] = list(comments or [])
        self.is_admin = is_admin
        self.current_user_id = current_user_id
        self.status_options = list(status_options or DEFAULT_STATUSES[record.type])
        self.owner_options = list(owner_options or [])

        self.on_save_status: SaveHandler | None = None
        self.on_save_owner: SaveHandler | None = None
        self.on_save_description: SaveHandler | None = None
        self.on_post_comment: SaveHandler | None = None
        self.on_close: CloseHandler | None = None

        self.status_draft: str | None = None
        self.owner_draft: str | None = None
        self.description_draft: str | None = None
        self.editing_description = False
        self.composer = ""
        self.status_saved = False

        self._prev_comment_count = len(self.comments)
        self.scroll_pending = bool(self.comments)

    # -------------------------------------------------------------------------
    # Props from the controller
    # -------------------------------------------------------------------------

    def set_record(self, record: Record) -> None:
        """Replace the displayed record with the server's copy; drafts are left alone."""
        self.record = record

    def set_comments(self, comments: list[Comment]) -> None:
        self.comments = list(comments)
        if len(self.comments) != self._prev_comment_count:
            self.scroll_pending = True
            self._prev_comment_count = len(self.comments)

    def consume_scroll(self) -> bool:
        """True once after the thread grew; the view scrolls to the newest comment."""
        pending = self.scroll_pending
        self.scroll_pending = False
        return pending

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    @property
    def title_text(self) -> str:
        return f"{self.record.record_number} · {self.record.title}"

    @property
    def status_label(self) -> str:
        return "Decision" if self.record.type is RecordType.SUGGESTION else "Status"

    @property
    def status_value(self) -> str:
        return self.status_draft or self.record.status

    @property
    def owner_display(self) -> str:
        return self.record.owner_name or "Unassigned"

    @property
    def description_html(self) -> str:
        if self.editing_description and self.description_draft is not None:
            return self.description_draft
        return self.record.description_html

    @property
    def can_edit_status(self) -> bool:
        return self.is_admin

    @property
    def can_edit_owner(self) -> bool:
        return self.is_admin and self.record.is_support

    @property
    def can_edit_description(self) -> bool:
        if self.is_admin:
            return True
        return bool(self.current_user_id) and self.current_user_id == self.record.created_by_id

    def comment_rows(self) -> list[dict[str, Any]]:
        return [
            {
                "id": c.id,
                "author": c.author_name or "",
                "body": c.body,
                "when": format_short(c.created_at),
            }
            for c in self.comments
        ]

    # -------------------------------------------------------------------------
    # Status / decision
    # -------------------------------------------------------------------------

    def select_status(self, value: str) -> None:
        if value not in self.status_options:
            raise ValueError(f"Invalid {self.status_label.lower()}: {value}")
        self.status_draft = value

    async def save_status(self) -> bool:
        if not self.can_edit_status:
            logger.debug(f"Status of {self.record.id} is read-only for this user")
            return False
        if self.on_save_status is None:
            return False
        ok = await self.on_save_status(self.record.id, self.status_value)
        if ok:
            self.status_draft = None
        return ok

    # -------------------------------------------------------------------------
    # Owner
    # -------------------------------------------------------------------------

    def select_owner(self, owner_id: str | None) -> None:
        self.owner_draft = owner_id

    async def save_owner(self) -> bool:
        if not self.can_edit_owner:
            logger.debug(f"Owner of {self.record.id} is read-only for this user")
            return False
        if self.on_save_owner is None:
            return False
        owner_id = self.owner_draft if self.owner_draft is not None else self.record.owner_id
        ok = await self.on_save_owner(self.record.id, owner_id)
        if ok:
            self.owner_draft = None
        return ok

    # -------------------------------------------------------------------------
    # Description
    # -------------------------------------------------------------------------

    def begin_edit_description(self) -> None:
        if not self.can_edit_description:
            return
        self.description_draft = self.record.description_html
        self.editing_description = True

    def update_description_draft(self, html: str) -> None:
        self.description_draft = html

    def cancel_edit_description(self) -> None:
        self.description_draft = None
        self.editing_description = False

    async def save_description(self) -> bool:
        if not self.editing_description or self.on_save_description is None:
            return False
        ok = await self.on_save_description(self.record.id, self.description_draft or "")
        if ok:
            self.description_draft = None
            self.editing_description = False
        return ok

    # -------------------------------------------------------------------------
    # Comments
    # -------------------------------------------------------------------------

    def set_composer(self, text: str | None) -> None:
        self.composer = text or ""

    async def post_comment(self) -> bool:
        body = self.composer.strip()
        if not body or self.on_post_comment is None:
            return False
        ok = await self.on_post_comment(self.record.id, body)
        if ok:
            self.composer = ""
        return ok

    async def close(self) -> None:
        if self.on_close is None:
            return
        result = self.on_close()
        if inspect.isawaitable(result):
            await result
