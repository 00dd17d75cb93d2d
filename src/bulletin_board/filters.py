"""
Filter panels for the Suggestions and Support tabs.

A panel owns the draft search/status/category/owner values and reports the
full set upward on every change; it never fetches records itself.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from .models import (
    OWNER_ANY,
    OWNER_ME,
    OWNER_UNASSIGNED,
    Option,
    RecordType,
    user_scope,
)
from .service import BulletinService, BulletinServiceError

logger = logging.getLogger(__name__)

ANY_STATUS = Option(id="", name="Any")
ALL_CATEGORIES = Option(id="", name="All")

QueryChangeHandler = Callable[[dict[str, Any], str], Awaitable[None] | None]


class FilterPanel:
    """Draft filter state for one tab."""

    def __init__(
        self,
        record_type: RecordType,
        is_admin: bool = False,
        users: list[Option] | None = None,
        categories: list[str] | None = None,
        on_change: QueryChangeHandler | None = None,
    ):
        """
        Args:
            record_type: Which tab this panel filters
            is_admin: Role of the current user
            users: Bulletin users (Suggestions) or admins (Support) for owner scoping
            categories: Active category names
            on_change: Called with (values, changed_field) after every change
        """
        self.record_type = record_type
        self.is_admin = is_admin
        self.users = list(users or [])
        self.categories = list(categories or [])
        self.on_change = on_change

        self.status_options: list[Option] = [ANY_STATUS]
        self.search = ""
        self.status = ""
        self.category = ""
        self._owner_scope = self.default_owner_scope()

    @property
    def is_support(self) -> bool:
        return self.record_type is RecordType.SUPPORT

    def default_owner_scope(self) -> str:
        """Admins see everything; ordinary users start on their own suggestions."""
        if self.is_support or self.is_admin:
            return OWNER_ANY
        return OWNER_ME

    def configure(self, is_admin: bool, users: list[Option]) -> None:
        """Apply the role context once it has been fetched."""
        self.is_admin = is_admin
        self.users = list(users)
        self._owner_scope = self.default_owner_scope()

    @property
    def owner_scope(self) -> str:
        return self._owner_scope

    @owner_scope.setter
    def owner_scope(self, value: str | None) -> None:
        # Parent-driven; repeated values are ignored so no change loop starts
        new_value = value or self.default_owner_scope()
        if new_value != self._owner_scope:
            self._owner_scope = new_value

    # -------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------

    async def load_status_options(self, service: BulletinService) -> list[Option]:
        """Fetch the status vocabulary; fall back to 'Any' alone on failure."""
        try:
            options = await service.list_active_status_options(self.record_type)
        except BulletinServiceError as e:
            logger.warning(f"Could not load {self.record_type.value} statuses: {e}")
            self.status_options = [ANY_STATUS]
        else:
            self.status_options = [ANY_STATUS] + [
                Option(id=o.name, name=o.name) for o in options if o.name
            ]
        return self.status_options

    @property
    def status_vocabulary(self) -> list[str]:
        """Status names without the 'Any' entry."""
        return [o.name for o in self.status_options if o.id]

    @property
    def category_options(self) -> list[Option]:
        return [ALL_CATEGORIES] + [Option(id=name, name=name) for name in self.categories]

    @property
    def owner_options(self) -> list[Option]:
        if self.is_support:
            if not self.is_admin:
                return []
            base = [
                Option(id=OWNER_ANY, name="Any"),
                Option(id=OWNER_ME, name="Me"),
                Option(id=OWNER_UNASSIGNED, name="Unassigned"),
            ]
        else:
            # Suggestions are scoped by submitter
            base = [Option(id=OWNER_ANY, name="Any"), Option(id=OWNER_ME, name="Me")]
        return base + [Option(id=user_scope(u.id), name=u.name) for u in self.users]

    # -------------------------------------------------------------------------
    # Changes
    # -------------------------------------------------------------------------

    def values(self) -> dict[str, Any]:
        """The full filter set as emitted upward."""
        values: dict[str, Any] = {
            "search": self.search,
            "status": self.status,
            "category": self.category,
        }
        if not self.is_support or self.is_admin:
            values["ownerScope"] = self._owner_scope
        return values

    async def set_search(self, value: str | None) -> None:
        self.search = value or ""
        await self._notify("search")

    async def set_status(self, value: str | None) -> None:
        self.status = value or ""
        await self._notify("status")

    async def set_category(self, value: str | None) -> None:
        self.category = value or ""
        await self._notify("category")

    async def set_owner_scope(self, value: str | None) -> None:
        self._owner_scope = value or self.default_owner_scope()
        await self._notify("ownerScope")

    async def reset(self) -> None:
        """Restore role-appropriate defaults and re-emit."""
        self.search = ""
        self.status = ""
        self.category = ""
        self._owner_scope = self.default_owner_scope()
        await self._notify("reset")

    def load(self, values: dict[str, Any]) -> None:
        """Adopt previously applied filters without emitting."""
        self.search = values.get("search") or ""
        self.status = values.get("status") or ""
        self.category = values.get("categoryName") or values.get("category") or ""
        self.owner_scope = values.get("ownerScope")

    async def _notify(self, field: str) -> None:
        if self.on_change is None:
            return
        result = self.on_change(self.values(), field)
        if inspect.isawaitable(result):
            await result
