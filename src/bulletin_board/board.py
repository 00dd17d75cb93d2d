"""
Board controller: the single source of truth for the bulletin board.

Owns the active tab, the last applied filters per tab, the fetched lists,
the detail panel and the submission modal. Child components only receive
state from here and report back through handlers; every service call the
board makes goes through this class.
"""

import asyncio
import contextlib
import logging
from functools import partial
from typing import Any

from .config import BoardConfig
from .detail import DetailPanel
from .filters import FilterPanel
from .listview import RecordListView
from .models import (
    DEFAULT_STATUSES,
    OWNER_ANY,
    OWNER_ME,
    Comment,
    DetailState,
    Filters,
    ModalState,
    Option,
    Record,
    RecordType,
    RoleContext,
    Tab,
    is_valid_owner_scope,
)
from .notify import Notifier
from .service import BulletinService, BulletinServiceError
from .storage import FILTERS_KEY, FilterStore, MemoryStore
from .submission import SubmissionForm

logger = logging.getLogger(__name__)


class BoardController:
    """Top-level state for the Suggestions and Support tabs."""

    def __init__(
        self,
        service: BulletinService,
        config: BoardConfig | None = None,
        store: FilterStore | None = None,
        notifier: Notifier | None = None,
    ):
        self.service = service
        self.config = config or BoardConfig()
        self.store = store if store is not None else MemoryStore()
        self.notifier = notifier or Notifier()

        self.context = RoleContext()
        self.categories: list[Option] = []
        self.category_names: list[str] = []
        self.owner_options: list[Option] = []

        self.active_tab = Tab.SUGGESTIONS
        self.filters: dict[Tab, Filters] = {tab: self._default_filters(tab) for tab in Tab}
        self.records: dict[Tab, list[Record]] = {tab: [] for tab in Tab}
        self.loading: dict[Tab, bool] = {tab: False for tab in Tab}

        self.filter_panels: dict[Tab, FilterPanel] = {
            tab: FilterPanel(tab.record_type, on_change=partial(self.handle_filter_change, tab))
            for tab in Tab
        }
        self.list_views: dict[Tab, RecordListView] = {
            tab: RecordListView(
                tab.record_type,
                on_open=self.open_detail,
                on_create=partial(self.launch_submission, tab.record_type),
            )
            for tab in Tab
        }

        self.detail_state = DetailState.CLOSED
        self.detail: DetailPanel | None = None
        self.status_saved = False

        self.submission_state = ModalState.CLOSED
        self.submission: SubmissionForm | None = None

        self._viewed: set[Tab] = set()
        self._list_seq: dict[Tab, int] = {tab: 0 for tab in Tab}
        self._detail_seq = 0
        self._pending_search: dict[Tab, asyncio.Task] = {}
        self._ack_handle: asyncio.TimerHandle | None = None

    @property
    def is_admin(self) -> bool:
        return self.context.is_admin

    @property
    def detail_open(self) -> bool:
        return self.detail_state is DetailState.OPEN

    @property
    def submission_open(self) -> bool:
        return self.submission_state is ModalState.OPEN

    # -------------------------------------------------------------------------
    # Startup
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Fetch context and vocabularies, restore filters, load the first tab."""
        try:
            self.context = await self.service.get_context()
        except BulletinServiceError as e:
            logger.warning(f"Could not load bulletin context, continuing as non-admin: {e}")
            self.context = RoleContext()

        logger.info(
            f"Board context: admin={self.context.is_admin}, "
            f"{len(self.context.admin_users)} admin(s), "
            f"{len(self.context.bulletin_users)} user(s)"
        )

        self.filter_panels[Tab.SUGGESTIONS].configure(self.is_admin, self.context.bulletin_users)
        self.filter_panels[Tab.SUPPORT].configure(self.is_admin, self.context.admin_users)
        for tab in Tab:
            self.filters[tab] = self._default_filters(tab)

        if self.config.filters.persist:
            self._restore_filters()

        await self._load_categories()
        await self._load_status_options()
        if self.is_admin:
            await self._load_owner_options()

        try:
            tab = Tab(self.config.ui.default_tab)
        except ValueError:
            logger.warning(f"Unknown default tab {self.config.ui.default_tab!r}, using suggestions")
            tab = Tab.SUGGESTIONS
        self.active_tab = tab
        self._viewed.add(tab)
        await self.refresh(tab)

    async def _load_categories(self) -> None:
        try:
            self.categories = await self.service.list_active_categories()
        except BulletinServiceError as e:
            logger.warning(f"Could not load categories: {e}")
            self.categories = []

        try:
            self.category_names = await self.service.list_active_category_names()
        except BulletinServiceError as e:
            logger.warning(f"Could not load category names: {e}")
            self.category_names = [c.name for c in self.categories]

        for panel in self.filter_panels.values():
            panel.categories = list(self.category_names)

    async def _load_status_options(self) -> None:
        for tab, panel in self.filter_panels.items():
            await panel.load_status_options(self.service)
            self.list_views[tab].set_status_vocabulary(panel.status_vocabulary)

    async def _load_owner_options(self) -> None:
        try:
            self.owner_options = await self.service.get_support_owner_options()
        except BulletinServiceError as e:
            logger.warning(f"Could not load support owners, falling back to admins: {e}")
            self.owner_options = list(self.context.admin_users)

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------

    def default_owner_scope(self, tab: Tab) -> str:
        """Admins default to every owner; users to their own suggestions."""
        if self.is_admin or tab is Tab.SUPPORT:
            return OWNER_ANY
        return OWNER_ME

    def _default_filters(self, tab: Tab) -> Filters:
        return Filters(
            owner_scope=self.default_owner_scope(tab),
            page_size=self.config.filters.page_size,
        )

    def normalize_filters(self, tab: Tab, filter_input: dict[str, Any] | None) -> Filters:
        """
        Turn a filter panel's values into list filters.

        Missing fields become empty, the page size is always the configured
        one, and the owner scope falls back to the role default. Ordinary
        users cannot scope Support Requests by owner, so theirs is always ANY.
        """
        data = filter_input or {}
        owner_scope = data.get("ownerScope")
        if tab is Tab.SUPPORT and not self.is_admin:
            owner_scope = OWNER_ANY
        elif not is_valid_owner_scope(owner_scope):
            owner_scope = self.default_owner_scope(tab)

        return Filters(
            search=data.get("search") or "",
            status=data.get("status") or "",
            category_name=data.get("categoryName") or data.get("category") or "",
            owner_scope=owner_scope,
            page_size=self.config.filters.page_size,
        )

    async def apply_filters(self, tab: Tab | str, filter_input: dict[str, Any] | None) -> Filters:
        """Normalize, remember and persist filters, then refetch that tab."""
        tab = Tab(tab)
        filters = self.normalize_filters(tab, filter_input)
        self.filters[tab] = filters
        self.filter_panels[tab].load(filters.to_payload())
        self._persist_filters()
        await self.refresh(tab)
        return filters

    async def handle_filter_change(self, tab: Tab, values: dict[str, Any], field: str) -> None:
        """Filter panel events: typing is debounced, everything else applies at once."""
        self._cancel_pending_search(tab)
        delay = self.config.filters.search_debounce_seconds
        if field == "search" and delay > 0:
            self._pending_search[tab] = asyncio.create_task(
                self._apply_after(tab, dict(values), delay)
            )
            return
        await self.apply_filters(tab, values)

    async def _apply_after(self, tab: Tab, values: dict[str, Any], delay: float) -> None:
        try:
            await asyncio.sleep(delay)
            await self.apply_filters(tab, values)
        finally:
            if self._pending_search.get(tab) is asyncio.current_task():
                del self._pending_search[tab]

    def _cancel_pending_search(self, tab: Tab) -> None:
        task = self._pending_search.pop(tab, None)
        if task is not None and not task.done():
            task.cancel()

    def _persist_filters(self) -> None:
        if not self.config.filters.persist:
            return
        snapshot = {tab.value: self.filters[tab].to_payload() for tab in Tab}
        try:
            self.store.set(FILTERS_KEY, snapshot)
        except OSError as e:
            logger.warning(f"Could not persist filters: {e}")

    def _restore_filters(self) -> None:
        try:
            snapshot = self.store.get(FILTERS_KEY)
        except OSError as e:
            logger.warning(f"Could not read persisted filters: {e}")
            return
        if not isinstance(snapshot, dict):
            return
        for tab in Tab:
            saved = snapshot.get(tab.value)
            if isinstance(saved, dict):
                self.filters[tab] = self.normalize_filters(tab, saved)
                self.filter_panels[tab].load(self.filters[tab].to_payload())
                logger.debug(f"Restored {tab.value} filters: {self.filters[tab].to_payload()}")

    # -------------------------------------------------------------------------
    # Tabs and lists
    # -------------------------------------------------------------------------

    async def select_tab(self, tab: Tab | str) -> None:
        """Switch tabs and fetch only the newly active one."""
        tab = Tab(tab)
        self.active_tab = tab
        self._viewed.add(tab)
        logger.info(f"Switched to {tab.value} tab")
        await self.refresh(tab)

    async def refresh(self, tab: Tab | str) -> list[Record] | None:
        """
        Fetch one tab's list with its last filters.

        Returns the records, or None when the fetch failed or a newer fetch
        for the same tab superseded it. A failed fetch keeps the previous rows.
        """
        tab = Tab(tab)
        self._list_seq[tab] += 1
        seq = self._list_seq[tab]
        filters = self.filters[tab]
        self._set_loading(tab, True)
        logger.debug(f"Fetching {tab.value} with {filters.to_payload()}")

        try:
            if tab is Tab.SUGGESTIONS:
                records = await self.service.list_suggestions(filters)
            else:
                records = await self.service.list_support_tickets(filters)
        except BulletinServiceError as e:
            logger.warning(f"Could not load {tab.value}: {e}")
            if seq == self._list_seq[tab]:
                self._set_loading(tab, False)
            return None

        if seq != self._list_seq[tab]:
            logger.debug(f"Discarding stale {tab.value} response")
            return None

        self.records[tab] = records
        self.list_views[tab].set_records(records)
        self._set_loading(tab, False)
        return records

    def _set_loading(self, tab: Tab, loading: bool) -> None:
        self.loading[tab] = loading
        self.list_views[tab].loading = loading

    # -------------------------------------------------------------------------
    # Detail panel
    # -------------------------------------------------------------------------

    async def open_detail(self, record_id: str) -> bool:
        """Load a record and its comments; only a complete load opens the panel."""
        self._detail_seq += 1
        seq = self._detail_seq
        self.detail_state = DetailState.LOADING
        self.detail = None
        self.status_saved = False

        try:
            record = await self.service.get_request(record_id)
            comments = await self.service.list_comments(record_id)
        except BulletinServiceError as e:
            logger.warning(f"Could not open record {record_id}: {e}")
            if seq == self._detail_seq:
                self.detail_state = DetailState.CLOSED
                self.notifier.error("Could not open record", e.message)
            return False

        if seq != self._detail_seq:
            logger.debug(f"Discarding stale detail load for {record_id}")
            return False

        self.detail = self._build_detail(record, comments)
        self.detail_state = DetailState.OPEN
        logger.info(f"Opened {record.record_number} ({record.id})")
        return True

    def _build_detail(self, record: Record, comments: list[Comment]) -> DetailPanel:
        tab = Tab.SUGGESTIONS if record.type is RecordType.SUGGESTION else Tab.SUPPORT
        statuses = self.filter_panels[tab].status_vocabulary or DEFAULT_STATUSES[record.type]
        detail = DetailPanel(
            record,
            comments,
            is_admin=self.is_admin,
            current_user_id=self.context.user_id,
            status_options=statuses,
            owner_options=self.owner_options or self.context.admin_users,
        )
        detail.on_save_status = self.save_status
        detail.on_save_owner = self.save_owner
        detail.on_save_description = self.save_description
        detail.on_post_comment = self.post_comment
        detail.on_close = self.close_detail
        return detail

    def close_detail(self) -> None:
        # Bumping the sequence drops any load still in flight
        self._detail_seq += 1
        self.detail_state = DetailState.CLOSED
        self.detail = None
        self.status_saved = False

    def _replace_detail_record(self, record: Record) -> None:
        if self.detail is not None and self.detail.record.id == record.id:
            self.detail.set_record(record)

    async def save_status(self, record_id: str, status: str) -> bool:
        """Save a status/decision; the server's copy replaces the displayed one."""
        try:
            record = await self.service.update_status(record_id, status)
        except BulletinServiceError as e:
            logger.warning(f"Could not save status of {record_id}: {e}")
            self.notifier.error("Save failed", e.message)
            return False

        logger.info(f"Status of {record.record_number} is now {record.status!r}")
        self._replace_detail_record(record)
        self._acknowledge_save()
        await self.refresh(self.active_tab)
        return True

    async def save_owner(self, record_id: str, owner_id: str | None) -> bool:
        """Assign or clear (empty/None) a Support Request owner."""
        try:
            record = await self.service.update_owner(record_id, owner_id or None)
        except BulletinServiceError as e:
            logger.warning(f"Could not assign owner of {record_id}: {e}")
            self.notifier.error("Save failed", e.message)
            return False

        logger.info(f"Owner of {record.record_number} is now {record.owner_name or 'unassigned'}")
        self._replace_detail_record(record)
        await self.refresh(self.active_tab)
        return True

    async def save_description(self, record_id: str, body_html: str) -> bool:
        try:
            record = await self.service.update_description(record_id, body_html)
        except BulletinServiceError as e:
            logger.warning(f"Could not save description of {record_id}: {e}")
            self.notifier.error("Save failed", e.message)
            return False

        self._replace_detail_record(record)
        return True

    async def post_comment(self, record_id: str, body: str | None) -> bool:
        """Post a comment and append it to the open thread."""
        text = (body or "").strip()
        if not text:
            return False

        try:
            comment = await self.service.create_comment(record_id, text)
        except BulletinServiceError as e:
            logger.warning(f"Could not post comment on {record_id}: {e}")
            self.notifier.error("Comment failed", e.message)
            return False

        if self.detail is not None and self.detail.record.id == record_id:
            self.detail.set_comments([*self.detail.comments, comment])
        return True

    def _acknowledge_save(self) -> None:
        self.status_saved = True
        if self.detail is not None:
            self.detail.status_saved = True
        if self._ack_handle is not None:
            self._ack_handle.cancel()
        loop = asyncio.get_running_loop()
        self._ack_handle = loop.call_later(self.config.ui.saved_ack_seconds, self._clear_saved_ack)

    def _clear_saved_ack(self) -> None:
        self._ack_handle = None
        self.status_saved = False
        if self.detail is not None:
            self.detail.status_saved = False

    # -------------------------------------------------------------------------
    # Submission modal
    # -------------------------------------------------------------------------

    async def launch_submission(self, record_type: RecordType | str) -> SubmissionForm:
        """Open a fresh submission form for the given record type."""
        record_type = RecordType(record_type)
        form = SubmissionForm(self.service, self.notifier, initial_type=record_type)
        form.on_success = self.on_submission_success
        form.on_cancel = self.on_submission_cancel
        form.category_options = list(self.categories)

        self.submission = form
        self.submission_state = ModalState.OPEN
        logger.info(f"New {record_type.value} form opened")

        if not form.category_options:
            await form.load_categories()
        return form

    async def on_submission_success(self, record_id: str | None = None) -> None:
        """Close the form and refresh every tab viewed this session, active first."""
        self.close_submission()
        await self.refresh(self.active_tab)
        for tab in Tab:
            if tab is not self.active_tab and tab in self._viewed:
                await self.refresh(tab)

    def close_submission(self) -> None:
        """Backdrop click and success both land here."""
        self.submission_state = ModalState.CLOSED
        self.submission = None

    def on_submission_cancel(self) -> None:
        logger.info("Submission cancelled")
        self.close_submission()

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Cancel timers and pending debounced searches."""
        if self._ack_handle is not None:
            self._ack_handle.cancel()
            self._ack_handle = None
        tasks = list(self._pending_search.values())
        self._pending_search.clear()
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
