"""
Submission form for new Suggestions and Support Requests.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable

from .models import Option, Record, RecordType
from .notify import Notifier
from .service import BulletinService, BulletinServiceError
from .text import TITLE_PLACEHOLDER, derive_title, has_content

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: dict[RecordType, str] = {
    RecordType.SUGGESTION: (
        "<h4>Description</h4>"
        "<p><em>What outcome are we chasing? Provide the concrete objective and key details.</em></p>"
        "<h4>Rationale / Context</h4>"
        "<p><em>Why is this important? Who is impacted? Any time sensitivity?</em></p>"
        "<h4>Additional Notes</h4>"
        "<p><em>Steps already tried, examples, links, screenshots, etc.</em></p>"
    ),
    RecordType.SUPPORT: (
        "<h4>What happened</h4>"
        "<p><em>Describe the problem and what you expected instead.</em></p>"
        "<h4>Impact</h4>"
        "<p><em>Who is affected and how urgent is it?</em></p>"
        "<h4>Additional Notes</h4>"
        "<p><em>Steps to reproduce, error messages, links, screenshots, etc.</em></p>"
    ),
}

SuccessHandler = Callable[[str], Awaitable[None] | None]
CancelHandler = Callable[[], Awaitable[None] | None]


class SubmissionForm:
    """
    Collects and submits one new record.

    On success the form reports the new record id and resets itself; on
    failure everything the user entered stays in place for a retry.
    """

    def __init__(
        self,
        service: BulletinService,
        notifier: Notifier,
        initial_type: RecordType | None = None,
    ):
        self.service = service
        self.notifier = notifier
        self.initial_type = initial_type
        self.on_success: SuccessHandler | None = None
        self.on_cancel: CancelHandler | None = None

        self.category_options: list[Option] = []
        self.saving = False
        self.reset()

    def reset(self) -> None:
        """Back to defaults for the initial type."""
        self.type: RecordType | None = self.initial_type or RecordType.SUGGESTION
        self.title = ""
        self.body_html = DEFAULT_TEMPLATES[self.type]
        self.selected_category_ids: list[str] = []

    async def load_categories(self) -> list[Option]:
        try:
            self.category_options = await self.service.list_active_categories()
        except BulletinServiceError as e:
            logger.warning(f"Could not load categories: {e}")
            self.notifier.error("Error loading categories", e.message)
        return self.category_options

    # -------------------------------------------------------------------------
    # Field changes
    # -------------------------------------------------------------------------

    def set_type(self, value: RecordType | str | None) -> None:
        if value is None or value == "":
            self.type = None
            return
        self.type = value if isinstance(value, RecordType) else RecordType.from_string(value)

    def set_title(self, value: str | None) -> None:
        self.title = value or ""

    def set_body(self, html: str | None) -> None:
        self.body_html = html or ""

    def set_categories(self, category_ids: list[str] | None) -> None:
        self.selected_category_ids = list(category_ids or [])

    def pick_tag(self, category_id: str | None) -> None:
        if category_id and category_id not in self.selected_category_ids:
            self.selected_category_ids = [*self.selected_category_ids, category_id]

    def remove_tag(self, category_id: str) -> None:
        self.selected_category_ids = [c for c in self.selected_category_ids if c != category_id]

    @property
    def selected_category_pills(self) -> list[Option]:
        names = {o.id: o.name for o in self.category_options}
        return [Option(id=c, name=names.get(c, c)) for c in self.selected_category_ids]

    @property
    def effective_title(self) -> str:
        """Title preview: the typed title, or one derived from the body."""
        if self.title.strip():
            return self.title.strip()
        return derive_title(self.body_html) or TITLE_PLACEHOLDER

    # -------------------------------------------------------------------------
    # Submit
    # -------------------------------------------------------------------------

    def validate(self) -> tuple[str, str] | None:
        """Return (title, message) for the first problem, or None."""
        if self.type is None:
            return ("Type required", "Please choose Suggestion or Support Request.")
        if not self.selected_category_ids:
            return ("Pick at least one tag", "Select one or more categories.")
        if not has_content(self.body_html):
            return ("Description required", "Please describe your request.")
        return None

    @property
    def can_submit(self) -> bool:
        return not self.saving and self.validate() is None

    async def submit(self) -> Record | None:
        if self.saving:
            return None
        problem = self.validate()
        if problem is not None:
            self.notifier.warning(*problem)
            return None
        if self.type is None:
            return None

        title = self.title.strip() or derive_title(self.body_html)
        self.saving = True
        try:
            record = await self.service.create_request(
                self.type,
                title,
                self.body_html,
                list(self.selected_category_ids),
            )
        except BulletinServiceError as e:
            logger.warning(f"Submit failed: {e}")
            self.notifier.error("Submit failed", e.message)
            return None
        finally:
            self.saving = False

        logger.info(f"Created {record.type.value} {record.record_number} ({record.id})")
        self.notifier.success("Request submitted", f"{record.record_number} created")
        if self.on_success is not None:
            result = self.on_success(record.id)
            if inspect.isawaitable(result):
                await result
        self.reset()
        return record

    async def cancel(self) -> None:
        if self.on_cancel is None:
            return
        result = self.on_cancel()
        if inspect.isawaitable(result):
            await result
