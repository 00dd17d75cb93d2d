"""Unit tests for the record detail panel."""

from datetime import datetime

import pytest
from conftest import make_record

from bulletin_board.detail import DetailPanel
from bulletin_board.models import Comment, RecordType


def make_comment(comment_id: str, body: str = "Noted") -> Comment:
    return Comment(
        id=comment_id,
        request_id="rec1",
        body=body,
        author_name="Ada Admin",
        created_at=datetime(2024, 3, 4, 14, 5),
    )


class SaveRecorder:
    """Async save handler that records calls and returns a fixed result."""

    def __init__(self, result: bool = True):
        self.result = result
        self.calls = []

    async def __call__(self, record_id, value):
        self.calls.append((record_id, value))
        return self.result


class TestPresentation:
    def test_title_and_labels(self):
        panel = DetailPanel(make_record("rec1", title="Standing desks"))
        assert panel.title_text == "SUG-0001 · Standing desks"
        assert panel.status_label == "Decision"

        support = DetailPanel(make_record("rec3", RecordType.SUPPORT))
        assert support.status_label == "Status"
        assert support.owner_display == "Unassigned"

    def test_status_options_fall_back_to_defaults(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT))
        assert panel.status_options == ["New", "In Review", "In Progress", "Done", "Closed"]

    def test_comment_rows(self):
        panel = DetailPanel(make_record(), comments=[make_comment("c1", "Looks good")])
        assert panel.comment_rows() == [
            {"id": "c1", "author": "Ada Admin", "body": "Looks good", "when": "Mar 4, 2:05 PM"}
        ]


class TestPermissions:
    def test_admin_can_edit_everything_on_support(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT), is_admin=True)
        assert panel.can_edit_status
        assert panel.can_edit_owner
        assert panel.can_edit_description

    def test_owner_is_support_only(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        assert not panel.can_edit_owner

    def test_creator_can_edit_description_only(self):
        panel = DetailPanel(make_record("rec1"), is_admin=False, current_user_id="005B")
        assert panel.can_edit_description
        assert not panel.can_edit_status

    def test_other_user_is_read_only(self):
        panel = DetailPanel(make_record("rec1"), is_admin=False, current_user_id="005C")
        assert not panel.can_edit_description
        panel.begin_edit_description()
        assert not panel.editing_description

    async def test_non_admin_status_save_never_calls_handler(self):
        panel = DetailPanel(make_record("rec1"), is_admin=False)
        handler = SaveRecorder()
        panel.on_save_status = handler

        assert await panel.save_status() is False
        assert handler.calls == []


class TestStatus:
    def test_select_status_rejects_unknown_value(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        with pytest.raises(ValueError, match="Invalid decision"):
            panel.select_status("Maybe")

    async def test_save_status_sends_draft(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        handler = SaveRecorder()
        panel.on_save_status = handler

        panel.select_status("Accepted")
        assert panel.status_value == "Accepted"
        assert await panel.save_status() is True

        assert handler.calls == [("rec1", "Accepted")]

    def test_set_record_keeps_drafts(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT), is_admin=True)
        panel.select_status("Done")
        panel.select_owner("005A")

        panel.set_record(make_record("rec3", RecordType.SUPPORT, status="In Review"))

        assert panel.status_draft == "Done"
        assert panel.owner_draft == "005A"
        assert panel.status_value == "Done"

    async def test_description_save_keeps_status_draft(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT), is_admin=True)

        async def save_description(record_id, html):
            panel.set_record(make_record("rec3", RecordType.SUPPORT, description_html=html))
            return True

        panel.on_save_description = save_description
        panel.select_status("Done")
        panel.begin_edit_description()
        panel.update_description_draft("<p>More detail</p>")

        assert await panel.save_description() is True

        assert panel.record.description_html == "<p>More detail</p>"
        assert panel.status_value == "Done"

    async def test_successful_status_save_clears_only_its_draft(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT), is_admin=True)
        panel.on_save_status = SaveRecorder()
        panel.select_status("Done")
        panel.select_owner("005A")

        assert await panel.save_status() is True

        assert panel.status_draft is None
        assert panel.owner_draft == "005A"

    async def test_failed_status_save_keeps_draft(self):
        panel = DetailPanel(make_record("rec3", RecordType.SUPPORT), is_admin=True)
        panel.on_save_status = SaveRecorder(result=False)
        panel.select_status("Done")

        assert await panel.save_status() is False

        assert panel.status_draft == "Done"


class TestOwner:
    async def test_save_owner_uses_draft_or_current(self):
        record = make_record("rec3", RecordType.SUPPORT, owner_id="005A", owner_name="Ada Admin")
        panel = DetailPanel(record, is_admin=True)
        handler = SaveRecorder()
        panel.on_save_owner = handler

        panel.select_owner(None)
        await panel.save_owner()

        assert handler.calls == [("rec3", "005A")]

        panel.select_owner("")
        await panel.save_owner()
        assert handler.calls[-1] == ("rec3", "")


class TestDescription:
    async def test_edit_and_save(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        handler = SaveRecorder()
        panel.on_save_description = handler

        panel.begin_edit_description()
        assert panel.description_html == "<p>Body</p>"
        panel.update_description_draft("<p>New body</p>")
        assert panel.description_html == "<p>New body</p>"

        assert await panel.save_description() is True
        assert handler.calls == [("rec1", "<p>New body</p>")]
        assert not panel.editing_description

    async def test_failed_save_keeps_draft(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        panel.on_save_description = SaveRecorder(result=False)

        panel.begin_edit_description()
        panel.update_description_draft("<p>Keep me</p>")

        assert await panel.save_description() is False
        assert panel.editing_description
        assert panel.description_draft == "<p>Keep me</p>"

    def test_cancel_discards_draft(self):
        panel = DetailPanel(make_record("rec1"), is_admin=True)
        panel.begin_edit_description()
        panel.update_description_draft("<p>Scrap</p>")

        panel.cancel_edit_description()

        assert panel.description_html == "<p>Body</p>"


class TestComments:
    async def test_empty_comment_is_not_sent(self):
        panel = DetailPanel(make_record("rec1"))
        handler = SaveRecorder()
        panel.on_post_comment = handler

        panel.set_composer("   \n ")

        assert await panel.post_comment() is False
        assert handler.calls == []

    async def test_post_comment_strips_and_clears(self):
        panel = DetailPanel(make_record("rec1"))
        handler = SaveRecorder()
        panel.on_post_comment = handler

        panel.set_composer("  Thanks!  ")

        assert await panel.post_comment() is True
        assert handler.calls == [("rec1", "Thanks!")]
        assert panel.composer == ""

    async def test_failed_post_keeps_composer(self):
        panel = DetailPanel(make_record("rec1"))
        panel.on_post_comment = SaveRecorder(result=False)
        panel.set_composer("Retry me")

        assert await panel.post_comment() is False
        assert panel.composer == "Retry me"

    def test_scroll_only_when_thread_grows(self):
        panel = DetailPanel(make_record("rec1"), comments=[make_comment("c1")])
        assert panel.consume_scroll() is True
        assert panel.consume_scroll() is False

        panel.set_comments([make_comment("c1")])
        assert panel.consume_scroll() is False

        panel.set_comments([make_comment("c1"), make_comment("c2")])
        assert panel.consume_scroll() is True

    def test_no_initial_scroll_without_comments(self):
        assert DetailPanel(make_record("rec1")).consume_scroll() is False

    async def test_close_calls_handler(self):
        closed = []
        panel = DetailPanel(make_record("rec1"))
        panel.on_close = lambda: closed.append(True)

        await panel.close()

        assert closed == [True]
