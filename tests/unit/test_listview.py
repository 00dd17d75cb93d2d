"""Unit tests for record list projections."""

import pytest
from conftest import make_record

from bulletin_board.listview import RecordListView
from bulletin_board.models import RecordType, ViewMode


@pytest.fixture
def support_view():
    view = RecordListView(RecordType.SUPPORT)
    view.set_records(
        [
            make_record("rec1", RecordType.SUPPORT, status="New"),
            make_record("rec2", RecordType.SUPPORT, status="  in progress "),
            make_record("rec3", RecordType.SUPPORT, status="Escalated"),
            make_record("rec4", RecordType.SUPPORT, status="Done", priority="Low", owner_name="Ada Admin"),
        ]
    )
    return view


class TestTable:
    def test_suggestion_row_shows_submitter(self):
        view = RecordListView(RecordType.SUGGESTION)
        view.set_records([make_record("rec1", comment_count=2)])

        row = view.rows()[0]

        assert row["number"] == "SUG-0001"
        assert row["createdByName"] == "Ben Builder"
        assert row["categoryText"] == "Hardware"
        assert row["commentCount"] == 2
        assert "ownerName" not in row

    def test_support_row_shows_priority_and_owner(self, support_view):
        row = support_view.rows()[3]

        assert row["priority"] == "Low"
        assert row["ownerName"] == "Ada Admin"
        assert "createdByName" not in row

    def test_rows_keep_service_order(self, support_view):
        assert [r["id"] for r in support_view.rows()] == ["rec1", "rec2", "rec3", "rec4"]

    def test_column_labels_differ_by_type(self):
        assert "Decision" in RecordListView(RecordType.SUGGESTION).column_labels
        assert "Assignee" in RecordListView(RecordType.SUPPORT).column_labels


class TestKanban:
    def test_columns_follow_vocabulary(self, support_view):
        labels = [c.label for c in support_view.columns()]
        assert labels == ["New", "In Review", "In Progress", "Done", "Closed"]

    def test_status_matching_ignores_case_and_padding(self, support_view):
        columns = {c.label: c for c in support_view.columns()}
        assert [r.id for r in columns["In Progress"].items] == ["rec2"]
        assert [r.id for r in columns["Done"].items] == ["rec4"]

    def test_unknown_status_goes_to_first_column(self, support_view):
        first = support_view.columns()[0]
        assert [r.id for r in first.items] == ["rec1", "rec3"]

    def test_every_record_lands_in_one_column(self, support_view):
        total = sum(len(c.items) for c in support_view.columns())
        assert total == len(support_view.records)

    def test_custom_vocabulary(self, support_view):
        support_view.set_status_vocabulary(["Open", "Done"])
        columns = support_view.columns()
        assert [c.key for c in columns] == ["open", "done"]
        assert [r.id for r in columns[0].items] == ["rec1", "rec2", "rec3"]

    def test_empty_vocabulary_is_ignored(self, support_view):
        support_view.set_status_vocabulary([])
        assert len(support_view.columns()) == 5

    def test_kanban_only_for_support(self, support_view):
        support_view.show_kanban()
        assert support_view.mode is ViewMode.KANBAN
        support_view.show_table()
        assert support_view.mode is ViewMode.TABLE

        with pytest.raises(ValueError, match="only available for Support"):
            RecordListView(RecordType.SUGGESTION).show_kanban()


class TestEvents:
    async def test_open_emits_record_id(self):
        opened = []
        view = RecordListView(RecordType.SUGGESTION, on_open=opened.append)

        await view.open("rec7")
        await view.open("")

        assert opened == ["rec7"]

    async def test_create_new_awaits_async_handler(self):
        created = []

        async def on_create():
            created.append(True)

        view = RecordListView(RecordType.SUPPORT, on_create=on_create)
        await view.create_new()

        assert created == [True]

    async def test_no_handlers_is_a_no_op(self):
        view = RecordListView(RecordType.SUPPORT)
        await view.open("rec1")
        await view.create_new()
