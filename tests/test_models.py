from datetime import datetime, timedelta, timezone

import pytest

from todo_api.models import (
    Priority,
    SortField,
    SortOrder,
    Status,
    next_update_time,
    sort_todos,
    to_priority,
    to_sort_field,
    to_sort_order,
    to_status,
    utcnow,
)


def make_todo(todo_id, priority, status=Status.NOT_READY):
    now = utcnow()
    return {
        "id": todo_id,
        "owner_id": "alice",
        "title": f"Task {todo_id}",
        "description": "",
        "status": status,
        "priority": priority,
        "created_at": now,
        "updated_at": now,
    }


class TestParsers:
    @pytest.mark.parametrize(
        "raw,expected",
        [(1, Status.NOT_READY), (2, Status.READY), (3, Status.DOING), (4, Status.DONE)],
    )
    def test_to_status_valid(self, raw, expected):
        assert to_status(raw) is expected

    @pytest.mark.parametrize("raw", [0, 5, -1, 100])
    def test_to_status_out_of_range(self, raw):
        with pytest.raises(ValueError, match="status must be 1 to 4"):
            to_status(raw)

    @pytest.mark.parametrize("raw", ["1", 1.0, True, None])
    def test_to_status_rejects_non_integers(self, raw):
        with pytest.raises(ValueError):
            to_status(raw)

    @pytest.mark.parametrize(
        "raw,expected", [(1, Priority.HIGH), (2, Priority.MIDDLE), (3, Priority.LOW)]
    )
    def test_to_priority_valid(self, raw, expected):
        assert to_priority(raw) is expected

    @pytest.mark.parametrize("raw", [0, 4, -3])
    def test_to_priority_out_of_range(self, raw):
        with pytest.raises(ValueError, match="priority must be 1 to 3"):
            to_priority(raw)

    @pytest.mark.parametrize("raw", ["id", "ID", "Id"])
    def test_to_sort_field_id_case_insensitive(self, raw):
        assert to_sort_field(raw) is SortField.ID

    def test_to_sort_field_priority(self):
        assert to_sort_field("PRIORITY") is SortField.PRIORITY

    def test_to_sort_field_invalid(self):
        with pytest.raises(ValueError, match="sortby must be id or priority, but title"):
            to_sort_field("title")

    @pytest.mark.parametrize("raw,expected", [("asc", SortOrder.ASC), ("DESC", SortOrder.DESC)])
    def test_to_sort_order(self, raw, expected):
        assert to_sort_order(raw) is expected

    def test_to_sort_order_invalid(self):
        with pytest.raises(ValueError, match="orderby must be asc or desc"):
            to_sort_order("up")


class TestEnums:
    def test_priority_ordinals_define_urgency(self):
        assert Priority.HIGH < Priority.MIDDLE < Priority.LOW

    def test_display_names(self):
        assert str(Status.NOT_READY) == "Not Ready"
        assert str(Priority.MIDDLE) == "Middle"


class TestSortTodos:
    def test_sort_by_id(self):
        todos = [make_todo(3, Priority.LOW), make_todo(1, Priority.HIGH), make_todo(2, Priority.MIDDLE)]
        assert [t["id"] for t in sort_todos(todos, SortField.ID, SortOrder.ASC)] == [1, 2, 3]
        assert [t["id"] for t in sort_todos(todos, SortField.ID, SortOrder.DESC)] == [3, 2, 1]

    def test_priority_ties_break_on_id_ascending(self):
        todos = [
            make_todo(4, Priority.MIDDLE),
            make_todo(1, Priority.LOW),
            make_todo(2, Priority.MIDDLE),
            make_todo(5, Priority.HIGH),
            make_todo(3, Priority.LOW),
        ]
        asc = sort_todos(todos, SortField.PRIORITY, SortOrder.ASC)
        assert [t["id"] for t in asc] == [5, 2, 4, 1, 3]
        desc = sort_todos(todos, SortField.PRIORITY, SortOrder.DESC)
        assert [t["id"] for t in desc] == [1, 3, 2, 4, 5]


class TestTimestamps:
    def test_utcnow_is_timezone_aware(self):
        assert utcnow().tzinfo is not None

    def test_next_update_time_is_strictly_later(self):
        future = datetime.now(timezone.utc) + timedelta(hours=1)
        assert next_update_time(future) == future + timedelta(microseconds=1)

        past = datetime.now(timezone.utc) - timedelta(hours=1)
        assert next_update_time(past) > past
