"""Tests for the task record model."""

import re

import pytest

from glasstask.core.tasks import (
    Task,
    clean_tags,
    normalize,
    now_iso,
    parse_tags,
)

NOW = "2024-06-10T09:00:00.000Z"


@pytest.fixture
def full_record():
    return {
        "id": "t1",
        "title": "Write report",
        "description": "Quarterly numbers",
        "dueDate": "2024-06-12",
        "priority": "high",
        "status": "done",
        "tags": ["work", "q2"],
        "createdAt": "2024-06-01T08:00:00.000Z",
        "updatedAt": "2024-06-02T08:00:00.000Z",
        "completedAt": "2024-06-02T08:00:00.000Z",
    }


class TestNormalize:
    def test_keeps_valid_record(self, full_record):
        task = normalize(full_record, now=NOW)
        assert task.to_dict() == full_record

    def test_missing_id_generates_one(self):
        task = normalize({"title": "A"}, now=NOW)
        assert isinstance(task.id, str) and task.id

    def test_non_string_id_generates_one(self):
        task = normalize({"id": 42, "title": "A"}, now=NOW)
        assert task.id != 42
        assert isinstance(task.id, str)

    def test_missing_title_defaults_to_untitled(self):
        assert normalize({}, now=NOW).title == "Untitled"

    def test_non_string_title_defaults_to_untitled(self):
        assert normalize({"title": ["x"]}, now=NOW).title == "Untitled"

    def test_missing_description_is_empty(self):
        assert normalize({"title": "A"}, now=NOW).description == ""

    def test_falsy_due_date_is_none(self):
        assert normalize({"dueDate": ""}, now=NOW).due_date is None
        assert normalize({"dueDate": None}, now=NOW).due_date is None

    def test_due_date_not_validated(self):
        assert normalize({"dueDate": "someday"}, now=NOW).due_date == "someday"

    def test_invalid_priority_defaults_to_medium(self):
        assert normalize({"priority": "urgent"}, now=NOW).priority == "medium"
        assert normalize({"priority": None}, now=NOW).priority == "medium"

    def test_status_other_than_done_is_open(self):
        assert normalize({"status": "DONE"}, now=NOW).status == "open"
        assert normalize({"status": "done"}, now=NOW).status == "done"

    def test_tags_drop_non_strings_and_cap_at_eight(self):
        task = normalize({"tags": ["a", 1, "b", None, "c", "d", "e", "f", "g", "h", "i"]}, now=NOW)
        assert task.tags == ("a", "b", "c", "d", "e", "f", "g", "h")

    def test_tags_not_a_sequence(self):
        assert normalize({"tags": "a,b"}, now=NOW).tags == ()

    def test_missing_timestamps_default_to_now(self):
        task = normalize({"title": "A"}, now=NOW)
        assert task.created_at == NOW
        assert task.updated_at == NOW

    def test_updated_at_never_before_created_at(self):
        task = normalize(
            {"createdAt": "2024-06-05T00:00:00.000Z", "updatedAt": "2024-06-01T00:00:00.000Z"},
            now=NOW,
        )
        assert task.updated_at == task.created_at

    def test_done_without_completed_at_defaults_to_now(self):
        task = normalize({"status": "done"}, now=NOW)
        assert task.completed_at == NOW

    def test_open_never_keeps_completed_at(self):
        task = normalize({"status": "open", "completedAt": NOW}, now=NOW)
        assert task.completed_at is None

    def test_notes_by_user_preserved(self):
        task = normalize({"notesByUser": {"u1": "call first"}}, now=NOW)
        assert task.notes_by_user == {"u1": "call first"}
        assert task.to_dict()["notesByUser"] == {"u1": "call first"}

    def test_non_dict_notes_dropped(self):
        task = normalize({"notesByUser": "text"}, now=NOW)
        assert task.notes_by_user is None
        assert "notesByUser" not in task.to_dict()

    @pytest.mark.parametrize("raw", [None, 7, "text", ["a"]])
    def test_non_mapping_input(self, raw):
        task = normalize(raw, now=NOW)
        assert task.title == "Untitled"
        assert task.status == "open"

    def test_accepts_task(self, full_record):
        task = normalize(full_record, now=NOW)
        assert normalize(task) == task

    @pytest.mark.parametrize(
        "raw",
        [
            {},
            {"title": 5, "tags": "x", "status": "done"},
            {"id": "a", "title": "A", "createdAt": "2024-06-05T00:00:00.000Z", "updatedAt": "2024-01-01"},
            {"id": "b", "status": "open", "completedAt": "2024-06-01T00:00:00.000Z"},
            {"id": "c", "priority": "high", "tags": ["a"] * 12, "dueDate": 20240610},
        ],
    )
    def test_idempotent(self, raw):
        once = normalize(raw, now=NOW)
        assert normalize(once) == once
        assert normalize(once.to_dict()) == once


class TestTags:
    def test_parse_tags_trims_and_drops_empty(self):
        assert parse_tags(" a, b ,, c ") == ("a", "b", "c")

    def test_parse_tags_caps_at_eight(self):
        assert len(parse_tags(",".join(str(i) for i in range(12)))) == 8

    def test_parse_tags_empty(self):
        assert parse_tags("") == ()
        assert parse_tags(None) == ()

    def test_clean_tags_keeps_order(self):
        assert clean_tags(["z", "a", "m"]) == ("z", "a", "m")


class TestTask:
    def test_now_iso_format(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", now_iso())

    def test_is_done(self):
        assert Task(id="1", title="A", status="done").is_done is True
        assert Task(id="1", title="A").is_done is False

    def test_to_dict_uses_camel_case(self):
        data = Task(id="1", title="A", due_date="2024-06-10", tags=("x",)).to_dict()
        assert data["dueDate"] == "2024-06-10"
        assert data["tags"] == ["x"]
        assert set(data) == {
            "id",
            "title",
            "description",
            "dueDate",
            "priority",
            "status",
            "tags",
            "createdAt",
            "updatedAt",
            "completedAt",
        }
