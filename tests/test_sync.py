"""Tests for local/remote reconciliation."""

import pytest

from glasstask.core.sync import PushPlan, diff_for_push, merge_remote
from glasstask.core.tasks import Task

T1 = "2024-06-01T00:00:00.000Z"
T2 = "2024-06-02T00:00:00.000Z"
T3 = "2024-06-03T00:00:00.000Z"


def make(id, title="Task", updated_at=T1) -> Task:
    return Task(id=id, title=title, created_at=T1, updated_at=updated_at)


class TestMergeRemote:
    def test_local_only_kept(self):
        local = [make("a")]
        assert merge_remote(local, []) == local

    def test_remote_only_adopted_after_local(self):
        local = [make("a")]
        remote = [make("r1"), make("r2")]
        assert [t.id for t in merge_remote(local, remote)] == ["a", "r1", "r2"]

    def test_remote_only_normalized(self):
        merged = merge_remote([], [{"id": "r", "priority": "bogus", "tags": "x"}])
        assert merged[0].title == "Untitled"
        assert merged[0].priority == "medium"
        assert merged[0].tags == ()

    def test_newer_remote_wins(self):
        local = [make("a", "local", T1)]
        remote = [make("a", "remote", T2)]
        assert merge_remote(local, remote)[0].title == "remote"

    def test_newer_local_wins(self):
        local = [make("a", "local", T3)]
        remote = [make("a", "remote", T2)]
        assert merge_remote(local, remote)[0].title == "local"

    def test_tie_favors_local(self):
        local = [make("a", "local", T2)]
        remote = [make("a", "remote", T2)]
        assert merge_remote(local, remote)[0].title == "local"

    def test_keeps_local_order(self):
        local = [make("b"), make("a")]
        remote = [make("a", "newer", T2), make("b", "newer", T2)]
        assert [t.id for t in merge_remote(local, remote)] == ["b", "a"]

    def test_accepts_raw_documents(self):
        local = [make("a", "local", T1)]
        remote = [{"id": "a", "title": "remote", "createdAt": T1, "updatedAt": T2}]
        assert merge_remote(local, remote)[0].title == "remote"

    def test_idempotent(self):
        local = [make("a", "local a", T3), make("b", "local b", T1), make("c")]
        remote = [make("a", "remote a", T2), make("b", "remote b", T2), make("d")]
        once = merge_remote(local, remote)
        assert merge_remote(once, remote) == once
        assert merge_remote(merge_remote(once, remote), remote) == once

    def test_does_not_modify_inputs(self):
        local = [make("a")]
        remote = [make("b")]
        merge_remote(local, remote)
        assert [t.id for t in local] == ["a"]
        assert [t.id for t in remote] == ["b"]


class TestDiffForPush:
    def test_upserts_all_local(self):
        local = [make("a"), make("b")]
        plan = diff_for_push(local, [make("a")])
        assert plan.upserts == local

    def test_deletes_remote_missing_locally(self):
        local = [make("a")]
        remote = [make("a"), make("gone"), make("also-gone")]
        assert diff_for_push(local, remote).deletes == ["gone", "also-gone"]

    def test_accepts_remote_ids(self):
        assert diff_for_push([make("a")], ["a", "b"]).deletes == ["b"]

    @pytest.mark.parametrize(
        "local_ids,remote_ids",
        [([], []), (["a"], []), ([], ["a", "b"]), (["a", "c"], ["a", "b", "d"])],
    )
    def test_deletes_are_exactly_remote_minus_local(self, local_ids, remote_ids):
        plan = diff_for_push([make(i) for i in local_ids], remote_ids)
        assert set(plan.deletes) == set(remote_ids) - set(local_ids)
        assert [t.id for t in plan.upserts] == local_ids

    def test_empty_plan(self):
        assert PushPlan().is_empty
        assert not diff_for_push([make("a")], []).is_empty


class TestMalformedRemote:
    def test_entries_without_id_skipped(self):
        local = [make("a")]
        remote = [{"title": "from other client"}, {"id": "", "title": "blank"}, "b"]
        assert merge_remote(local, remote) == local

    def test_missing_updated_at_reaches_fixed_point(self):
        local = [make("a")]
        remote = [{"title": "from other client"}, {"id": "r", "title": "R"}]
        once = merge_remote(local, remote)
        assert [t.id for t in once] == ["a", "r"]
        assert merge_remote(once, remote) == once

    def test_missing_updated_at_never_beats_local(self):
        local = [make("a", "local", T1)]
        assert merge_remote(local, [{"id": "a", "title": "remote"}])[0].title == "local"

    def test_push_ignores_entries_without_id(self):
        plan = diff_for_push([], [{"title": "x"}, {"id": None}, "", {"id": "r"}])
        assert plan.deletes == ["r"]
