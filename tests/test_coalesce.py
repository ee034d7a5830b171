"""
Tests for reducing raw change batches to net change sets
"""
from unittest.mock import Mock

from fslisten.coalesce import reduce_changes, smoosh_changes
from fslisten.events import ChangeKind, NetChangeSet, RawChange
from fslisten.interfaces import FILE


def added(path):
    return RawChange(ChangeKind.ADDED, path)


def modified(path):
    return RawChange(ChangeKind.MODIFIED, path)


def removed(path):
    return RawChange(ChangeKind.REMOVED, path)


def moved_from(path, cookie):
    return RawChange(ChangeKind.MOVED_FROM, path, cookie)


def moved_to(path, cookie):
    return RawChange(ChangeKind.MOVED_TO, path, cookie)


def exists(*paths):
    return lambda path: path in paths


def silenced(*paths):
    return lambda path, kind: path in paths


class TestSimpleEvents:

    def test_edit_sequence_on_existing_file_is_modified(self):
        changes = [modified("p"), removed("p"), added("p"), modified("p")]
        result = smoosh_changes(changes, exists=exists("p"))
        assert result.as_tuple() == (["p"], [], [])

    def test_transient_file_is_dropped(self):
        changes = [added("p"), modified("p"), removed("p"), modified("p")]
        result = smoosh_changes(changes, exists=exists())
        assert result.is_empty()

    def test_remove_then_add_is_modified(self):
        result = smoosh_changes([removed("p"), added("p")], exists=exists("p"))
        assert result.as_tuple() == (["p"], [], [])

    def test_new_file(self):
        result = smoosh_changes([added("p"), modified("p")], exists=exists("p"))
        assert result.as_tuple() == ([], ["p"], [])

    def test_deleted_file(self):
        result = smoosh_changes([modified("p"), removed("p")], exists=exists())
        assert result.as_tuple() == ([], [], ["p"])

    def test_modified_file(self):
        result = smoosh_changes([modified("p")], exists=exists("p"))
        assert result.as_tuple() == (["p"], [], [])

    def test_ignored_path_is_dropped(self):
        result = smoosh_changes([modified("p")], silenced=silenced("p"), exists=exists("p"))
        assert result.is_empty()

    def test_empty_batch(self):
        result = smoosh_changes([], exists=exists())
        assert result == NetChangeSet()
        assert result.is_empty()

    def test_first_arrival_order(self):
        changes = [modified("b"), modified("a"), modified("b"), added("c")]
        result = smoosh_changes(changes, exists=exists("a", "b", "c"))
        assert result.modified == ["b", "a"]
        assert result.added == ["c"]

    def test_lists_are_disjoint(self):
        changes = [added("x"), removed("y"), modified("x"), added("y"), modified("z")]
        result = smoosh_changes(changes, exists=exists("x", "y", "z"))
        seen = result.modified + result.added + result.removed
        assert len(seen) == len(set(seen)) == 3

    def test_existence_checked_once_per_path(self):
        check = Mock(return_value=True)
        smoosh_changes([modified("p"), modified("p"), modified("q")], exists=check)
        assert sorted(call.args[0] for call in check.call_args_list) == ["p", "q"]

    def test_existence_error_counts_as_missing(self):
        check = Mock(side_effect=PermissionError("denied"))
        result = smoosh_changes([removed("p")], exists=check)
        assert result.removed == ["p"]

    def test_filter_consulted_with_file_kind(self):
        predicate = Mock(return_value=False)
        smoosh_changes([modified("p")], silenced=predicate, exists=exists("p"))
        predicate.assert_called_once_with("p", FILE)


class TestMoves:

    def test_orphan_moved_to_is_added(self):
        result = smoosh_changes([moved_to("p", 1)], exists=exists("p"))
        assert result.as_tuple() == ([], ["p"], [])

    def test_orphan_moved_from_is_removed(self):
        result = smoosh_changes([moved_from("p", 1)], exists=exists())
        assert result.as_tuple() == ([], [], ["p"])

    def test_rename_reports_destination_as_added(self):
        changes = [moved_from("a", 7), moved_to("b", 7)]
        result = smoosh_changes(changes, exists=exists("b"))
        assert result.as_tuple() == ([], ["b"], [])

    def test_rename_from_silenced_source_is_modified(self):
        changes = [moved_from("a.swp", 7), moved_to("b", 7)]
        result = smoosh_changes(changes, silenced=silenced("a.swp"), exists=exists("b"))
        assert result.as_tuple() == (["b"], [], [])

    def test_rename_to_silenced_destination_is_dropped(self):
        changes = [moved_from("a", 7), moved_to("b.tmp", 7)]
        result = smoosh_changes(changes, silenced=silenced("b.tmp"), exists=exists("b.tmp"))
        assert result.is_empty()

    def test_editor_save_via_temp_file(self):
        # write temp, move target away, move temp over target, delete backup
        changes = [
            added("doc.swp"),
            moved_from("doc", 1), moved_to("doc~", 1),
            moved_from("doc.swp", 2), moved_to("doc", 2),
            removed("doc~"),
        ]
        result = smoosh_changes(
            changes,
            silenced=silenced("doc.swp", "doc~"),
            exists=exists("doc"),
        )
        assert result.as_tuple() == (["doc"], [], [])

    def test_pairs_matched_by_cookie_not_position(self):
        changes = [moved_from("a", 1), moved_from("c", 2), moved_to("d", 2), moved_to("b", 1)]
        result = smoosh_changes(changes, exists=exists("b", "d"))
        assert result.added == ["d", "b"]
        assert result.removed == []


class TestReduceChanges:

    def test_uses_supplied_existence(self):
        batch = [(modified("p"), True), (removed("q"), False)]
        result = reduce_changes(batch)
        assert result.as_tuple() == (["p"], [], ["q"])

    def test_last_existence_value_wins(self):
        batch = [(added("p"), False), (modified("p"), True)]
        assert reduce_changes(batch).added == ["p"]
