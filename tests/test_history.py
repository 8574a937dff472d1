"""Tests for the undo history log."""
import pytest

from easyresx.parsers.resx import parse_resx
from easyresx.services.errors import StoreIOFailure, UndoReversalFailure
from easyresx.services.fanout import FanOut
from easyresx.services.history import (
    AddAction, BatchAction, DeleteAction, HistoryLog, RenameAction, UpdateAction, describe,
)
from easyresx.services.store import ResourceStore, Row


@pytest.fixture
def fanout():
    pool = FanOut(4)
    yield pool
    pool.shutdown()


@pytest.fixture
def store():
    return ResourceStore()


def _items(group, lang):
    return list(parse_resx(group.file_for(lang).path).items())


class TestHistoryLog:
    def test_push_peek_depth(self, store, fanout, make_group):
        group = make_group({"default": [("a", "1")]})
        log = HistoryLog(store, group, fanout)
        depths = []
        log.depth_changed.connect(depths.append)
        action = AddAction("a")
        log.push(action)
        assert log.peek() is action
        assert len(log) == log.depth == 1
        log.clear()
        assert log.peek() is None
        assert depths == [1, 0]

    def test_undo_empty(self, store, fanout, make_group):
        log = HistoryLog(store, make_group({"default": []}), fanout)
        assert log.undo() is None

    def test_mixed_batch_reversed_last_first(self, store, fanout, make_group):
        # On disk: "Hello" was updated to "Hey" and then renamed to "Greeting".
        group = make_group({
            "default": [("Greeting", "Hey"), ("Bye", "Bye")],
            "sv": [("Greeting", "Hej")],
        })
        log = HistoryLog(store, group, fanout)
        batch = BatchAction((
            UpdateAction("Hello", "default", "Hello", "Hey"),
            RenameAction("Hello", "Greeting"),
        ))
        log.push(batch)
        assert log.undo() is batch
        assert _items(group, "default") == [("Hello", "Hello"), ("Bye", "Bye")]
        assert _items(group, "sv") == [("Hello", "Hej")]
        assert log.depth == 0

    def test_update_batch_is_one_call_per_file(self, store, fanout, make_group, monkeypatch):
        group = make_group({"default": [("a", "3"), ("b", "x")], "sv": [("a", "")]})
        calls = []
        original = store.batch_set_values

        def spy(f, updates):
            calls.append((f.lang, dict(updates)))
            return original(f, updates)
        monkeypatch.setattr(store, "batch_set_values", spy)

        log = HistoryLog(store, group, fanout)
        log.push(BatchAction((
            UpdateAction("a", "default", "1", "2"),
            UpdateAction("a", "default", "2", "3"),
            UpdateAction("b", "default", "y", "x"),
            UpdateAction("a", "sv", "ett", ""),
        )))
        log.undo()
        assert sorted(calls) == [("default", {"a": "1", "b": "y"}), ("sv", {"a": "ett"})]
        assert _items(group, "default") == [("a", "1"), ("b", "y")]

    def test_delete_reinserts_only_where_present(self, store, fanout, make_group):
        group = make_group({"default": [("a", "1"), ("c", "3")], "sv": [("c", "tre")]})
        log = HistoryLog(store, group, fanout)
        log.push(DeleteAction("b", Row("b", {"default": "2"}), {group.file_for("default").path: 1}))
        log.undo()
        assert _items(group, "default") == [("a", "1"), ("b", "2"), ("c", "3")]
        assert _items(group, "sv") == [("c", "tre")]

    def test_missing_language_file_fails_and_keeps_action(self, store, fanout, make_group):
        group = make_group({"default": [("a", "1")]})
        log = HistoryLog(store, group, fanout)
        action = UpdateAction("a", "fr", "un", "deux")
        log.push(action)
        with pytest.raises(UndoReversalFailure) as exc:
            log.undo()
        assert exc.value.action is action
        assert log.peek() is action


class TestDescribe:
    def test_labels(self):
        assert describe(UpdateAction("a", "sv", "x", "y")) == 'edit of "a" (sv)'
        assert describe(AddAction("a")) == 'add "a"'
        assert describe(DeleteAction("a", Row("a"))) == 'delete "a"'
        assert describe(BatchAction((DeleteAction("a", Row("a")), DeleteAction("b", Row("b"))))) \
            == "delete of 2 keys"
        assert describe(BatchAction((AddAction("a"), RenameAction("a", "b")))) == "2 changes"


class TestBatchReversalFailure:
    def test_failed_child_reports_step_and_retry_resumes(self, store, fanout, make_group, monkeypatch):
        # On disk: "a" was set to "2", "b" renamed to "bee", then "c" added.
        group = make_group({
            "default": [("a", "2"), ("bee", "B"), ("c", "")],
            "sv": [("bee", "Bi"), ("c", "")],
        })
        sv_path = group.file_for("sv").path
        removed, renamed = [], []
        original_remove, original_rename = store.remove_key, store.rename_key

        def remove_spy(f, key):
            removed.append(f.lang)
            return original_remove(f, key)

        def flaky_rename(f, old, new):
            renamed.append(f.lang)
            if f.path == sv_path and renamed.count("sv") == 1:
                raise StoreIOFailure(f.path, "locked")
            return original_rename(f, old, new)
        monkeypatch.setattr(store, "remove_key", remove_spy)
        monkeypatch.setattr(store, "rename_key", flaky_rename)

        log = HistoryLog(store, group, fanout)
        batch = BatchAction((
            UpdateAction("a", "default", "1", "2"),
            RenameAction("b", "bee"),
            AddAction("c"),
        ))
        log.push(batch)

        with pytest.raises(UndoReversalFailure) as exc:
            log.undo()
        assert exc.value.step == f"step 2 of batch, {sv_path}"
        assert log.peek() is batch
        assert _items(group, "default") == [("a", "2"), ("b", "B")]
        assert _items(group, "sv") == [("bee", "Bi")]

        assert log.undo() is batch
        # The add was already reversed; only the sv rename was left.
        assert sorted(removed) == ["default", "sv"]
        assert sorted(renamed) == ["default", "sv", "sv"]
        assert _items(group, "default") == [("a", "1"), ("b", "B")]
        assert _items(group, "sv") == [("b", "Bi")]
        assert log.depth == 0
