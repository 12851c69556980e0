"""Tests for the versioned in-memory store."""

from unittest.mock import patch

import pytest

from api import game_store
from werewolf.errors import RetryExhausted, StoreConflict
from werewolf.lobby import create_game


def _fresh(game_id: str):
    state = create_game(game_id, ["A", "B", "C"], seed=1)
    game_store.create(game_id, state)
    return state


def test_transact_writes_and_bumps_version():
    _fresh("store-1")
    new_state = game_store.transact("store-1", lambda s: create_game("store-1", ["X", "Y", "Z"]))
    entry = game_store.get("store-1")
    assert entry["version"] == 1
    assert entry["state"] is new_state
    game_store.delete("store-1")


def test_transact_noop_writes_nothing():
    state = _fresh("store-2")
    assert game_store.transact("store-2", lambda s: None) is None
    entry = game_store.get("store-2")
    assert entry["version"] == 0
    assert entry["state"] is state
    game_store.delete("store-2")


def test_conflict_is_retried_on_fresh_read():
    _fresh("store-3")
    seen = []

    def fn(state):
        seen.append(state)
        if len(seen) == 1:
            # another writer commits between our read and write
            game_store.update("store-3", create_game("store-3", ["D", "E", "F"]))
        return create_game("store-3", ["G", "H", "I"])

    result = game_store.transact("store-3", fn)
    assert len(seen) == 2
    assert [p.name for p in seen[1].players] == ["D", "E", "F"]
    entry = game_store.get("store-3")
    assert entry["version"] == 2
    assert entry["state"] is result
    game_store.delete("store-3")


def test_retry_exhausted_leaves_store_unchanged():
    state = _fresh("store-4")
    with patch("api.game_store.compare_and_set", side_effect=StoreConflict("store-4", 0, 1)):
        with pytest.raises(RetryExhausted) as exc_info:
            game_store.transact("store-4", lambda s: create_game("store-4", ["X", "Y", "Z"]), retries=3)
    assert exc_info.value.attempts == 3
    entry = game_store.get("store-4")
    assert entry["version"] == 0
    assert entry["state"] is state
    game_store.delete("store-4")


def test_exception_in_fn_aborts():
    state = _fresh("store-5")

    def boom(s):
        raise ValueError("bad")

    with pytest.raises(ValueError):
        game_store.transact("store-5", boom)
    assert game_store.get("store-5")["state"] is state
    game_store.delete("store-5")


def test_compare_and_set_rejects_stale_version():
    _fresh("store-6")
    game_store.compare_and_set("store-6", 0, create_game("store-6", ["X", "Y", "Z"]))
    with pytest.raises(StoreConflict):
        game_store.compare_and_set("store-6", 0, create_game("store-6", ["X", "Y", "Z"]))
    game_store.delete("store-6")


def test_missing_game():
    assert game_store.get("missing") is None
    with pytest.raises(KeyError):
        game_store.transact("missing", lambda s: s)
