"""In-memory game store with versioned compare-and-set. Replace with DB later if needed."""

import logging
import threading
from typing import Any, Callable, Optional

from werewolf.errors import RetryExhausted, StoreConflict
from werewolf.state import GameState

logger = logging.getLogger(__name__)

# game_id -> { state, version }
_store: dict[str, dict[str, Any]] = {}
_lock = threading.Lock()


def create(game_id: str, state: GameState) -> None:
    with _lock:
        _store[game_id] = {"state": state, "version": 0}


def get(game_id: str) -> dict[str, Any] | None:
    """Return a snapshot {state, version} or None."""
    with _lock:
        entry = _store.get(game_id)
        return dict(entry) if entry else None


def compare_and_set(game_id: str, expected_version: int, state: GameState) -> int:
    """Write state only if the stored version is still expected_version. Returns the new version."""
    with _lock:
        entry = _store.get(game_id)
        if entry is None:
            raise KeyError(game_id)
        if entry["version"] != expected_version:
            raise StoreConflict(game_id, expected_version, entry["version"])
        entry["state"] = state
        entry["version"] = expected_version + 1
        return entry["version"]


def update(game_id: str, state: GameState) -> None:
    """Unconditional write."""
    with _lock:
        if game_id in _store:
            _store[game_id]["state"] = state
            _store[game_id]["version"] += 1


def transact(
    game_id: str,
    fn: Callable[[GameState], Optional[GameState]],
    retries: int = 3,
) -> Optional[GameState]:
    """
    Optimistic read-modify-write. fn receives the current state and returns the new one,
    or None for a no-op (nothing is written). On a version conflict fn is re-run on a fresh
    read, up to retries times; then RetryExhausted is raised with the store unchanged.
    Exceptions from fn propagate and nothing is written.
    """
    for attempt in range(1, retries + 1):
        entry = get(game_id)
        if entry is None:
            raise KeyError(game_id)
        new_state = fn(entry["state"])
        if new_state is None:
            return None
        try:
            compare_and_set(game_id, entry["version"], new_state)
            return new_state
        except StoreConflict as e:
            logger.warning("Store conflict on attempt %d: %s", attempt, e)
    raise RetryExhausted(game_id, retries)


def delete(game_id: str) -> None:
    with _lock:
        _store.pop(game_id, None)


def list_games() -> list[str]:
    with _lock:
        return list(_store.keys())
