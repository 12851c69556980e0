"""Engine exceptions."""

from enum import Enum


class RejectReason(str, Enum):
    """Why a submission was refused."""

    GAME_NOT_RUNNING = "game_not_running"
    WRONG_PHASE = "wrong_phase"
    ACTOR_NOT_ALIVE = "actor_not_alive"
    ALREADY_ACTED = "already_acted"
    INVALID_ACTION = "invalid_action"
    INVALID_TARGET = "invalid_target"
    NOT_PENDING_ACTOR = "not_pending_actor"


class GameError(Exception):
    """Base class for engine and store errors."""


class ActionRejected(GameError):
    """Raised synchronously when a submitted intent is not allowed."""

    def __init__(self, reason: RejectReason, message: str = ""):
        self.reason = reason
        self.message = message or reason.value
        super().__init__(f"{reason.value}: {self.message}")


class StoreConflict(GameError):
    """The stored aggregate changed between read and write."""

    def __init__(self, game_id: str, expected_version: int, actual_version: int):
        self.game_id = game_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"game {game_id} is at version {actual_version}, expected {expected_version}"
        )


class RetryExhausted(GameError):
    """Optimistic writes kept conflicting; the caller may retry the whole call."""

    def __init__(self, game_id: str, attempts: int):
        self.game_id = game_id
        self.attempts = attempts
        super().__init__(f"game {game_id}: gave up after {attempts} conflicting writes")
