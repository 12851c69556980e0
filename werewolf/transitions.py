"""Phase transitions shared by the night and vote engines, and the hunter's last shot."""

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from werewolf.chain import resolve_death
from werewolf.errors import ActionRejected, RejectReason
from werewolf.rules import DeathCause, Phase, Resume, Status
from werewolf.state import EventKind, GameState, emit, name_of
from werewolf.victory import Victory, evaluate

logger = logging.getLogger(__name__)


def phase_deadline(state: GameState, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(seconds=state.settings.phase_seconds)


def reset_round_flags(state: GameState) -> None:
    for p in state.players:
        p.voted_for = None
        p.used_night_ability = False


def begin_night(state: GameState, new_round: bool = True) -> None:
    """Enter the night (mutates state). Arms the wolf cub's revenge for this night if pending."""
    if new_round:
        state.round_index += 1
    reset_round_flags(state)
    state.silenced_player_id = None
    state.runoff_candidates = []
    state.jury_candidates = []
    state.jury_votes = {}
    if state.revenge_pending:
        state.revenge_pending = False
        state.wolf_cub_revenge_round = state.round_index
    state.phase = Phase.NIGHT
    state.phase_ends_at = phase_deadline(state)
    emit(state, EventKind.PHASE_CHANGE, f"Night {state.round_index} falls.", {"phase": Phase.NIGHT.value})
    logger.info("game %s: night %d", state.game_id, state.round_index)


def begin_day(state: GameState) -> None:
    """Enter the day (mutates state)."""
    reset_round_flags(state)
    state.exiled_player_id = None
    state.phase = Phase.DAY
    state.phase_ends_at = phase_deadline(state)
    emit(state, EventKind.PHASE_CHANGE, f"Day {state.round_index} breaks.", {"phase": Phase.DAY.value})
    logger.info("game %s: day %d", state.game_id, state.round_index)


def _revenge_night(state: GameState) -> None:
    state.night_actions = [a for a in state.night_actions if a.round_index != state.round_index]
    emit(
        state,
        EventKind.WOLF_CUB_REVENGE,
        "The wolf cub has fallen. The pack howls for revenge and hunts again tonight.",
    )
    begin_night(state, new_round=False)


def resume(state: GameState, where: Resume) -> None:
    if where == Resume.DAY:
        begin_day(state)
    elif where == Resume.NEXT_NIGHT:
        begin_night(state)
    else:
        _revenge_night(state)


def finish_game(state: GameState, victory: Victory) -> None:
    """Close the game and append the single terminal event (mutates state)."""
    state.status = Status.FINISHED
    state.phase = Phase.FINISHED
    state.phase_ends_at = None
    state.pending_hunter_id = None
    state.hunter_resume = None
    state.winner_codes = [c.value for c in victory.codes]
    state.winner_ids = list(victory.winner_ids)
    emit(
        state,
        EventKind.GAME_OVER,
        victory.message,
        {"winner_codes": state.winner_codes, "winner_ids": state.winner_ids},
    )
    logger.info("game %s: over, winners %s", state.game_id, state.winner_codes)


def conclude(state: GameState, where: Resume, lynched_id: Optional[str] = None) -> None:
    """
    Win check and transition after deaths were applied (mutates state).
    A winner ends the game; a dead hunter gets the floor first; otherwise the round moves on.
    """
    victory = evaluate(state, lynched_id)
    if victory is not None:
        finish_game(state, victory)
        return
    if state.pending_hunter_id is not None:
        state.phase = Phase.HUNTER_SHOT
        state.hunter_resume = where
        state.phase_ends_at = phase_deadline(state)
        emit(
            state,
            EventKind.PHASE_CHANGE,
            f"{name_of(state, state.pending_hunter_id)} takes aim with their last breath.",
            {"phase": Phase.HUNTER_SHOT.value, "pending_player_id": state.pending_hunter_id},
        )
        return
    resume(state, where)


def resolve_hunter_shot(state: GameState, hunter_id: str, target_id: str) -> GameState:
    """The pending hunter shoots target_id. Returns new state."""
    if state.status != Status.IN_PROGRESS:
        raise ActionRejected(RejectReason.GAME_NOT_RUNNING)
    if state.phase != Phase.HUNTER_SHOT:
        raise ActionRejected(RejectReason.WRONG_PHASE, "No hunter is waiting to shoot")
    if hunter_id != state.pending_hunter_id:
        raise ActionRejected(RejectReason.NOT_PENDING_ACTOR, "Only the fallen hunter may shoot")
    target = state.get_player(target_id)
    if target is None or not target.alive or target_id == hunter_id:
        raise ActionRejected(RejectReason.INVALID_TARGET, "Target must be a living player")

    state = copy.deepcopy(state)
    state.pending_hunter_id = None
    where = state.hunter_resume or Resume.DAY
    state.hunter_resume = None
    killed = resolve_death(state, target_id, DeathCause.HUNTER_SHOT)
    emit(
        state,
        EventKind.HUNTER_SHOT,
        f"{name_of(state, hunter_id)} shot {target.name}.",
        {"hunter_id": hunter_id, "target_id": target_id, "killed_player_ids": killed},
    )
    conclude(state, where)
    return state


def skip_hunter_shot(state: GameState) -> GameState:
    """The hunter let the deadline pass without shooting. Returns new state."""
    state = copy.deepcopy(state)
    hunter_id = state.pending_hunter_id
    state.pending_hunter_id = None
    where = state.hunter_resume or Resume.DAY
    state.hunter_resume = None
    emit(
        state,
        EventKind.HUNTER_SHOT,
        f"{name_of(state, hunter_id)} died without firing.",
        {"hunter_id": hunter_id, "target_id": None, "killed_player_ids": []},
    )
    conclude(state, where)
    return state
