"""Phase dispatcher: pure state transitions, no persistence."""

import copy
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from werewolf.actions import expected_night_actors
from werewolf.night import resolve_night
from werewolf.rules import Phase, Status
from werewolf.state import GameEvent, GameState
from werewolf.transitions import begin_night, skip_hunter_shot
from werewolf.votes import effective_votes, resolve_jury_votes, resolve_votes


@dataclass
class PhaseResult:
    """New state plus the events appended by one resolution."""

    state: GameState
    events: list[GameEvent]

    @property
    def phase(self) -> Phase:
        return self.state.phase


def phase_ready(state: GameState, now: Optional[datetime] = None) -> bool:
    """
    True when the current phase may be resolved: its deadline has passed, or every
    expected actor has already acted.
    """
    now = now or datetime.now(timezone.utc)
    if state.phase_ends_at is None or now >= state.phase_ends_at:
        return True
    if state.phase == Phase.NIGHT:
        return all(p.used_night_ability for p in expected_night_actors(state))
    if state.phase == Phase.DAY:
        votes = effective_votes(state)
        return all(p.id in votes for p in state.get_alive_players())
    if state.phase == Phase.JURY_VOTING:
        return all(p.id in state.jury_votes for p in state.players if not p.alive)
    return False


def _open_first_night(state: GameState) -> GameState:
    state = copy.deepcopy(state)
    begin_night(state)
    return state


def resolve_phase(
    state: GameState,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    force: bool = False,
) -> Optional[PhaseResult]:
    """
    Resolve whatever the current phase is. Returns None (no-op) when the game is not
    running, the phase has nothing to resolve, or it is not yet time and force is False.
    Safe to call repeatedly: a second call sees the advanced phase.
    """
    if state.status != Status.IN_PROGRESS:
        return None
    if not force and not phase_ready(state, now):
        return None
    if state.phase == Phase.ROLE_REVEAL:
        new_state = _open_first_night(state)
    elif state.phase == Phase.NIGHT:
        new_state = resolve_night(state, rng)
    elif state.phase == Phase.DAY:
        new_state = resolve_votes(state, rng)
    elif state.phase == Phase.JURY_VOTING:
        new_state = resolve_jury_votes(state, rng)
    elif state.phase == Phase.HUNTER_SHOT:
        new_state = skip_hunter_shot(state)
    else:
        return None
    if new_state is state:
        return None
    return PhaseResult(state=new_state, events=new_state.events[len(state.events):])


def is_game_over(state: GameState) -> bool:
    return state.status == Status.FINISHED


def get_winner(state: GameState) -> Optional[list[str]]:
    """Return the winner codes, or None if the game is not over."""
    if not is_game_over(state):
        return None
    return list(state.winner_codes)
