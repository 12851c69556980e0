"""Day vote resolution: tally, restricted runoff, jury of the dead, lynch."""

import copy
import logging
import random
from collections import Counter
from typing import Optional

from werewolf.chain import resolve_death
from werewolf.night import round_rng
from werewolf.rules import DeathCause, Phase, Resume, Role, Status
from werewolf.state import EventKind, GameState, emit, name_of
from werewolf.transitions import conclude, phase_deadline

logger = logging.getLogger(__name__)


def effective_votes(state: GameState) -> dict[str, str]:
    """Return voter id -> target id for living voters. A charmed player votes with the siren."""
    votes = {p.id: p.voted_for for p in state.get_alive_players() if p.voted_for}
    for siren in state.get_players_by_role(Role.RIVER_SIREN):
        charmed = state.get_player(siren.siren_target_id) if siren.siren_target_id else None
        if charmed is not None and charmed.alive and siren.voted_for:
            votes[charmed.id] = siren.voted_for
    return votes


def tally(state: GameState) -> Counter:
    """Count votes for living targets. During a runoff only the tied candidates count."""
    counts: Counter = Counter()
    for target_id in effective_votes(state).values():
        target = state.get_player(target_id)
        if target is None or not target.alive:
            continue
        if state.runoff_candidates and target_id not in state.runoff_candidates:
            continue
        counts[target_id] += 1
    return counts


def _leaders(state: GameState, counts: Counter) -> list[str]:
    if not counts:
        return []
    top = max(counts.values())
    return [p.id for p in state.players if counts.get(p.id) == top]


def _run_duel(state: GameState) -> list[str]:
    if state.pending_duel is None:
        return []
    duelists = state.pending_duel
    state.pending_duel = None
    killed: list[str] = []
    for pid in duelists:
        killed.extend(resolve_death(state, pid, DeathCause.DUEL))
    return killed


def _close_vote(state: GameState, candidate_id: Optional[str], cause: DeathCause, counts: Counter) -> None:
    """Apply the verdict, the pending duel and the transition (mutates state)."""
    lynched_id: Optional[str] = None
    killed: list[str] = []
    if candidate_id is not None:
        candidate = state.get_player(candidate_id)
        if candidate.role == Role.PRINCE and not candidate.prince_revealed:
            candidate.prince_revealed = True
            emit(
                state,
                EventKind.PRINCE_REVEALED,
                f"{candidate.name} reveals they are the prince and walks away from the gallows.",
                {"player_id": candidate.id},
            )
        else:
            lynched_id = candidate_id
            killed = resolve_death(state, candidate_id, cause)
    killed.extend(_run_duel(state))

    if lynched_id is not None:
        message = f"The village has lynched {name_of(state, lynched_id)}."
    else:
        message = "The village could not agree. Nobody is lynched."
    emit(
        state,
        EventKind.VOTE_RESULT,
        message,
        {
            "lynched_player_id": lynched_id,
            "killed_player_ids": killed,
            "votes": dict(counts),
            "final": True,
        },
    )
    state.runoff_candidates = []
    logger.info("game %s: vote round %d lynched %s", state.game_id, state.round_index, lynched_id)
    conclude(state, Resume.NEXT_NIGHT, lynched_id)


def _open_jury(state: GameState, candidates: list[str]) -> None:
    state.runoff_candidates = []
    state.jury_candidates = list(candidates)
    state.jury_votes = {}
    state.phase = Phase.JURY_VOTING
    state.phase_ends_at = phase_deadline(state)
    emit(
        state,
        EventKind.JURY_VOTE,
        "The runoff is tied again. The dead will decide.",
        {"candidate_ids": list(candidates)},
    )


def resolve_votes(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Resolve the day vote. Returns new state; outside a running day this is a no-op.
    A first tie opens a runoff between the tied players; a tie in the runoff means no lynch,
    or a jury of the dead when the game enables it.
    """
    if state.phase != Phase.DAY or state.status != Status.IN_PROGRESS:
        return state
    state = copy.deepcopy(state)
    counts = tally(state)
    leaders = _leaders(state, counts)

    if len(leaders) > 1:
        if not state.runoff_candidates:
            state.runoff_candidates = leaders
            for p in state.players:
                p.voted_for = None
            state.phase_ends_at = phase_deadline(state)
            emit(
                state,
                EventKind.VOTE_TIE,
                "The vote is tied between " + ", ".join(name_of(state, pid) for pid in leaders) + ". Vote again.",
                {"tied_player_ids": leaders, "votes": dict(counts), "final": False},
            )
            return state
        if state.settings.jury_voting:
            _open_jury(state, leaders)
            return state
        _close_vote(state, None, DeathCause.VOTE, counts)
        return state

    _close_vote(state, leaders[0] if leaders else None, DeathCause.VOTE, counts)
    return state


def resolve_jury_votes(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """Resolve the jury of the dead. A tie (or no ballots) is broken at random. Returns new state."""
    if state.phase != Phase.JURY_VOTING or state.status != Status.IN_PROGRESS:
        return state
    state = copy.deepcopy(state)
    rng = rng or round_rng(state)
    counts = Counter(v for v in state.jury_votes.values() if v in state.jury_candidates)
    alive_ids = {p.id for p in state.get_alive_players()}
    candidates = [c for c in state.jury_candidates if c in alive_ids]
    top = max((counts.get(c, 0) for c in candidates), default=0)
    leaders = [c for c in candidates if counts.get(c, 0) == top]
    chosen = None
    if leaders:
        chosen = leaders[0] if len(leaders) == 1 else rng.choice(leaders)
    state.jury_candidates = []
    state.jury_votes = {}
    _close_vote(state, chosen, DeathCause.JURY_VOTE, counts)
    return state
