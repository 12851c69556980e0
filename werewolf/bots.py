"""Intent selection for AI seats. Randomness is always the caller's seeded rng."""

import logging
import random
from typing import Optional

from werewolf.actions import (
    available_actions,
    submit_jury_vote,
    submit_night_action,
    submit_vote,
    target_count,
    valid_targets,
)
from werewolf.errors import ActionRejected
from werewolf.rules import ActionType, PACK_ROLES, Phase, Role, Status
from werewolf.state import GameState
from werewolf.transitions import resolve_hunter_shot

logger = logging.getLogger(__name__)

# Chance a wolf simply follows the pack's first vote
FOLLOW_PACK_CHANCE = 0.8
# Chance an executioner pushes their own target on the vote
EXECUTIONER_PUSH_CHANCE = 0.75
# One-shot abilities are not spent on the first chance
ONE_SHOT_USE_CHANCE = 0.3

_ONE_SHOT = frozenset({
    ActionType.SORCERESS_POISON,
    ActionType.SORCERESS_SAVE,
    ActionType.LOOKOUT_SPY,
    ActionType.FAIRY_KILL,
})

NightPlan = tuple[str, ActionType, tuple[str, ...]]


def _pack_choice(state: GameState, bot_id: str) -> Optional[tuple[str, ...]]:
    for action in state.actions_this_round():
        if action.action_type != ActionType.WEREWOLF_KILL or action.actor_id == bot_id:
            continue
        actor = state.get_player(action.actor_id)
        if actor is not None and actor.role in PACK_ROLES:
            return action.target_ids
    return None


def plan_night(state: GameState, rng: random.Random) -> list[NightPlan]:
    """Pick one intent per available ability for every AI seat that has not acted."""
    submitted = {(a.actor_id, a.action_type) for a in state.actions_this_round()}
    plans: list[NightPlan] = []
    for bot in state.get_alive_players():
        if not bot.is_ai:
            continue
        for action_type in available_actions(state, bot):
            if (bot.id, action_type) in submitted:
                continue
            if action_type in _ONE_SHOT and rng.random() >= ONE_SHOT_USE_CHANCE:
                continue
            if action_type == ActionType.WEREWOLF_KILL:
                pack = _pack_choice(state, bot.id)
                if pack is not None and rng.random() < FOLLOW_PACK_CHANCE:
                    plans.append((bot.id, action_type, pack))
                    continue
            pool = [p.id for p in valid_targets(state, bot, action_type)]
            low, high = target_count(state, action_type)
            if len(pool) < low:
                continue
            plans.append((bot.id, action_type, tuple(rng.sample(pool, min(high, len(pool))))))
    return plans


def plan_votes(state: GameState, rng: random.Random) -> list[tuple[str, str]]:
    """Pick a vote for every living AI seat that has not voted."""
    plans = []
    for bot in state.get_alive_players():
        if not bot.is_ai or bot.voted_for is not None:
            continue
        pool = [
            p.id for p in state.get_alive_players()
            if p.id != bot.id and (not state.runoff_candidates or p.id in state.runoff_candidates)
        ]
        if not pool:
            continue
        target = bot.executioner_target_id if bot.role == Role.EXECUTIONER else None
        if target in pool and rng.random() < EXECUTIONER_PUSH_CHANCE:
            plans.append((bot.id, target))
        else:
            plans.append((bot.id, rng.choice(pool)))
    return plans


def run_bots(state: GameState, rng: random.Random) -> GameState:
    """Submit intents for every AI seat in the current phase. Returns new state."""
    if state.status != Status.IN_PROGRESS:
        return state
    if state.phase == Phase.NIGHT:
        for actor_id, action_type, targets in plan_night(state, rng):
            try:
                state = submit_night_action(state, actor_id, action_type, targets)
            except ActionRejected as e:
                logger.warning("Bot night action failed for %s: %s", actor_id, e)
    elif state.phase == Phase.DAY:
        for voter_id, target_id in plan_votes(state, rng):
            try:
                state = submit_vote(state, voter_id, target_id)
            except ActionRejected as e:
                logger.warning("Bot vote failed for %s: %s", voter_id, e)
    elif state.phase == Phase.JURY_VOTING:
        for juror in state.players:
            if juror.is_ai and not juror.alive and juror.id not in state.jury_votes and state.jury_candidates:
                state = submit_jury_vote(state, juror.id, rng.choice(state.jury_candidates))
    elif state.phase == Phase.HUNTER_SHOT:
        hunter = state.get_player(state.pending_hunter_id) if state.pending_hunter_id else None
        pool = [p.id for p in state.get_alive_players()]
        if hunter is not None and hunter.is_ai and pool:
            state = resolve_hunter_shot(state, hunter.id, rng.choice(pool))
    return state
