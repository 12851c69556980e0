"""Action submission: validate intents and record them on the state."""

import copy
import logging
from typing import Callable, Iterable

from werewolf.errors import ActionRejected, RejectReason
from werewolf.rules import (
    ActionType,
    FIRST_NIGHT_ACTIONS,
    GUARDIAN_SELF_PROTECT_LIMIT,
    MUTABLE_ACTIONS,
    PACK_ROLES,
    Phase,
    REVENGE_KILL_COUNT,
    ROLE_ACTIONS,
    Role,
    Status,
)
from werewolf.state import EventKind, GameState, NightAction, Player, emit, name_of

logger = logging.getLogger(__name__)

TargetRule = Callable[[GameState, Player, Player], bool]


def _other(state: GameState, actor: Player, target: Player) -> bool:
    return target.alive and target.id != actor.id


def _anyone(state: GameState, actor: Player, target: Player) -> bool:
    return target.alive


def _repeats_last_night(state: GameState, actor: Player, target: Player) -> bool:
    return actor.last_protected_id == target.id and actor.last_protected_round == state.round_index - 1


def _heal_target(state: GameState, actor: Player, target: Player) -> bool:
    return target.alive and not _repeats_last_night(state, actor, target)


def _guard_target(state: GameState, actor: Player, target: Player) -> bool:
    if target.id == actor.id and actor.guardian_self_protects >= GUARDIAN_SELF_PROTECT_LIMIT:
        return False
    return target.alive and not _repeats_last_night(state, actor, target)


def _bless_target(state: GameState, actor: Player, target: Player) -> bool:
    if target.id == actor.id and actor.priest_self_blessed:
        return False
    return target.alive


def _prey(state: GameState, actor: Player, target: Player) -> bool:
    return target.alive and target.role not in PACK_ROLES


def _recruit_target(state: GameState, actor: Player, target: Player) -> bool:
    return _other(state, actor, target) and not target.is_cult_member


def _boat_target(state: GameState, actor: Player, target: Player) -> bool:
    return _other(state, actor, target) and target.id not in state.boat


def _grave(state: GameState, actor: Player, target: Player) -> bool:
    return not target.alive


_TARGET_RULES: dict[ActionType, TargetRule] = {
    ActionType.WEREWOLF_KILL: _prey,
    ActionType.SEER_CHECK: _other,
    ActionType.DOCTOR_HEAL: _heal_target,
    ActionType.GUARDIAN_PROTECT: _guard_target,
    ActionType.PRIEST_BLESS: _bless_target,
    ActionType.SORCERESS_POISON: _other,
    ActionType.SORCERESS_SAVE: _other,
    ActionType.CUPID_LOVE: _anyone,
    ActionType.VIRGINIA_WOOLF_LINK: _other,
    ActionType.SHAPESHIFTER_SELECT: _other,
    ActionType.RIVER_SIREN_CHARM: _other,
    ActionType.SILENCER_SILENCE: _other,
    ActionType.ELDER_LEADER_EXILE: _other,
    ActionType.WITCH_HUNT: _other,
    ActionType.FAIRY_FIND: _other,
    ActionType.FAIRY_KILL: _other,
    ActionType.VAMPIRE_BITE: _other,
    ActionType.CULT_RECRUIT: _recruit_target,
    ActionType.FISHERMAN_CATCH: _boat_target,
    ActionType.BANSHEE_SCREAM: _other,
    ActionType.LOOKOUT_SPY: _other,
    ActionType.RESURRECT: _grave,
}

# Whether a one-shot or gated ability can still be used
_READY: dict[ActionType, Callable[[GameState, Player], bool]] = {
    ActionType.SORCERESS_POISON: lambda state, p: not p.poison_used,
    ActionType.SORCERESS_SAVE: lambda state, p: not p.save_used,
    ActionType.LOOKOUT_SPY: lambda state, p: not p.lookout_used,
    ActionType.RESURRECT: lambda state, p: not p.resurrect_used,
    ActionType.FAIRY_FIND: lambda state, p: not state.fairies_found,
    ActionType.FAIRY_KILL: lambda state, p: state.fairies_found and not state.fairy_kill_used,
}


def target_count(state: GameState, action_type: ActionType) -> tuple[int, int]:
    """Return (min, max) number of targets the action takes this round."""
    if action_type == ActionType.CUPID_LOVE:
        return 2, 2
    if action_type == ActionType.WEREWOLF_KILL and state.wolf_cub_revenge_round == state.round_index:
        return 1, REVENGE_KILL_COUNT
    return 1, 1


def available_actions(state: GameState, player: Player) -> list[ActionType]:
    """Night actions the player may still submit this round."""
    if not player.alive or player.role is None:
        return []
    available = []
    for action_type in sorted(ROLE_ACTIONS.get(player.role, frozenset()), key=lambda a: a.value):
        if action_type in FIRST_NIGHT_ACTIONS and state.round_index != 1:
            continue
        ready = _READY.get(action_type)
        if ready is not None and not ready(state, player):
            continue
        available.append(action_type)
    return available


def valid_targets(state: GameState, actor: Player, action_type: ActionType) -> list[Player]:
    rule = _TARGET_RULES[action_type]
    return [p for p in state.players if rule(state, actor, p)]


def _require_running(state: GameState, phase: Phase) -> None:
    if state.status != Status.IN_PROGRESS:
        raise ActionRejected(RejectReason.GAME_NOT_RUNNING, "Game is not in progress")
    if state.phase != phase:
        raise ActionRejected(RejectReason.WRONG_PHASE, f"Only allowed during {phase.value}")


def _living(state: GameState, player_id: str) -> Player:
    player = state.get_player(player_id)
    if player is None or not player.alive:
        raise ActionRejected(RejectReason.ACTOR_NOT_ALIVE, "Player is not alive in this game")
    return player


def submit_night_action(
    state: GameState,
    actor_id: str,
    action_type: ActionType,
    target_ids: Iterable[str],
) -> GameState:
    """
    Record a night intent for the current round. Returns new state.
    Raises ActionRejected with a reason code when the intent is not allowed.
    A werewolf vote replaces the same wolf's earlier vote; every other action is final.
    """
    _require_running(state, Phase.NIGHT)
    actor = _living(state, actor_id)
    if action_type not in ROLE_ACTIONS.get(actor.role, frozenset()):
        raise ActionRejected(RejectReason.INVALID_ACTION, f"{action_type.value} is not an ability of this role")
    if action_type not in available_actions(state, actor):
        raise ActionRejected(RejectReason.INVALID_ACTION, f"{action_type.value} cannot be used now")
    earlier = [
        a for a in state.actions_this_round()
        if a.actor_id == actor_id and a.action_type == action_type
    ]
    if earlier and action_type not in MUTABLE_ACTIONS:
        raise ActionRejected(RejectReason.ALREADY_ACTED, "Action already submitted this round")

    targets = tuple(target_ids)
    low, high = target_count(state, action_type)
    if not low <= len(targets) <= high or len(set(targets)) != len(targets):
        raise ActionRejected(RejectReason.INVALID_TARGET, f"Expected {low}-{high} distinct targets")
    rule = _TARGET_RULES[action_type]
    for target_id in targets:
        target = state.get_player(target_id)
        if target is None or not rule(state, actor, target):
            raise ActionRejected(RejectReason.INVALID_TARGET, f"{target_id} is not a valid target")

    state = copy.deepcopy(state)
    state.night_actions = [a for a in state.night_actions if a not in earlier]
    state.night_actions.append(
        NightAction(
            round_index=state.round_index,
            actor_id=actor_id,
            action_type=action_type,
            target_ids=targets,
        )
    )
    state.get_player(actor_id).used_night_ability = True
    logger.debug("game %s: %s submitted %s on %s", state.game_id, actor_id, action_type.value, targets)
    return state


def submit_vote(state: GameState, voter_id: str, target_id: str) -> GameState:
    """Record a day vote. Votes are final; during a runoff only the tied players can be named."""
    _require_running(state, Phase.DAY)
    voter = _living(state, voter_id)
    if voter.voted_for is not None:
        raise ActionRejected(RejectReason.ALREADY_ACTED, "Already voted")
    target = state.get_player(target_id)
    if target is None or not target.alive or target_id == voter_id:
        raise ActionRejected(RejectReason.INVALID_TARGET, "Vote for another living player")
    if state.runoff_candidates and target_id not in state.runoff_candidates:
        raise ActionRejected(RejectReason.INVALID_TARGET, "Only the tied players can be voted in the runoff")
    state = copy.deepcopy(state)
    state.get_player(voter_id).voted_for = target_id
    return state


def submit_jury_vote(state: GameState, juror_id: str, candidate_id: str) -> GameState:
    """Record a dead player's jury ballot."""
    _require_running(state, Phase.JURY_VOTING)
    juror = state.get_player(juror_id)
    if juror is None:
        raise ActionRejected(RejectReason.ACTOR_NOT_ALIVE, "Unknown player")
    if juror.alive:
        raise ActionRejected(RejectReason.INVALID_ACTION, "Only the dead sit on the jury")
    if juror_id in state.jury_votes:
        raise ActionRejected(RejectReason.ALREADY_ACTED, "Already voted")
    if candidate_id not in state.jury_candidates:
        raise ActionRejected(RejectReason.INVALID_TARGET, "Not a jury candidate")
    state = copy.deepcopy(state)
    state.jury_votes[juror_id] = candidate_id
    return state


def submit_duel(state: GameState, actor_id: str, first_id: str, second_id: str) -> GameState:
    """The troublemaker starts a duel; both players die when the vote closes. Once per game."""
    _require_running(state, Phase.DAY)
    actor = _living(state, actor_id)
    if actor.role != Role.TROUBLEMAKER or actor.troublemaker_used:
        raise ActionRejected(RejectReason.INVALID_ACTION, "No duel to call")
    if first_id == second_id:
        raise ActionRejected(RejectReason.INVALID_TARGET, "Pick two different players")
    for pid in (first_id, second_id):
        target = state.get_player(pid)
        if target is None or not _other(state, actor, target):
            raise ActionRejected(RejectReason.INVALID_TARGET, f"{pid} is not a valid target")
    state = copy.deepcopy(state)
    state.get_player(actor_id).troublemaker_used = True
    state.pending_duel = (first_id, second_id)
    emit(
        state,
        EventKind.DUEL_DECLARED,
        f"A brawl breaks out between {name_of(state, first_id)} and {name_of(state, second_id)}. "
        "Neither will see the night.",
        {"player_ids": [first_id, second_id]},
    )
    return state


def expected_night_actors(state: GameState) -> list[Player]:
    """Living players that still have an ability to use tonight."""
    return [p for p in state.get_alive_players() if available_actions(state, p)]
