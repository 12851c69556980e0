"""Night resolution: five ordered sub-phases over the round's submitted actions."""

import copy
import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from werewolf.bonds import bind, can_bind
from werewolf.chain import resolve_death, transform_player
from werewolf.rules import (
    ActionType,
    BOAT_EXPOSED_ROLES,
    BondKind,
    DeathCause,
    FIRST_NIGHT_ACTIONS,
    LOOKOUT_SURVIVAL_CHANCE,
    PACK_ROLES,
    Phase,
    REVENGE_KILL_COUNT,
    ROLE_ACTIONS,
    Resume,
    Role,
    SEER_WOLF_ROLES,
    Status,
    VAMPIRE_BITES_TO_KILL,
)
from werewolf.state import EventKind, GameState, NightAction, Player, emit, name_of
from werewolf.transitions import conclude

logger = logging.getLogger(__name__)


@dataclass
class NightContext:
    """Scratch state for one night resolution pass."""

    actions: list[NightAction]
    rng: random.Random
    wolf_targets: list[str] = field(default_factory=list)
    wolves_blocked: bool = False
    pending: list[tuple[str, DeathCause]] = field(default_factory=list)
    protected: set[str] = field(default_factory=set)
    saved: list[str] = field(default_factory=list)
    killed: list[str] = field(default_factory=list)

    def of(self, action_type: ActionType) -> list[NightAction]:
        return [a for a in self.actions if a.action_type == action_type]


Handler = Callable[[GameState, NightContext, NightAction, Player], None]


def round_rng(state: GameState) -> random.Random:
    """Deterministic per-round randomness derived from the game seed."""
    return random.Random((state.game_seed or 0) + state.round_index * 1000)


def _effective_actions(state: GameState) -> list[NightAction]:
    """This round's actions from living actors whose role still allows them, on valid targets."""
    effective = []
    for action in state.actions_this_round():
        actor = state.get_player(action.actor_id)
        if actor is None or not actor.alive:
            continue
        if action.action_type not in ROLE_ACTIONS.get(actor.role, frozenset()):
            continue
        if action.action_type in FIRST_NIGHT_ACTIONS and state.round_index != 1:
            continue
        targets = [state.get_player(t) for t in action.target_ids]
        if any(t is None for t in targets):
            continue
        if action.action_type == ActionType.RESURRECT:
            if any(t.alive for t in targets):
                continue
        elif any(not t.alive for t in targets):
            continue
        effective.append(action)
    return effective


# -- sub-phase 0: markers -------------------------------------------------


def _apply_markers(state: GameState, night: NightContext) -> None:
    for action in night.of(ActionType.ELDER_LEADER_EXILE):
        state.exiled_player_id = action.target_id
        emit(
            state,
            EventKind.PLAYER_EXILED,
            f"{name_of(state, action.target_id)} was sent away for the night.",
            {"player_id": action.target_id},
        )
        break
    if state.exiled_player_id:
        night.actions = [
            a for a in night.actions
            if a.actor_id != state.exiled_player_id or a.action_type == ActionType.ELDER_LEADER_EXILE
        ]
    for action in night.of(ActionType.SILENCER_SILENCE):
        state.silenced_player_id = action.target_id
        emit(
            state,
            EventKind.PLAYER_SILENCED,
            f"{name_of(state, action.target_id)} wakes up unable to speak.",
            {"player_id": action.target_id},
        )
        break


# -- sub-phase 1: pre-attack effects ---------------------------------------


def _recruit(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    target.is_cult_member = True
    emit(
        state,
        EventKind.CULT_RECRUITED,
        f"{target.name} has joined the cult.",
        {"player_id": target.id},
        audience=(actor.id, target.id),
    )


def _bind_lovers(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if len(action.target_ids) != 2:
        return
    a, b = action.target_ids
    if not can_bind(state, BondKind.LOVER, a, b):
        logger.debug("game %s: lovers %s/%s already bound", state.game_id, a, b)
        return
    bind(state, BondKind.LOVER, a, b)
    emit(
        state,
        EventKind.BOND_FORMED,
        f"Cupid's arrow binds {name_of(state, a)} and {name_of(state, b)}.",
        {"kind": BondKind.LOVER.value, "player_ids": [a, b]},
        audience=tuple(dict.fromkeys((actor.id, a, b))),
    )


def _link(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if not can_bind(state, BondKind.LINK, actor.id, action.target_id):
        return
    bind(state, BondKind.LINK, actor.id, action.target_id)
    emit(
        state,
        EventKind.BOND_FORMED,
        f"Your fate is now tied to {name_of(state, action.target_id)}.",
        {"kind": BondKind.LINK.value, "player_ids": [actor.id, action.target_id]},
        audience=(actor.id,),
    )


def _select_model(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    actor.shapeshifter_target_id = action.target_id


def _charm(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    actor.siren_target_id = action.target_id
    emit(
        state,
        EventKind.PLAYER_CHARMED,
        "The siren's song holds you: your vote will follow hers.",
        {"player_id": action.target_id, "siren_id": actor.id},
        audience=(actor.id, action.target_id),
    )


def _embark(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    if target.role not in BOAT_EXPOSED_ROLES and target.id not in state.boat:
        state.boat.append(target.id)


def _hunt_seer(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    if target.role == Role.SEER:
        state.witch_found_seer = True
        emit(
            state,
            EventKind.WITCH_FOUND_SEER,
            f"You found the seer: {target.name}. The wolves can no longer touch you.",
            {"player_id": target.id},
            audience=(actor.id,),
        )


def _find_fairy(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    if target.role == Role.SLEEPING_FAIRY:
        state.fairies_found = True
        emit(
            state,
            EventKind.FAIRIES_FOUND,
            "The fairies have found each other.",
            {"player_ids": [actor.id, target.id]},
            audience=(actor.id, target.id),
        )


def _check(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    is_wolf = target.role in SEER_WOLF_ROLES
    emit(
        state,
        EventKind.SEER_RESULT,
        f"{target.name} {'is' if is_wolf else 'is not'} a wolf.",
        {"target_id": target.id, "is_wolf": is_wolf},
        audience=(actor.id,),
    )


def _scream(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    actor.banshee_screams[state.round_index] = action.target_id


def _resurrect(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if actor.resurrect_used:
        return
    target = state.get_player(action.target_id)
    actor.resurrect_used = True
    target.alive = True
    emit(
        state,
        EventKind.PLAYER_RESURRECTED,
        f"{target.name} has returned from the dead.",
        {"player_id": target.id},
    )


_PRE_ATTACK: dict[ActionType, Handler] = {
    ActionType.CULT_RECRUIT: _recruit,
    ActionType.CUPID_LOVE: _bind_lovers,
    ActionType.VIRGINIA_WOOLF_LINK: _link,
    ActionType.SHAPESHIFTER_SELECT: _select_model,
    ActionType.RIVER_SIREN_CHARM: _charm,
    ActionType.FISHERMAN_CATCH: _embark,
    ActionType.WITCH_HUNT: _hunt_seer,
    ActionType.FAIRY_FIND: _find_fairy,
    ActionType.SEER_CHECK: _check,
    ActionType.BANSHEE_SCREAM: _scream,
    ActionType.RESURRECT: _resurrect,
}


# -- sub-phase 2: attack determination --------------------------------------


def consensus(votes: Counter, limit: int = 1) -> list[str]:
    """
    Pick up to limit targets that each have strictly more votes than every target left out.
    A tie straddling the cut shrinks the pick; a tie for the top yields no target.
    """
    ranked = votes.most_common()
    for size in range(min(limit, len(ranked)), 0, -1):
        if size == len(ranked) or ranked[size - 1][1] > ranked[size][1]:
            return [target_id for target_id, _ in ranked[:size]]
    return []


def _pack_targets(state: GameState, night: NightContext) -> list[str]:
    if state.leper_block_round == state.round_index:
        night.wolves_blocked = True
        return []
    limit = REVENGE_KILL_COUNT if state.wolf_cub_revenge_round == state.round_index else 1
    votes: Counter = Counter()
    for action in night.of(ActionType.WEREWOLF_KILL):
        actor = state.get_player(action.actor_id)
        if actor.role not in PACK_ROLES:
            continue
        for target_id in list(dict.fromkeys(action.target_ids))[:limit]:
            target = state.get_player(target_id)
            if target.role == Role.WITCH and state.witch_found_seer:
                continue
            votes[target_id] += 1
    targets = consensus(votes, limit)
    logger.debug("game %s: pack votes %s -> %s", state.game_id, dict(votes), targets)
    return targets


def _poison(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if actor.poison_used:
        return
    actor.poison_used = True
    night.pending.append((action.target_id, DeathCause.POISON))


def _fairy_kill(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if not state.fairies_found or state.fairy_kill_used:
        return
    state.fairy_kill_used = True
    night.pending.append((action.target_id, DeathCause.FAIRY_KILL))


def _bite(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    target.bite_count += 1
    if target.bite_count >= VAMPIRE_BITES_TO_KILL:
        night.pending.append((target.id, DeathCause.VAMPIRE_KILL))


def _spy(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if actor.lookout_used:
        return
    actor.lookout_used = True
    if night.rng.random() >= LOOKOUT_SURVIVAL_CHANCE:
        night.pending.append((actor.id, DeathCause.LOOKOUT_CAUGHT))
        return
    visitors = sorted({
        a.actor_id
        for a in night.actions
        if action.target_id in a.target_ids and a.actor_id != actor.id
    })
    emit(
        state,
        EventKind.LOOKOUT_RESULT,
        f"Visitors of {name_of(state, action.target_id)}: "
        + (", ".join(name_of(state, v) for v in visitors) or "nobody"),
        {"target_id": action.target_id, "visitor_ids": visitors},
        audience=(actor.id,),
    )


def _boat_check(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    target = state.get_player(action.target_id)
    if target.role in BOAT_EXPOSED_ROLES:
        night.pending.append((actor.id, DeathCause.DROWNED))


_LETHAL: dict[ActionType, Handler] = {
    ActionType.SORCERESS_POISON: _poison,
    ActionType.FAIRY_KILL: _fairy_kill,
    ActionType.VAMPIRE_BITE: _bite,
    ActionType.LOOKOUT_SPY: _spy,
    ActionType.FISHERMAN_CATCH: _boat_check,
}


# -- sub-phase 3: protection & reaction -------------------------------------


def _shield(state: GameState, night: NightContext, actor: Player, target_id: str) -> None:
    night.protected.add(target_id)
    actor.last_protected_id = target_id
    actor.last_protected_round = state.round_index


def _heal(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    _shield(state, night, actor, action.target_id)


def _guard(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if action.target_id == actor.id:
        actor.guardian_self_protects += 1
    _shield(state, night, actor, action.target_id)


def _bless(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if action.target_id == actor.id:
        actor.priest_self_blessed = True
    night.protected.add(action.target_id)


def _save(state: GameState, night: NightContext, action: NightAction, actor: Player) -> None:
    if actor.save_used:
        return
    actor.save_used = True
    night.protected.add(action.target_id)


_PROTECTIVE: dict[ActionType, Handler] = {
    ActionType.DOCTOR_HEAL: _heal,
    ActionType.GUARDIAN_PROTECT: _guard,
    ActionType.PRIEST_BLESS: _bless,
    ActionType.SORCERESS_SAVE: _save,
}


def _react_to_attack(state: GameState, night: NightContext) -> None:
    pack = tuple(p.id for p in state.get_alive_players() if p.role in PACK_ROLES)
    deaths = []
    for target_id in night.wolf_targets:
        if target_id in night.protected:
            night.saved.append(target_id)
            continue
        target = state.get_player(target_id)
        if target.role == Role.CURSED:
            transform_player(
                state,
                target,
                Role.WEREWOLF,
                f"The wolves' bite has turned {target.name} into one of them.",
                audience=tuple(dict.fromkeys(pack + (target.id,))),
            )
            continue
        deaths.append((target_id, DeathCause.WEREWOLF_KILL))
    night.pending[:0] = deaths


def _run(table: dict[ActionType, Handler], state: GameState, night: NightContext) -> None:
    for action in list(night.actions):
        handler = table.get(action.action_type)
        if handler is not None:
            handler(state, night, action, state.get_player(action.actor_id))


# -- sub-phase 4: death resolution ------------------------------------------


def _resolve_deaths(state: GameState, night: NightContext) -> None:
    for target_id, cause in night.pending:
        if target_id in night.protected:
            if target_id not in night.saved:
                night.saved.append(target_id)
            continue
        died = resolve_death(state, target_id, cause)
        if cause == DeathCause.VAMPIRE_KILL and target_id in died:
            state.vampire_kills += 1
        night.killed.extend(died)


def _score_banshees(state: GameState, night: NightContext) -> None:
    for banshee in state.get_players_by_role(Role.BANSHEE):
        prediction = banshee.banshee_screams.get(state.round_index)
        if prediction is not None and prediction in night.killed:
            banshee.banshee_points += 1


def _night_message(state: GameState, night: NightContext) -> str:
    if not night.killed:
        return "The village wakes up. Nobody died tonight."
    names = ", ".join(name_of(state, pid) for pid in night.killed)
    return f"The village wakes up to find {names} dead."


def resolve_night(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Resolve the current night from its submitted actions.
    Returns new state; does not mutate input. Outside a running night this is a no-op
    and the input state is returned as is.
    """
    if state.phase != Phase.NIGHT or state.status != Status.IN_PROGRESS:
        return state
    state = copy.deepcopy(state)
    night = NightContext(actions=_effective_actions(state), rng=rng or round_rng(state))

    _apply_markers(state, night)
    _run(_PRE_ATTACK, state, night)

    night.wolf_targets = _pack_targets(state, night)
    _run(_LETHAL, state, night)

    _run(_PROTECTIVE, state, night)
    _react_to_attack(state, night)

    _resolve_deaths(state, night)
    _score_banshees(state, night)
    emit(
        state,
        EventKind.NIGHT_RESULT,
        _night_message(state, night),
        {
            "killed_player_ids": list(night.killed),
            "saved_player_ids": list(night.saved),
            "wolves_blocked": night.wolves_blocked,
        },
    )
    logger.info("game %s: night %d killed %s", state.game_id, state.round_index, night.killed)

    conclude(state, Resume.REVENGE_NIGHT if state.revenge_pending else Resume.DAY)
    return state
