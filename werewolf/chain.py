"""Chain-death resolver: one death plus everything bonded to it."""

import copy
import logging
from collections import deque
from typing import Optional

from werewolf.bonds import partners
from werewolf.rules import BondKind, DeathCause, LYNCH_CAUSES, Role
from werewolf.state import EventKind, GameState, Player, emit

logger = logging.getLogger(__name__)

_BOND_DEATHS: dict[BondKind, tuple[DeathCause, EventKind, str]] = {
    BondKind.TWIN: (DeathCause.TWIN, EventKind.TWIN_DEATH, "{name} could not survive the loss of their twin."),
    BondKind.LOVER: (DeathCause.LOVER, EventKind.LOVER_DEATH, "{name} died of heartbreak."),
    BondKind.LINK: (DeathCause.LINK, EventKind.LINK_DEATH, "{name} was dragged down by a fatal link."),
}

_DEATH_MESSAGES: dict[DeathCause, str] = {
    DeathCause.WEREWOLF_KILL: "{name} was devoured by the wolves.",
    DeathCause.POISON: "{name} was poisoned.",
    DeathCause.VAMPIRE_KILL: "{name} was drained by the vampire.",
    DeathCause.FAIRY_KILL: "{name} fell under the fairies' curse.",
    DeathCause.LOOKOUT_CAUGHT: "{name} was caught spying in the dark.",
    DeathCause.DROWNED: "{name} pulled a wolf aboard and drowned.",
    DeathCause.VOTE: "{name} was lynched by the village.",
    DeathCause.JURY_VOTE: "{name} was condemned by the jury of the dead.",
    DeathCause.HUNTER_SHOT: "{name} was shot by the hunter.",
    DeathCause.DUEL: "{name} fell in the troublemaker's duel.",
}


def resolve_death(
    state: GameState,
    player_id: str,
    cause: DeathCause,
) -> list[str]:
    """
    Kill player_id and every bonded partner that follows (mutates state).
    Returns the ids that died in this pass, in order. Dead or unknown ids are skipped,
    so a repeated call on the same id kills nobody new.
    """
    killed: list[str] = []
    visited: set[str] = set()
    queue: deque[tuple[str, DeathCause, Optional[str]]] = deque([(player_id, cause, None)])
    while queue:
        pid, why, source_id = queue.popleft()
        if pid in visited:
            continue
        player = state.get_player(pid)
        if player is None or not player.alive:
            continue
        visited.add(pid)
        player.alive = False
        killed.append(pid)
        _announce(state, player, why, source_id)
        _on_death(state, player, why)
        for kind, partner_id in partners(state, pid):
            other = state.get_player(partner_id)
            if other is not None and other.alive and partner_id not in visited:
                queue.append((partner_id, _BOND_DEATHS[kind][0], pid))
    if killed:
        logger.debug("game %s: %s killed %s", state.game_id, cause.value, killed)
    return killed


def kill_player(state: GameState, player_id: str, cause: DeathCause) -> tuple[GameState, list[str]]:
    """Pure wrapper around resolve_death. Returns (new state, killed ids)."""
    state = copy.deepcopy(state)
    killed = resolve_death(state, player_id, cause)
    return state, killed


def _announce(state: GameState, player: Player, cause: DeathCause, source_id: Optional[str]) -> None:
    data = {
        "player_id": player.id,
        "cause": cause.value,
        "role": player.role.value if player.role else None,
    }
    bond = next((b for b in _BOND_DEATHS.values() if b[0] == cause), None)
    if bond is not None:
        data["source_player_id"] = source_id
        emit(state, bond[1], bond[2].format(name=player.name), data)
    else:
        template = _DEATH_MESSAGES.get(cause, "{name} died.")
        emit(state, EventKind.PLAYER_DIED, template.format(name=player.name), data)


def transform_player(
    state: GameState,
    player: Player,
    role: Role,
    message: str,
    audience: Optional[tuple[str, ...]] = None,
) -> None:
    """Change a player's role and tell them (mutates state)."""
    previous = player.role
    player.role = role
    emit(
        state,
        EventKind.PLAYER_TRANSFORMED,
        message,
        {"player_id": player.id, "from_role": previous.value if previous else None, "to_role": role.value},
        audience=audience or (player.id,),
    )


def _on_death(state: GameState, dead: Player, cause: DeathCause) -> None:
    """Role triggers evaluated once for each individual death."""
    for other in state.get_alive_players():
        if other.role == Role.EXECUTIONER and other.executioner_target_id == dead.id and cause not in LYNCH_CAUSES:
            other.executioner_target_id = None
            transform_player(state, other, Role.VILLAGER, "Your target died outside the gallows; you are now a villager.")
        if other.role == Role.SHAPESHIFTER and other.shapeshifter_target_id == dead.id and dead.role is not None:
            other.shapeshifter_target_id = None
            transform_player(state, other, dead.role, f"You took the shape of {dead.name}.")

    if dead.role == Role.SEER:
        state.seer_died = True
        for apprentice in state.get_players_by_role(Role.SEER_APPRENTICE):
            transform_player(state, apprentice, Role.SEER, "The seer is dead. Their sight passes to you.")
            break
    elif dead.role == Role.HUNTER:
        if state.pending_hunter_id is None:
            state.pending_hunter_id = dead.id
    elif dead.role == Role.WOLF_CUB:
        state.revenge_pending = True
    elif dead.role == Role.LEPER and cause == DeathCause.WEREWOLF_KILL:
        state.leper_block_round = state.round_index + 1
