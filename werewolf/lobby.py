"""Game creation and the role deal."""

import copy
import logging
import random
from collections import Counter
from typing import Iterable, Optional

from werewolf.bonds import bind
from werewolf.rules import (
    BondKind,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PAIRED_ROLES,
    PLAYERS_PER_WOLF,
    Phase,
    Role,
    Status,
    Team,
    team_of,
)
from werewolf.state import EventKind, GameSettings, GameState, Player, emit
from werewolf.transitions import phase_deadline

logger = logging.getLogger(__name__)


def create_game(
    game_id: str,
    player_names: list[str],
    settings: Optional[GameSettings] = None,
    seed: Optional[int] = None,
    ai_names: Iterable[str] = (),
) -> GameState:
    """Seat the players in a lobby. Roles are dealt by start_game."""
    if not MIN_PLAYERS <= len(player_names) <= MAX_PLAYERS:
        raise ValueError(f"between {MIN_PLAYERS} and {MAX_PLAYERS} players required")
    if len(set(player_names)) != len(player_names):
        raise ValueError("player names must be unique")
    bots = set(ai_names)
    players = [
        Player(id=f"player_{i}", name=name, is_ai=name in bots)
        for i, name in enumerate(player_names)
    ]
    return GameState(
        game_id=game_id,
        players=players,
        settings=settings or GameSettings(),
        game_seed=seed,
    )


def deal_roles(player_count: int, settings: GameSettings, rng: random.Random) -> list[Role]:
    """
    Build and shuffle the role list: the wolves, then each enabled special role once
    (paired roles twice, skipped when there is no room for both), villagers for the rest.
    """
    wolves = settings.werewolves or max(1, player_count // PLAYERS_PER_WOLF)
    if wolves >= player_count:
        raise ValueError("there must be fewer wolves than players")
    roles = [Role.WEREWOLF] * wolves
    for role in dict.fromkeys(settings.special_roles):
        if role in (Role.WEREWOLF, Role.VILLAGER):
            continue
        copies = 2 if role in PAIRED_ROLES else 1
        if len(roles) + copies <= player_count:
            roles.extend([role] * copies)
    roles.extend([Role.VILLAGER] * (player_count - len(roles)))
    rng.shuffle(roles)
    return roles


def start_game(state: GameState) -> GameState:
    """Deal roles, form the starting bonds and open the role reveal. Returns new state."""
    if state.status != Status.WAITING:
        raise ValueError("game already started")
    state = copy.deepcopy(state)
    rng = random.Random(state.game_seed)
    roles = deal_roles(len(state.players), state.settings, rng)
    for player, role in zip(state.players, roles):
        player.role = role
        if role == Role.CULT_LEADER:
            player.is_cult_member = True

    twins = [p.id for p in state.players if p.role == Role.TWIN]
    for a, b in zip(twins[::2], twins[1::2]):
        bind(state, BondKind.TWIN, a, b)

    for executioner in (p for p in state.players if p.role == Role.EXECUTIONER):
        candidates = [p.id for p in state.players if p.id != executioner.id and team_of(p.role) == Team.VILLAGE]
        if candidates:
            executioner.executioner_target_id = rng.choice(candidates)

    state.status = Status.IN_PROGRESS
    state.phase = Phase.ROLE_REVEAL
    state.phase_ends_at = phase_deadline(state)
    counts = Counter(p.role.value for p in state.players)
    emit(
        state,
        EventKind.GAME_START,
        f"The game begins with {len(state.players)} players.",
        {"player_ids": [p.id for p in state.players], "role_counts": dict(sorted(counts.items()))},
    )
    logger.info("game %s: started with %d players", state.game_id, len(state.players))
    return state
