"""Game state types for the werewolf round engine."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from werewolf.rules import (
    ActionType,
    BondKind,
    PHASE_DURATION_SECONDS,
    Phase,
    Resume,
    Role,
    Status,
    WOLF_ROLES,
)


@dataclass
class Player:
    """A player in the game. Role-owned fields are only touched by that role's logic."""

    id: str
    name: str
    role: Optional[Role] = None
    alive: bool = True
    is_ai: bool = False
    # per-round flags
    voted_for: Optional[str] = None
    used_night_ability: bool = False
    # role-owned state
    last_protected_id: Optional[str] = None  # doctor and guardian: own previous target
    last_protected_round: int = 0
    poison_used: bool = False
    save_used: bool = False
    guardian_self_protects: int = 0
    priest_self_blessed: bool = False
    prince_revealed: bool = False
    is_cult_member: bool = False
    bite_count: int = 0
    lookout_used: bool = False
    resurrect_used: bool = False
    troublemaker_used: bool = False
    executioner_target_id: Optional[str] = None
    shapeshifter_target_id: Optional[str] = None
    siren_target_id: Optional[str] = None
    banshee_screams: dict[int, str] = field(default_factory=dict)  # round -> predicted victim
    banshee_points: int = 0

    @property
    def is_wolf(self) -> bool:
        return self.role in WOLF_ROLES


class EventKind(str, Enum):
    """Type of game event."""

    GAME_START = "game_start"
    PHASE_CHANGE = "phase_change"
    NIGHT_RESULT = "night_result"
    VOTE_TIE = "vote_tie"
    VOTE_RESULT = "vote_result"
    JURY_VOTE = "jury_vote"
    PLAYER_DIED = "player_died"
    TWIN_DEATH = "twin_death"
    LOVER_DEATH = "lover_death"
    LINK_DEATH = "link_death"
    PLAYER_TRANSFORMED = "player_transformed"
    PRINCE_REVEALED = "prince_revealed"
    SEER_RESULT = "seer_result"
    LOOKOUT_RESULT = "lookout_result"
    WITCH_FOUND_SEER = "witch_found_seer"
    FAIRIES_FOUND = "fairies_found"
    PLAYER_RESURRECTED = "player_resurrected"
    BOND_FORMED = "bond_formed"
    CULT_RECRUITED = "cult_recruited"
    PLAYER_CHARMED = "player_charmed"
    PLAYER_SILENCED = "player_silenced"
    PLAYER_EXILED = "player_exiled"
    DUEL_DECLARED = "duel_declared"
    WOLF_CUB_REVENGE = "wolf_cub_revenge"
    HUNTER_SHOT = "hunter_shot"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class GameEvent:
    """An immutable fact in the game history. audience=None means everyone may see it."""

    kind: EventKind
    round_index: int
    phase: Phase
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    audience: Optional[tuple[str, ...]] = None

    def visible_to(self, player_id: Optional[str]) -> bool:
        return self.audience is None or player_id in self.audience


@dataclass(frozen=True)
class NightAction:
    """One submitted night intent."""

    round_index: int
    actor_id: str
    action_type: ActionType
    target_ids: tuple[str, ...]

    @property
    def target_id(self) -> Optional[str]:
        return self.target_ids[0] if self.target_ids else None


@dataclass(frozen=True)
class GameSettings:
    """Per-game options, fixed once the game starts."""

    werewolves: int = 0  # 0 = one per PLAYERS_PER_WOLF players
    special_roles: tuple[Role, ...] = ()
    jury_voting: bool = False
    phase_seconds: int = PHASE_DURATION_SECONDS


@dataclass
class GameState:
    """Full game state."""

    game_id: str
    players: list[Player] = field(default_factory=list)
    round_index: int = 0
    phase: Phase = Phase.LOBBY
    status: Status = Status.WAITING
    events: list[GameEvent] = field(default_factory=list)
    settings: GameSettings = field(default_factory=GameSettings)
    night_actions: list[NightAction] = field(default_factory=list)
    bonds: dict[str, dict[BondKind, str]] = field(default_factory=dict)
    phase_ends_at: Optional[datetime] = None
    pending_hunter_id: Optional[str] = None
    hunter_resume: Optional[Resume] = None
    silenced_player_id: Optional[str] = None
    exiled_player_id: Optional[str] = None
    boat: list[str] = field(default_factory=list)
    vampire_kills: int = 0
    revenge_pending: bool = False  # wolf cub died; the next night gets the extra kill
    wolf_cub_revenge_round: int = 0
    leper_block_round: int = 0
    seer_died: bool = False
    witch_found_seer: bool = False
    fairies_found: bool = False
    fairy_kill_used: bool = False
    runoff_candidates: list[str] = field(default_factory=list)
    jury_candidates: list[str] = field(default_factory=list)
    jury_votes: dict[str, str] = field(default_factory=dict)  # dead juror -> candidate
    pending_duel: Optional[tuple[str, str]] = None
    winner_codes: list[str] = field(default_factory=list)
    winner_ids: list[str] = field(default_factory=list)
    game_seed: Optional[int] = None

    @property
    def started(self) -> bool:
        return self.status != Status.WAITING

    @property
    def finished(self) -> bool:
        return self.status == Status.FINISHED

    def get_alive_players(self) -> list[Player]:
        """Return list of alive players."""
        return [p for p in self.players if p.alive]

    def get_player(self, player_id: str) -> Optional[Player]:
        """Return player by id or None."""
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def get_players_by_role(self, role: Role) -> list[Player]:
        """Return alive players with the given role."""
        return [p for p in self.players if p.alive and p.role == role]

    def actions_this_round(self) -> list[NightAction]:
        return [a for a in self.night_actions if a.round_index == self.round_index]


def emit(
    state: GameState,
    kind: EventKind,
    message: str,
    data: Optional[dict[str, Any]] = None,
    audience: Optional[tuple[str, ...]] = None,
) -> GameEvent:
    """Append an event stamped with the current round and phase (mutates state)."""
    event = GameEvent(
        kind=kind,
        round_index=state.round_index,
        phase=state.phase,
        message=message,
        data=data or {},
        audience=audience,
    )
    state.events.append(event)
    return event


def name_of(state: GameState, player_id: Optional[str]) -> str:
    player = state.get_player(player_id) if player_id else None
    return player.name if player else str(player_id)
