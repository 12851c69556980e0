"""Pydantic request/response models for the API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from werewolf.actions import available_actions
from werewolf.rules import MAX_PLAYERS, MIN_PLAYERS, ActionType, Role
from werewolf.state import GameEvent, GameState

# Validation constants (no magic numbers in validation)
MAX_PLAYER_NAME_LENGTH = 50
MIN_PHASE_SECONDS = 5
MAX_PHASE_SECONDS = 3600


class PlayerConfigRequest(BaseModel):
    """Per-player config at game creation: name and whether a bot plays the seat."""

    name: str = Field(..., min_length=1, max_length=MAX_PLAYER_NAME_LENGTH)
    is_ai: bool = Field(default=False, description="If true, bots submit this seat's intents")


class GameCreateRequest(BaseModel):
    """Body for POST /games."""

    players: list[PlayerConfigRequest] = Field(..., min_length=MIN_PLAYERS, max_length=MAX_PLAYERS)
    werewolves: int = Field(default=0, ge=0, description="0 picks one wolf per five players")
    special_roles: list[Role] = Field(default_factory=list, description="Special roles dealt once each")
    jury_voting: bool = Field(default=False, description="A tied runoff goes to a jury of the dead")
    phase_seconds: int | None = Field(
        default=None,
        ge=MIN_PHASE_SECONDS,
        le=MAX_PHASE_SECONDS,
        description="Phase length; defaults to the server setting",
    )
    seed: int | None = Field(default=None, description="Seed for the role deal and night randomness")

    @field_validator("players")
    @classmethod
    def names_unique(cls, v: list[PlayerConfigRequest]) -> list[PlayerConfigRequest]:
        names = [p.name for p in v]
        if len(set(names)) != len(names):
            raise ValueError("player names must be unique")
        return v

    @model_validator(mode="after")
    def wolves_fewer_than_players(self) -> "GameCreateRequest":
        if self.werewolves >= len(self.players):
            raise ValueError(f"werewolves ({self.werewolves}) must be less than players ({len(self.players)})")
        return self


class NightActionRequest(BaseModel):
    """Body for POST /games/{id}/actions."""

    player_id: str
    action_type: ActionType
    target_ids: list[str] = Field(..., min_length=1, max_length=2)


class VoteRequest(BaseModel):
    """Body for POST /games/{id}/votes and /jury-votes."""

    player_id: str
    target_id: str


class DuelRequest(BaseModel):
    player_id: str
    target_ids: list[str] = Field(..., min_length=2, max_length=2)


class HunterShotRequest(BaseModel):
    player_id: str
    target_id: str


class PlayerPublic(BaseModel):
    """Player as shown to clients: role only revealed when dead, to themselves, or after the game."""

    id: str
    name: str
    alive: bool
    is_ai: bool
    role: str | None = Field(default=None, description="Hidden while alive unless it is the viewer")
    prince_revealed: bool = False


class EventPublic(BaseModel):
    kind: str
    round_index: int
    phase: str
    message: str
    data: dict = Field(default_factory=dict)


class ViewerPublic(BaseModel):
    """Private information for the player looking at the game."""

    player_id: str
    role: str | None
    available_actions: list[str] = Field(default_factory=list)
    executioner_target_id: str | None = None
    is_cult_member: bool = False


class GameStateResponse(BaseModel):
    """Public game state for GET /games/{id}."""

    game_id: str
    players: list[PlayerPublic]
    round_index: int
    phase: str
    status: str
    started: bool
    events: list[EventPublic]
    phase_ends_at: datetime | None = None
    runoff_candidates: list[str] = Field(default_factory=list)
    jury_candidates: list[str] = Field(default_factory=list)
    pending_hunter_id: str | None = None
    silenced_player_id: str | None = None
    winner_codes: list[str] = Field(default_factory=list, description="Set when the game is over")
    winner_ids: list[str] = Field(default_factory=list)
    viewer: ViewerPublic | None = None


class ResolveResponse(BaseModel):
    """Result of POST /games/{id}/resolve."""

    noop: bool
    phase: str
    round_index: int
    events: list[EventPublic] = Field(default_factory=list)


class RoleInfo(BaseModel):
    role: str
    team: str
    night_actions: list[str]


def event_to_public(event: GameEvent) -> EventPublic:
    return EventPublic(
        kind=event.kind.value,
        round_index=event.round_index,
        phase=event.phase.value,
        message=event.message,
        data=event.data,
    )


def events_for(events: list[GameEvent], viewer_id: str | None = None) -> list[EventPublic]:
    """Events the viewer may see (public ones when viewer_id is None)."""
    return [event_to_public(e) for e in events if e.visible_to(viewer_id)]


def game_state_to_public(state: GameState, viewer_id: str | None = None) -> GameStateResponse:
    """Build public response from GameState; hide roles of living players from everyone else."""
    players_public = []
    for p in state.players:
        show = state.finished or not p.alive or p.id == viewer_id
        players_public.append(
            PlayerPublic(
                id=p.id,
                name=p.name,
                alive=p.alive,
                is_ai=p.is_ai,
                role=p.role.value if (show and p.role) else None,
                prince_revealed=p.prince_revealed,
            )
        )
    viewer = None
    me = state.get_player(viewer_id) if viewer_id else None
    if me is not None:
        viewer = ViewerPublic(
            player_id=me.id,
            role=me.role.value if me.role else None,
            available_actions=[a.value for a in available_actions(state, me)] if state.phase.value == "night" else [],
            executioner_target_id=me.executioner_target_id,
            is_cult_member=me.is_cult_member,
        )
    return GameStateResponse(
        game_id=state.game_id,
        players=players_public,
        round_index=state.round_index,
        phase=state.phase.value,
        status=state.status.value,
        started=state.started,
        events=events_for(state.events, viewer_id),
        phase_ends_at=state.phase_ends_at,
        runoff_candidates=list(state.runoff_candidates),
        jury_candidates=list(state.jury_candidates),
        pending_hunter_id=state.pending_hunter_id,
        silenced_player_id=state.silenced_player_id,
        winner_codes=list(state.winner_codes),
        winner_ids=list(state.winner_ids),
        viewer=viewer,
    )
