"""FastAPI app: create, start, submit intents, resolve, get game."""

import logging
import uuid
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from werewolf.actions import submit_duel, submit_jury_vote, submit_night_action, submit_vote
from werewolf.bots import run_bots
from werewolf.engine import resolve_phase
from werewolf.errors import ActionRejected, RetryExhausted
from werewolf.lobby import create_game as engine_create_game, start_game
from werewolf.night import round_rng
from werewolf.rules import ROLE_ACTIONS, Role, team_of
from werewolf.state import GameEvent, GameSettings, GameState
from werewolf.transitions import resolve_hunter_shot
from api.config import configure_logging, cors_origins, phase_seconds, store_retries
from api.game_store import create as store_create, get as store_get, list_games, transact
from api.models import (
    DuelRequest,
    GameCreateRequest,
    GameStateResponse,
    HunterShotRequest,
    NightActionRequest,
    ResolveResponse,
    RoleInfo,
    VoteRequest,
    events_for,
    game_state_to_public,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Werewolf Rounds API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _load(game_id: str) -> GameState:
    entry = store_get(game_id)
    if not entry:
        raise HTTPException(404, "Game not found")
    return entry["state"]


def _apply(game_id: str, fn: Callable[[GameState], Optional[GameState]]) -> Optional[GameState]:
    """Run fn through the store transaction and map engine errors to HTTP errors."""
    try:
        return transact(game_id, fn, retries=store_retries())
    except KeyError:
        raise HTTPException(404, "Game not found")
    except ActionRejected as e:
        raise HTTPException(400, {"reason": e.reason.value, "message": e.message})
    except RetryExhausted as e:
        logger.warning("Giving up on game %s: %s", game_id, e)
        raise HTTPException(503, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))


@app.get("/health", tags=["System"], summary="Health check")
def health():
    return {"status": "ok"}


@app.get("/roles", response_model=list[RoleInfo], tags=["Rules"], summary="Role catalogue")
def list_roles():
    """Every role with its team and night actions."""
    return [
        RoleInfo(
            role=role.value,
            team=team_of(role).value,
            night_actions=sorted(a.value for a in ROLE_ACTIONS.get(role, ())),
        )
        for role in Role
    ]


@app.post("/games", response_model=dict, tags=["Games"], summary="Create game")
def create_game(body: GameCreateRequest):
    """Create a lobby. Returns game_id; roles are dealt on start."""
    game_id = str(uuid.uuid4())
    settings = GameSettings(
        werewolves=body.werewolves,
        special_roles=tuple(body.special_roles),
        jury_voting=body.jury_voting,
        phase_seconds=body.phase_seconds or phase_seconds(),
    )
    try:
        state = engine_create_game(
            game_id,
            [p.name for p in body.players],
            settings=settings,
            seed=body.seed,
            ai_names=[p.name for p in body.players if p.is_ai],
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    store_create(game_id, state)
    logger.info("Created game %s with %d players", game_id, len(state.players))
    return {"game_id": game_id}


@app.get("/games", response_model=list[str], tags=["Games"], summary="List game IDs")
def list_games_route():
    """List all game IDs."""
    return list_games()


@app.get("/games/{game_id}", response_model=GameStateResponse, tags=["Games"], summary="Get game state")
def get_game(game_id: str, viewer_id: Optional[str] = None):
    """Get public game state, plus private details when viewer_id names a player."""
    return game_state_to_public(_load(game_id), viewer_id)


@app.post("/games/{game_id}/start", response_model=GameStateResponse, tags=["Games"], summary="Start game")
def start_game_endpoint(game_id: str):
    """Deal roles and open the role reveal."""
    state = _apply(game_id, start_game)
    return game_state_to_public(state)


@app.post("/games/{game_id}/actions", response_model=GameStateResponse, tags=["Actions"], summary="Submit night action")
def submit_action(game_id: str, body: NightActionRequest):
    state = _apply(
        game_id,
        lambda s: submit_night_action(s, body.player_id, body.action_type, tuple(body.target_ids)),
    )
    return game_state_to_public(state, body.player_id)


@app.post("/games/{game_id}/votes", response_model=GameStateResponse, tags=["Actions"], summary="Submit day vote")
def submit_vote_endpoint(game_id: str, body: VoteRequest):
    state = _apply(game_id, lambda s: submit_vote(s, body.player_id, body.target_id))
    return game_state_to_public(state, body.player_id)


@app.post("/games/{game_id}/jury-votes", response_model=GameStateResponse, tags=["Actions"], summary="Submit jury vote")
def submit_jury_vote_endpoint(game_id: str, body: VoteRequest):
    """Dead players pick one of the tied candidates."""
    state = _apply(game_id, lambda s: submit_jury_vote(s, body.player_id, body.target_id))
    return game_state_to_public(state, body.player_id)


@app.post("/games/{game_id}/duel", response_model=GameStateResponse, tags=["Actions"], summary="Declare duel")
def declare_duel(game_id: str, body: DuelRequest):
    first_id, second_id = body.target_ids
    state = _apply(game_id, lambda s: submit_duel(s, body.player_id, first_id, second_id))
    return game_state_to_public(state, body.player_id)


@app.post("/games/{game_id}/hunter-shot", response_model=GameStateResponse, tags=["Actions"], summary="Hunter's last shot")
def hunter_shot(game_id: str, body: HunterShotRequest):
    state = _apply(game_id, lambda s: resolve_hunter_shot(s, body.player_id, body.target_id))
    return game_state_to_public(state, body.player_id)


@app.post("/games/{game_id}/bots", response_model=GameStateResponse, tags=["Actions"], summary="Run bot seats")
def run_bots_endpoint(game_id: str):
    """AI seats submit their intents for the current phase."""

    def step(state: GameState) -> Optional[GameState]:
        new_state = run_bots(state, round_rng(state))
        return None if new_state is state else new_state

    state = _apply(game_id, step) or _load(game_id)
    return game_state_to_public(state)


@app.post("/games/{game_id}/resolve", response_model=ResolveResponse, tags=["Games"], summary="Resolve current phase")
def resolve_game_phase(game_id: str):
    """
    Resolve the current phase if its deadline has passed or everyone has acted.
    A phase that cannot resolve yet is a no-op.
    """
    appended: list[GameEvent] = []

    def step(state: GameState) -> Optional[GameState]:
        result = resolve_phase(state)
        if result is None:
            return None
        appended[:] = result.events
        return result.state

    state = _apply(game_id, step)
    if state is None:
        current = _load(game_id)
        return ResolveResponse(noop=True, phase=current.phase.value, round_index=current.round_index)
    logger.info("Game %s resolved into %s (round %d)", game_id, state.phase.value, state.round_index)
    return ResolveResponse(
        noop=False,
        phase=state.phase.value,
        round_index=state.round_index,
        events=events_for(appended),
    )
