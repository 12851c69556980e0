"""Round-resolution engine for the werewolf party game."""

from werewolf.actions import submit_duel, submit_jury_vote, submit_night_action, submit_vote
from werewolf.chain import kill_player, resolve_death
from werewolf.engine import PhaseResult, get_winner, is_game_over, phase_ready, resolve_phase
from werewolf.errors import ActionRejected, RejectReason, RetryExhausted, StoreConflict
from werewolf.lobby import create_game, start_game
from werewolf.night import resolve_night
from werewolf.rules import ActionType, Phase, Role, Status
from werewolf.state import GameEvent, GameSettings, GameState, NightAction, Player
from werewolf.transitions import resolve_hunter_shot
from werewolf.victory import Victory, evaluate
from werewolf.votes import resolve_jury_votes, resolve_votes

__all__ = [
    "create_game",
    "start_game",
    "submit_night_action",
    "submit_vote",
    "submit_jury_vote",
    "submit_duel",
    "resolve_hunter_shot",
    "resolve_phase",
    "phase_ready",
    "resolve_night",
    "resolve_votes",
    "resolve_jury_votes",
    "resolve_death",
    "kill_player",
    "evaluate",
    "is_game_over",
    "get_winner",
    "PhaseResult",
    "Victory",
    "ActionRejected",
    "RejectReason",
    "RetryExhausted",
    "StoreConflict",
    "ActionType",
    "Phase",
    "Role",
    "Status",
    "GameEvent",
    "GameSettings",
    "GameState",
    "NightAction",
    "Player",
]
