"""Win condition evaluator: read-only, fixed precedence."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from werewolf.bonds import lovers
from werewolf.rules import (
    BANSHEE_POINTS_TO_WIN,
    Role,
    Team,
    VAMPIRE_KILLS_TO_WIN,
    WinnerCode,
    team_of,
)
from werewolf.state import GameState


@dataclass
class Victory:
    """Winner codes in precedence order and the ids of every winning player."""

    codes: list[WinnerCode] = field(default_factory=list)
    winner_ids: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    def add(self, code: WinnerCode, winner_ids: list[str], message: str) -> None:
        self.codes.append(code)
        self.messages.append(message)
        for pid in winner_ids:
            if pid not in self.winner_ids:
                self.winner_ids.append(pid)

    @property
    def message(self) -> str:
        return " ".join(self.messages)


Check = Callable[[GameState], Optional[tuple[WinnerCode, list[str], str]]]


def _lynch_solos(state: GameState, lynched_id: Optional[str]) -> list[tuple[WinnerCode, list[str], str]]:
    if lynched_id is None:
        return []
    lynched = state.get_player(lynched_id)
    if lynched is None:
        return []
    wins = []
    if lynched.role == Role.DRUNK_MAN:
        wins.append((WinnerCode.DRUNK_MAN, [lynched.id], f"{lynched.name} got themselves lynched and wins alone."))
    for executioner in state.get_players_by_role(Role.EXECUTIONER):
        if executioner.executioner_target_id == lynched_id:
            wins.append((
                WinnerCode.EXECUTIONER,
                [executioner.id],
                f"{executioner.name} saw their target hang.",
            ))
    return wins


def _lovers(state: GameState):
    alive = {p.id for p in state.get_alive_players()}
    for a, b in lovers(state):
        if len(alive) == 2 and alive == {a, b}:
            return WinnerCode.LOVERS, [a, b], "The lovers are the last ones standing."
    return None


def _cult(state: GameState):
    alive = state.get_alive_players()
    if alive and all(p.is_cult_member for p in alive):
        leaders = [p.id for p in state.players if p.role == Role.CULT_LEADER]
        return WinnerCode.CULT, leaders + [p.id for p in alive], "The whole village has joined the cult."
    return None


def _vampire(state: GameState):
    if state.vampire_kills < VAMPIRE_KILLS_TO_WIN:
        return None
    vampires = state.get_players_by_role(Role.VAMPIRE)
    if vampires:
        return WinnerCode.VAMPIRE, [p.id for p in vampires], "The vampire has fed enough."
    return None


def _fisherman(state: GameState):
    fishermen = state.get_players_by_role(Role.FISHERMAN)
    villagers = [p for p in state.get_alive_players() if team_of(p.role) == Team.VILLAGE]
    if fishermen and villagers and all(p.id in state.boat for p in villagers):
        return WinnerCode.FISHERMAN, [p.id for p in fishermen], "Every villager is safe on the boat."
    return None


def _banshee(state: GameState):
    banshees = [p for p in state.get_players_by_role(Role.BANSHEE) if p.banshee_points >= BANSHEE_POINTS_TO_WIN]
    if banshees:
        return WinnerCode.BANSHEE, [p.id for p in banshees], "The banshee's screams came true."
    return None


def _fairies(state: GameState):
    if not state.fairy_kill_used:
        return None
    seekers = state.get_players_by_role(Role.SEEKER_FAIRY)
    sleepers = state.get_players_by_role(Role.SLEEPING_FAIRY)
    if seekers and sleepers:
        return WinnerCode.FAIRIES, [p.id for p in seekers + sleepers], "The fairies' curse is complete."
    return None


def _wolves(state: GameState):
    alive = state.get_alive_players()
    wolves = [p for p in alive if p.is_wolf]
    if wolves and len(wolves) >= len(alive) - len(wolves):
        return WinnerCode.WOLVES, [p.id for p in wolves], "The wolves outnumber the village."
    return None


def _threat_alive(state: GameState) -> bool:
    for p in state.get_alive_players():
        if p.is_wolf or p.role == Role.VAMPIRE:
            return True
        if p.role == Role.SLEEPING_FAIRY and state.fairies_found:
            return True
    return False


def _villagers(state: GameState):
    alive = state.get_alive_players()
    if not alive or _threat_alive(state):
        return None
    winners = [
        p.id
        for p in alive
        if not p.is_cult_member and p.role not in (Role.SLEEPING_FAIRY, Role.EXECUTIONER)
    ]
    return WinnerCode.VILLAGERS, winners, "Every threat has been removed. The village wins."


def _draw(state: GameState):
    if not state.get_alive_players():
        return WinnerCode.DRAW, [], "Nobody survived."
    return None


# Faction predicates in precedence order; the first hit wins
FACTION_CHECKS: tuple[Check, ...] = (
    _lovers,
    _cult,
    _vampire,
    _fisherman,
    _banshee,
    _fairies,
    _wolves,
    _villagers,
    _draw,
)


def evaluate(state: GameState, lynched_id: Optional[str] = None) -> Optional[Victory]:
    """
    Return the victory reached in this state, or None while the game goes on.
    Solo objectives tied to the lynch that just happened are collected first and
    combined with the first faction predicate that holds.
    """
    victory = Victory()
    for code, winner_ids, message in _lynch_solos(state, lynched_id):
        victory.add(code, winner_ids, message)
    for check in FACTION_CHECKS:
        hit = check(state)
        if hit is not None:
            victory.add(*hit)
            break
    return victory if victory.codes else None
