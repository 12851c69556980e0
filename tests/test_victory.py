"""Tests for the win condition evaluator."""

from werewolf.bonds import bind
from werewolf.rules import BondKind, Phase, Role, Status, WinnerCode
from werewolf.state import GameState, Player
from werewolf.victory import evaluate


def _make_game(roles: list[Role], dead: tuple[int, ...] = ()) -> GameState:
    players = [
        Player(id=f"player_{i}", name=f"P{i}", role=role, alive=i not in dead)
        for i, role in enumerate(roles)
    ]
    return GameState(game_id="g1", players=players, round_index=1, phase=Phase.DAY, status=Status.IN_PROGRESS)


def test_game_goes_on():
    state = _make_game([Role.WEREWOLF, Role.VILLAGER, Role.VILLAGER, Role.VILLAGER])
    assert evaluate(state) is None


def test_wolves_reach_parity():
    state = _make_game([Role.WEREWOLF, Role.WEREWOLF, Role.VILLAGER, Role.VILLAGER], dead=(3,))
    victory = evaluate(state)
    assert victory.codes == [WinnerCode.WOLVES]
    assert victory.winner_ids == ["player_0", "player_1"]


def test_unbitten_cursed_sides_with_the_village():
    state = _make_game([Role.WEREWOLF, Role.CURSED, Role.VILLAGER], dead=(0,))
    victory = evaluate(state)
    assert victory.codes == [WinnerCode.VILLAGERS]
    assert victory.winner_ids == ["player_1", "player_2"]


def test_villagers_win_without_threats():
    state = _make_game([Role.WEREWOLF, Role.VILLAGER, Role.SEER, Role.EXECUTIONER], dead=(0,))
    victory = evaluate(state)
    assert victory.codes == [WinnerCode.VILLAGERS]
    assert victory.winner_ids == ["player_1", "player_2"]


def test_found_sleeping_fairy_is_a_threat():
    state = _make_game([Role.WEREWOLF, Role.VILLAGER, Role.SLEEPING_FAIRY, Role.VILLAGER], dead=(0,))
    assert evaluate(state).codes == [WinnerCode.VILLAGERS]
    state.fairies_found = True
    assert evaluate(state) is None


def test_draw_when_nobody_survives():
    state = _make_game([Role.WEREWOLF, Role.VILLAGER], dead=(0, 1))
    assert evaluate(state).codes == [WinnerCode.DRAW]


def test_lovers_outrank_wolves():
    state = _make_game([Role.WEREWOLF, Role.VILLAGER, Role.VILLAGER], dead=(2,))
    bind(state, BondKind.LOVER, "player_0", "player_1")
    victory = evaluate(state)
    assert victory.codes == [WinnerCode.LOVERS]
    assert victory.winner_ids == ["player_0", "player_1"]


def test_cult_takes_over():
    state = _make_game([Role.CULT_LEADER, Role.VILLAGER, Role.WEREWOLF], dead=(2,))
    for p in state.players:
        p.is_cult_member = True
    assert evaluate(state).codes == [WinnerCode.CULT]


def test_vampire_needs_three_kills():
    state = _make_game([Role.VAMPIRE, Role.WEREWOLF] + [Role.VILLAGER] * 4)
    state.vampire_kills = 2
    assert evaluate(state) is None
    state.vampire_kills = 3
    assert evaluate(state).codes == [WinnerCode.VAMPIRE]


def test_fisherman_boat_full():
    state = _make_game([Role.FISHERMAN, Role.WEREWOLF, Role.VILLAGER, Role.VILLAGER, Role.SEER])
    state.boat = ["player_2", "player_3"]
    assert evaluate(state) is None
    state.boat.append("player_4")
    assert evaluate(state).codes == [WinnerCode.FISHERMAN]


def test_banshee_two_correct_screams():
    state = _make_game([Role.BANSHEE, Role.WEREWOLF] + [Role.VILLAGER] * 4)
    state.get_player("player_0").banshee_points = 2
    assert evaluate(state).codes == [WinnerCode.BANSHEE]


def test_fairies_after_their_kill():
    state = _make_game([Role.SEEKER_FAIRY, Role.SLEEPING_FAIRY, Role.WEREWOLF] + [Role.VILLAGER] * 5)
    state.fairies_found = True
    assert evaluate(state) is None
    state.fairy_kill_used = True
    victory = evaluate(state)
    assert victory.codes == [WinnerCode.FAIRIES]
    assert victory.winner_ids == ["player_0", "player_1"]


def test_executioner_lynch_combines_with_wolves():
    state = _make_game(
        [Role.WEREWOLF, Role.WEREWOLF, Role.EXECUTIONER, Role.VILLAGER, Role.VILLAGER],
        dead=(3,),
    )
    state.get_player("player_2").executioner_target_id = "player_3"
    victory = evaluate(state, lynched_id="player_3")
    assert victory.codes == [WinnerCode.EXECUTIONER, WinnerCode.WOLVES]
    assert victory.winner_ids == ["player_2", "player_0", "player_1"]


def test_lynch_objective_only_on_its_own_lynch():
    state = _make_game(
        [Role.WEREWOLF, Role.EXECUTIONER, Role.VILLAGER, Role.VILLAGER, Role.VILLAGER, Role.VILLAGER],
        dead=(2, 3),
    )
    state.get_player("player_1").executioner_target_id = "player_2"
    assert evaluate(state) is None
    assert evaluate(state, lynched_id="player_3") is None
    assert evaluate(state, lynched_id="player_2").codes == [WinnerCode.EXECUTIONER]


def test_lynched_drunk_man_wins_alone():
    state = _make_game([Role.WEREWOLF, Role.DRUNK_MAN] + [Role.VILLAGER] * 4, dead=(1,))
    victory = evaluate(state, lynched_id="player_1")
    assert victory.codes == [WinnerCode.DRUNK_MAN]
    assert victory.winner_ids == ["player_1"]
