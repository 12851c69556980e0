"""Tests for the chain-death resolver and bonded fate."""

import pytest

from werewolf.bonds import bind, lovers, partner
from werewolf.chain import kill_player, resolve_death
from werewolf.rules import BondKind, DeathCause, Phase, Role, Status
from werewolf.state import EventKind, GameState, Player


def _make_game(roles: list[Role]) -> GameState:
    players = [Player(id=f"player_{i}", name=f"P{i}", role=role) for i, role in enumerate(roles)]
    return GameState(
        game_id="g1",
        players=players,
        round_index=1,
        phase=Phase.NIGHT,
        status=Status.IN_PROGRESS,
    )


def test_lover_and_twin_follow_in_order():
    state = _make_game([Role.VILLAGER, Role.TWIN, Role.TWIN, Role.VILLAGER])
    bind(state, BondKind.LOVER, "player_0", "player_1")
    bind(state, BondKind.TWIN, "player_1", "player_2")
    killed = resolve_death(state, "player_0", DeathCause.WEREWOLF_KILL)
    assert killed == ["player_0", "player_1", "player_2"]
    assert state.get_player("player_3").alive
    kinds = [e.kind for e in state.events]
    assert kinds == [EventKind.PLAYER_DIED, EventKind.LOVER_DEATH, EventKind.TWIN_DEATH]
    assert state.events[1].data["source_player_id"] == "player_0"
    assert state.events[2].data["cause"] == "twin"


def test_repeated_resolution_kills_nobody_new():
    state = _make_game([Role.VILLAGER, Role.TWIN, Role.TWIN, Role.VIRGINIA_WOOLF, Role.VILLAGER])
    bind(state, BondKind.LOVER, "player_0", "player_1")
    bind(state, BondKind.TWIN, "player_1", "player_2")
    bind(state, BondKind.LOVER, "player_2", "player_3")
    bind(state, BondKind.LINK, "player_3", "player_0")
    state2, first = kill_player(state, "player_0", DeathCause.VOTE)
    state3, second = kill_player(state2, "player_0", DeathCause.VOTE)
    assert first == ["player_0", "player_1", "player_2", "player_3"]
    assert second == []
    assert [p.alive for p in state3.players] == [p.alive for p in state2.players]
    assert len(state3.events) == len(state2.events)
    # input untouched
    assert all(p.alive for p in state.players)


def test_link_is_one_way():
    state = _make_game([Role.VIRGINIA_WOOLF, Role.VILLAGER, Role.VILLAGER])
    bind(state, BondKind.LINK, "player_0", "player_1")
    assert partner(state, "player_1", BondKind.LINK) is None
    _, killed = kill_player(state, "player_1", DeathCause.WEREWOLF_KILL)
    assert killed == ["player_1"]
    _, killed = kill_player(state, "player_0", DeathCause.WEREWOLF_KILL)
    assert killed == ["player_0", "player_1"]


def test_bind_rejects_second_partner():
    state = _make_game([Role.VILLAGER, Role.VILLAGER, Role.VILLAGER])
    bind(state, BondKind.LOVER, "player_0", "player_1")
    with pytest.raises(ValueError):
        bind(state, BondKind.LOVER, "player_2", "player_1")
    assert lovers(state) == [("player_0", "player_1")]


def test_seer_death_promotes_apprentice():
    state = _make_game([Role.SEER, Role.SEER_APPRENTICE, Role.VILLAGER])
    state, _ = kill_player(state, "player_0", DeathCause.WEREWOLF_KILL)
    assert state.seer_died
    assert state.get_player("player_1").role == Role.SEER
    transformed = [e for e in state.events if e.kind == EventKind.PLAYER_TRANSFORMED]
    assert transformed[0].audience == ("player_1",)


def test_hunter_death_opens_pending_shot():
    state = _make_game([Role.HUNTER, Role.HUNTER, Role.VILLAGER])
    bind(state, BondKind.LOVER, "player_0", "player_1")
    state, killed = kill_player(state, "player_0", DeathCause.WEREWOLF_KILL)
    assert killed == ["player_0", "player_1"]
    # only the first hunter gets the shot
    assert state.pending_hunter_id == "player_0"


def test_executioner_turns_villager_when_target_dies_at_night():
    state = _make_game([Role.EXECUTIONER, Role.VILLAGER, Role.VILLAGER])
    state.get_player("player_0").executioner_target_id = "player_1"
    state, _ = kill_player(state, "player_1", DeathCause.WEREWOLF_KILL)
    executioner = state.get_player("player_0")
    assert executioner.role == Role.VILLAGER
    assert executioner.executioner_target_id is None


def test_executioner_keeps_role_when_target_is_lynched():
    state = _make_game([Role.EXECUTIONER, Role.VILLAGER, Role.VILLAGER])
    state.get_player("player_0").executioner_target_id = "player_1"
    state, _ = kill_player(state, "player_1", DeathCause.JURY_VOTE)
    assert state.get_player("player_0").role == Role.EXECUTIONER


def test_shapeshifter_takes_dead_model_role():
    state = _make_game([Role.SHAPESHIFTER, Role.DOCTOR, Role.VILLAGER])
    state.get_player("player_0").shapeshifter_target_id = "player_1"
    state, _ = kill_player(state, "player_1", DeathCause.POISON)
    assert state.get_player("player_0").role == Role.DOCTOR


def test_wolf_cub_and_leper_triggers():
    state = _make_game([Role.WOLF_CUB, Role.LEPER, Role.VILLAGER])
    state, _ = kill_player(state, "player_0", DeathCause.VOTE)
    assert state.revenge_pending
    state, _ = kill_player(state, "player_1", DeathCause.WEREWOLF_KILL)
    assert state.leper_block_round == 2
