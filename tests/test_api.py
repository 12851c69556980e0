"""API route tests."""

import copy
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from fastapi.testclient import TestClient

from api.main import app
from api.game_store import get as store_get
from api.game_store import update as store_update
from werewolf.errors import RetryExhausted
from werewolf.rules import Role


client = TestClient(app)

NAMES = ["Alice", "Bob", "Carol", "Dave", "Eve"]


def _create(names=NAMES, **body) -> str:
    payload = {"players": [{"name": n} for n in names], "seed": 11, **body}
    r = client.post("/games", json=payload)
    assert r.status_code == 200
    return r.json()["game_id"]


def _expire_phase(gid: str) -> None:
    state = copy.deepcopy(store_get(gid)["state"])
    state.phase_ends_at = datetime.now(timezone.utc) - timedelta(seconds=1)
    store_update(gid, state)


def _start_night(gid: str) -> dict:
    r = client.post(f"/games/{gid}/start")
    assert r.status_code == 200
    _expire_phase(gid)
    r = client.post(f"/games/{gid}/resolve")
    assert r.status_code == 200
    return r.json()


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_roles_catalogue():
    r = client.get("/roles")
    assert r.status_code == 200
    roles = {row["role"]: row for row in r.json()}
    assert len(roles) == len(Role)
    assert roles["werewolf"]["team"] == "wolves"
    assert roles["werewolf"]["night_actions"] == ["werewolf_kill"]
    assert roles["villager"]["night_actions"] == []


def test_create_game():
    gid = _create()
    r = client.get(f"/games/{gid}")
    assert r.status_code == 200
    state = r.json()
    assert state["game_id"] == gid
    assert len(state["players"]) == 5
    assert state["phase"] == "lobby"
    assert state["status"] == "waiting"
    assert state["started"] is False
    assert gid in client.get("/games").json()


def test_create_game_validation():
    r = client.post("/games", json={"players": [{"name": "A"}, {"name": "B"}]})
    assert r.status_code == 422  # too few players
    r = client.post("/games", json={"players": [{"name": "A"}, {"name": "B"}, {"name": "A"}]})
    assert r.status_code == 422  # duplicate names
    r = client.post("/games", json={"players": [{"name": n} for n in NAMES], "werewolves": 5})
    assert r.status_code == 422
    r = client.post("/games", json={"players": [{"name": n} for n in NAMES], "special_roles": ["sheriff"]})
    assert r.status_code == 422


def test_get_game_404():
    r = client.get("/games/nonexistent-id")
    assert r.status_code == 404
    r = client.post("/games/nonexistent-id/resolve")
    assert r.status_code == 404


def test_start_twice_is_rejected():
    gid = _create()
    r = client.post(f"/games/{gid}/start")
    assert r.status_code == 200
    assert r.json()["phase"] == "role_reveal"
    r = client.post(f"/games/{gid}/start")
    assert r.status_code == 400


def test_resolve_before_deadline_is_noop():
    gid = _create()
    client.post(f"/games/{gid}/start")
    r = client.post(f"/games/{gid}/resolve")
    assert r.status_code == 200
    data = r.json()
    assert data["noop"] is True
    assert data["phase"] == "role_reveal"
    assert data["events"] == []


def test_resolve_cannot_be_forced_early():
    gid = _create()
    client.post(f"/games/{gid}/start")
    r = client.post(f"/games/{gid}/resolve", params={"force": True})
    assert r.status_code == 200
    assert r.json()["noop"] is True
    assert r.json()["phase"] == "role_reveal"

    assert client.get(f"/games/{gid}").json()["phase"] == "role_reveal"
    _expire_phase(gid)
    r = client.post(f"/games/{gid}/resolve")
    assert r.json()["phase"] == "night"
    r = client.post(f"/games/{gid}/resolve", params={"force": True})
    assert r.json()["noop"] is True
    assert r.json()["phase"] == "night"


def test_roles_hidden_from_other_players():
    gid = _create()
    _start_night(gid)
    r = client.get(f"/games/{gid}", params={"viewer_id": "player_0"})
    data = r.json()
    players = {p["id"]: p for p in data["players"]}
    assert players["player_0"]["role"] is not None
    assert all(players[pid]["role"] is None for pid in players if pid != "player_0")
    assert data["viewer"]["player_id"] == "player_0"
    r = client.get(f"/games/{gid}")
    assert all(p["role"] is None for p in r.json()["players"])


def test_night_flow():
    gid = _create()
    data = _start_night(gid)
    assert data["noop"] is False
    assert data["phase"] == "night"
    assert data["round_index"] == 1

    state = store_get(gid)["state"]
    wolf = state.get_players_by_role(Role.WEREWOLF)[0]
    prey = next(p for p in state.players if p.role != Role.WEREWOLF)

    r = client.post(f"/games/{gid}/votes", json={"player_id": wolf.id, "target_id": prey.id})
    assert r.status_code == 400
    assert r.json()["detail"]["reason"] == "wrong_phase"

    r = client.post(
        f"/games/{gid}/actions",
        json={"player_id": wolf.id, "action_type": "werewolf_kill", "target_ids": [prey.id]},
    )
    assert r.status_code == 200
    assert r.json()["viewer"]["role"] == "werewolf"

    r = client.post(
        f"/games/{gid}/actions",
        json={"player_id": prey.id, "action_type": "seer_check", "target_ids": [wolf.id]},
    )
    assert r.status_code == 400
    assert r.json()["detail"]["reason"] == "invalid_action"

    r = client.post(f"/games/{gid}/resolve")
    data = r.json()
    assert data["noop"] is False
    assert data["phase"] == "day"
    night_result = next(e for e in data["events"] if e["kind"] == "night_result")
    assert night_result["data"]["killed_player_ids"] == [prey.id]

    r = client.get(f"/games/{gid}")
    players = {p["id"]: p for p in r.json()["players"]}
    assert players[prey.id]["alive"] is False
    assert players[prey.id]["role"] is not None


def test_bots_take_their_turn():
    gid = _create(names=[], players=[{"name": n, "is_ai": True} for n in NAMES])
    _start_night(gid)
    r = client.post(f"/games/{gid}/bots")
    assert r.status_code == 200
    state = store_get(gid)["state"]
    wolf = state.get_players_by_role(Role.WEREWOLF)[0]
    assert wolf.used_night_ability
    r = client.post(f"/games/{gid}/resolve")
    assert r.json()["noop"] is False


def test_retry_exhausted_maps_to_503():
    gid = _create()
    with patch("api.main.transact", side_effect=RetryExhausted(gid, 3)):
        r = client.post(f"/games/{gid}/start")
    assert r.status_code == 503
