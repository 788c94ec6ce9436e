from __future__ import annotations

from fastapi.testclient import TestClient

from chess_rules.config import Settings
from chess_rules.engine.fen import STARTPOS_FEN
from chess_rules.protocol.http.app import create_app


MATE_IN_ONE = "6k1/5ppp/8/8/8/8/8/3Q2K1 w - - 0 1"


def _client() -> TestClient:
    return TestClient(create_app(Settings()))


def _new_game(client: TestClient) -> str:
    r = client.post("/api/games")
    assert r.status_code == 200
    return r.json()["game_id"]


def test_create_game_and_get_state() -> None:
    client = _client()
    r = client.post("/api/games")
    assert r.status_code == 200
    body = r.json()
    assert body["game_id"]
    assert body["fen"] == STARTPOS_FEN

    state = client.get(f"/api/games/{body['game_id']}/state").json()
    assert state["game_id"] == body["game_id"]
    assert state["turn"] == "w"
    assert state["outcome"] == "in_progress"
    assert state["status"] == "White to move"
    assert len(state["legal_moves"]) == 20
    assert state["board"][0][4] == "k"
    assert state["board"][7][4] == "K"
    assert state["board"][4] == [None] * 8
    assert state["last_move"] is None


def test_get_state_unknown_id_404() -> None:
    client = _client()
    r = client.get("/api/games/does-not-exist/state")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_legal_move_updates_state() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e4"})
    assert r.status_code == 200
    state = r.json()
    assert state["turn"] == "b"
    assert state["last_move"] == "e2e4"
    assert " e3 " in state["fen"]
    assert state["board"][6][4] is None
    assert state["board"][4][4] == "P"


def test_illegal_move_is_rejected_without_change() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "e2e5"})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "bad_request"
    assert err["message"] == "illegal move"
    assert client.get(f"/api/games/{game_id}/state").json()["fen"] == STARTPOS_FEN

    # Moving the opponent's piece is illegal too
    r2 = client.post(f"/api/games/{game_id}/move", json={"move": "e7e5"})
    assert r2.status_code == 400


def test_malformed_move_is_bad_request() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={"move": "zz99"})
    assert r.status_code == 400
    assert "invalid square" in r.json()["error"]["message"]


def test_missing_move_field_is_validation_error() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/move", json={})
    assert r.status_code == 422
    err = r.json()["error"]
    assert err["code"] == "unprocessable_entity"
    assert any(fe["field"].endswith("move") for fe in err["field_errors"])


def test_checkmate_then_moves_conflict_until_reset() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/position", json={"fen": MATE_IN_ONE})
    assert r.status_code == 200

    r = client.post(f"/api/games/{game_id}/move", json={"move": "d1d8"})
    assert r.status_code == 200
    state = r.json()
    assert state["checkmate"] is True
    assert state["in_check"] is True
    assert state["winner"] == "w"
    assert state["status"] == "Checkmate! White wins"
    assert state["legal_moves"] == []

    r = client.post(f"/api/games/{game_id}/move", json={"move": "g8h8"})
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"

    r = client.post(f"/api/games/{game_id}/reset")
    assert r.status_code == 200
    assert r.json()["fen"] == STARTPOS_FEN
    assert r.json()["outcome"] == "in_progress"


def test_stalemate_position_is_reported() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(
        f"/api/games/{game_id}/position", json={"fen": "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"}
    )
    assert r.status_code == 200
    state = r.json()
    assert state["stalemate"] is True
    assert state["checkmate"] is False
    assert state["status"] == "Stalemate!"


def test_invalid_position_is_bad_request() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.post(f"/api/games/{game_id}/position", json={"fen": ""})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "bad_request"


def test_destinations_endpoint() -> None:
    client = _client()
    game_id = _new_game(client)
    r = client.get(f"/api/games/{game_id}/moves/b1")
    assert r.status_code == 200
    assert sorted(r.json()["destinations"]) == ["a3", "c3"]

    assert client.get(f"/api/games/{game_id}/moves/e7").json()["destinations"] == []
    assert client.get(f"/api/games/{game_id}/moves/i9").status_code == 400


def test_delete_game() -> None:
    client = _client()
    game_id = _new_game(client)
    assert client.delete(f"/api/games/{game_id}").status_code == 200
    assert client.get(f"/api/games/{game_id}/state").status_code == 404
    assert client.delete(f"/api/games/{game_id}").status_code == 404
