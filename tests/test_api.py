"""Tests for the FastAPI tic-tac-toe interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from gridxo import ui
from gridxo.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = {}


def new_game(**payload):
    response = client.post("/api/game", json=payload)
    assert response.status_code == 200
    return response.json()


def move(game_id: str, cell_index: int):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell_index})


def test_create_computer_game_defaults():
    state = new_game()
    assert state["mode"] == "computer"
    assert state["difficulty"] == "MEDIUM"
    assert state["computerSymbol"] == "O"
    assert state["currentPlayer"] == "X"
    assert state["board"] == [""] * 9
    assert state["status"] == "in_progress"
    assert state["names"] == {"X": "YOU", "O": "AI"}
    assert state["score"] == {"x": 0, "o": 0, "draws": 0}
    assert state["aiPending"] is False


def test_player_move_then_computer_reply():
    game_id = new_game(difficulty="HARD")["id"]

    response = move(game_id, 0)
    assert response.status_code == 200
    state = response.json()
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["aiPending"] is False
    assert final_state["currentPlayer"] == "X"
    assert final_state["moveLog"][-1] == {"player": "O", "cellIndex": 4}
    assert final_state["board"][4] == "O"


def test_computer_opens_when_player_takes_o():
    state = new_game(difficulty="HARD", playerSymbol="O")
    assert state["computerSymbol"] == "X"
    assert state["names"] == {"X": "AI", "O": "YOU"}
    assert state["aiPending"] is True

    final_state = client.get(f"/api/game/{state['id']}").json()
    assert final_state["board"][0] == "X"
    assert final_state["currentPlayer"] == "O"


def test_move_out_of_turn_rejected():
    game_id, _ = ui._create_session(ui.NewGameRequest(playerSymbol="O"))
    response = move(game_id, 4)
    assert response.status_code == 400
    assert response.json()["detail"] == "It is not your turn"


def test_occupied_cell_rejected():
    game_id = new_game(difficulty="EASY")["id"]
    assert move(game_id, 0).status_code == 200

    duplicate = move(game_id, 0)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]


def test_rejects_invalid_payloads():
    assert client.post("/api/game", json={"difficulty": "IMPOSSIBLE"}).status_code == 422
    assert client.post("/api/game", json={"playerSymbol": "Z"}).status_code == 422
    game_id = new_game()["id"]
    assert move(game_id, 9).status_code == 422


def test_two_player_names_are_normalized():
    state = new_game(mode="player", playerNames={"x": "  alice ", "o": "   "})
    assert state["names"] == {"X": "ALICE", "O": "PLAYER 2"}
    assert state["difficulty"] is None

    long_name = new_game(mode="player", playerNames={"x": "abcdefghijklmnop"})
    assert long_name["names"]["X"] == "ABCDEFGHIJKL"


def test_two_player_win_scores_once_and_survives_rematch():
    game_id = new_game(mode="player")["id"]
    for cell in (0, 3, 1, 4):
        assert move(game_id, cell).status_code == 200
    state = move(game_id, 2).json()
    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["availableMoves"] == []
    assert state["score"] == {"x": 1, "o": 0, "draws": 0}

    finished = move(game_id, 5)
    assert finished.status_code == 400
    assert finished.json()["detail"] == "Game already finished"
    assert client.get(f"/api/game/{game_id}").json()["score"]["x"] == 1

    rematch = client.post(f"/api/game/{game_id}/rematch")
    assert rematch.status_code == 200
    state = rematch.json()
    assert state["board"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["moveLog"] == []
    assert state["score"] == {"x": 1, "o": 0, "draws": 0}

    reset = client.post(f"/api/game/{game_id}/score/reset").json()
    assert reset["score"] == {"x": 0, "o": 0, "draws": 0}


def test_two_player_draw():
    game_id = new_game(mode="player")["id"]
    for cell in (0, 1, 2, 4, 3, 5, 7, 6):
        move(game_id, cell)
    state = move(game_id, 8).json()
    assert state["status"] == "draw"
    assert state["drawn"] is True
    assert state["winner"] is None
    assert state["winningLine"] == []
    assert state["score"] == {"x": 0, "o": 0, "draws": 1}


def test_rematch_can_change_difficulty():
    game_id = new_game(difficulty="EASY", playerSymbol="O")["id"]
    state = client.post(
        f"/api/game/{game_id}/rematch", json={"difficulty": "HARD"}
    ).json()
    assert state["difficulty"] == "HARD"

    final_state = client.get(f"/api/game/{game_id}").json()
    assert final_state["board"][0] == "X"
    assert final_state["board"].count("X") == 1


def test_rematch_difficulty_rejected_for_two_players():
    game_id = new_game(mode="player")["id"]
    response = client.post(
        f"/api/game/{game_id}/rematch", json={"difficulty": "HARD"}
    )
    assert response.status_code == 400


def test_hard_computer_game_scores_exactly_once():
    game_id = new_game(difficulty="HARD")["id"]
    state = client.get(f"/api/game/{game_id}").json()
    while state["status"] == "in_progress":
        move(game_id, state["availableMoves"][0])
        state = client.get(f"/api/game/{game_id}").json()

    score = state["score"]
    assert score["x"] == 0
    assert score["o"] + score["draws"] == 1


def test_closed_and_unknown_games_return_404():
    assert client.get("/api/game/missing").status_code == 404
    assert move("missing", 0).status_code == 404

    game_id = new_game()["id"]
    closed = client.delete(f"/api/game/{game_id}")
    assert closed.status_code == 200
    assert closed.json() == {"id": game_id, "closed": True}
    assert client.get(f"/api/game/{game_id}").status_code == 404


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "VS COMPUTER" in response.text


def test_move_and_rematch_rejected_while_computer_thinks():
    game_id, session = ui._create_session(ui.NewGameRequest(difficulty="HARD"))
    session.ai_pending = True

    response = move(game_id, 0)
    assert response.status_code == 400
    assert response.json()["detail"] == "AI is completing its move"

    rematch = client.post(f"/api/game/{game_id}/rematch")
    assert rematch.status_code == 400
    assert rematch.json()["detail"] == "AI is completing its move"

    session.ai_pending = False
    assert move(game_id, 0).status_code == 200


def test_rematch_can_switch_sides():
    game_id = new_game(difficulty="HARD")["id"]
    state = client.get(f"/api/game/{game_id}").json()
    while state["status"] == "in_progress":
        move(game_id, state["availableMoves"][0])
        state = client.get(f"/api/game/{game_id}").json()
    assert sum(state["score"].values()) == 1

    switched = client.post(
        f"/api/game/{game_id}/rematch",
        json={"difficulty": "HARD", "playerSymbol": "O"},
    ).json()
    assert switched["computerSymbol"] == "X"
    assert switched["names"] == {"X": "AI", "O": "YOU"}
    assert switched["score"] == {"x": 0, "o": 0, "draws": 0}
    assert switched["aiPending"] is True

    final_state = client.get(f"/api/game/{game_id}").json()
    assert final_state["board"][0] == "X"
    assert final_state["currentPlayer"] == "O"


def test_rematch_keeps_score_when_side_unchanged():
    game_id = new_game(mode="player")["id"]
    for cell in (0, 3, 1, 4, 2):
        move(game_id, cell)
    rematch = client.post(
        f"/api/game/{game_id}/rematch", json={"playerSymbol": "X"}
    )
    assert rematch.status_code == 400

    game_id = new_game(difficulty="EASY")["id"]
    ui.SESSIONS[game_id].score.draws = 2
    state = client.post(
        f"/api/game/{game_id}/rematch", json={"playerSymbol": "X"}
    ).json()
    assert state["computerSymbol"] == "O"
    assert state["score"]["draws"] == 2


def test_idle_sessions_expire():
    stale_id = new_game()["id"]
    ui.SESSIONS[stale_id].last_active -= ui.SESSION_TTL_SECONDS + 1
    fresh_id = new_game()["id"]

    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{fresh_id}").status_code == 200
