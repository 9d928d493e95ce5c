"""
Tests for the REST API.

Covers:
- /api/move for each difficulty, mate detection, status reporting
- Validation errors: bad FEN, finished game, unknown difficulty
- /api/evaluate and /api/difficulties
"""

import chess
import pytest
from fastapi.testclient import TestClient

from engine.constants import CHECKMATE_SCORE
from web.app import app, game_status

client = TestClient(app)

ENDGAME = "8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 1"
MATE_IN_ONE = "6k1/5ppp/8/8/8/8/5PPP/3R2K1 w - - 0 1"
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"


# ════════════════════════════════════════════════════════════════════════════
#  /api/move
# ════════════════════════════════════════════════════════════════════════════

class TestMoveEndpoint:
    @pytest.mark.parametrize("difficulty", ["Beginner", "Easy", "Hard", "master"])
    def test_returns_legal_move(self, difficulty):
        resp = client.post("/api/move", json={"fen": ENDGAME, "difficulty": difficulty})
        assert resp.status_code == 200
        body = resp.json()

        board = chess.Board(ENDGAME)
        move = chess.Move.from_uci(body["move"])
        assert move in board.legal_moves
        assert body["san"] == board.san(move)
        board.push(move)
        assert body["fen"] == board.fen()

    def test_default_difficulty(self):
        resp = client.post("/api/move", json={"fen": chess.STARTING_FEN})
        assert resp.status_code == 200
        assert resp.json()["depth"] == 1

    def test_mate_in_one(self):
        resp = client.post("/api/move", json={"fen": MATE_IN_ONE, "difficulty": "Hard"})
        body = resp.json()
        assert body["move"] == "d1d8"
        assert body["san"] == "Rd8#"
        assert body["score"] == CHECKMATE_SCORE - 1
        assert body["status"] == "checkmate"

    def test_invalid_fen(self):
        resp = client.post("/api/move", json={"fen": "garbage", "difficulty": "Easy"})
        assert resp.status_code == 400

    def test_game_over(self):
        resp = client.post("/api/move", json={"fen": FOOLS_MATE, "difficulty": "Easy"})
        assert resp.status_code == 400
        assert "over" in resp.json()["detail"]

    def test_unknown_difficulty(self):
        resp = client.post("/api/move", json={"fen": ENDGAME, "difficulty": "Expert"})
        assert resp.status_code == 422


# ════════════════════════════════════════════════════════════════════════════
#  OTHER ROUTES
# ════════════════════════════════════════════════════════════════════════════

class TestOtherEndpoints:
    def test_evaluate_start(self):
        resp = client.post("/api/evaluate", json={"fen": chess.STARTING_FEN})
        assert resp.json() == {"score": 0, "material": 0, "positional": 0, "status": ""}

    def test_evaluate_checkmate_status(self):
        resp = client.post("/api/evaluate", json={"fen": FOOLS_MATE})
        assert resp.json()["status"] == "checkmate"

    def test_evaluate_invalid_fen(self):
        resp = client.post("/api/evaluate", json={"fen": "garbage"})
        assert resp.status_code == 400

    def test_difficulties(self):
        resp = client.get("/api/difficulties")
        assert resp.json() == [
            {"name": "Beginner", "depth": 0},
            {"name": "Easy", "depth": 1},
            {"name": "Hard", "depth": 2},
            {"name": "Master", "depth": 3},
        ]


class TestClaimableDraw:
    FIFTY_MOVES = "4k3/8/8/8/8/8/3Q4/4K3 w - - 100 80"

    def test_status_and_move_guard_agree(self):
        status = client.post("/api/evaluate", json={"fen": self.FIFTY_MOVES}).json()["status"]
        resp = client.post("/api/move", json={"fen": self.FIFTY_MOVES, "difficulty": "Easy"})
        assert status == "draw"
        assert resp.status_code == 400
        assert "1/2-1/2" in resp.json()["detail"]


class TestGameStatus:
    def test_check(self):
        board = chess.Board("4k3/8/8/8/8/8/8/4RK2 b - - 0 1")
        assert game_status(board) == "check"

    def test_stalemate_is_draw(self):
        assert game_status(chess.Board("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")) == "draw"

    def test_ongoing(self):
        assert game_status(chess.Board()) == ""
