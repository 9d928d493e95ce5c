"""
FastAPI web application for the Chess AI engine.

Exposes a small REST API for a browser board UI:

    POST /api/move          FEN + difficulty in, engine move and new FEN out
    POST /api/evaluate      FEN in, static evaluation out
    GET  /api/difficulties  available levels and their search depths

Architecture notes:
- Sync endpoints (not async): FastAPI runs sync handlers in a thread pool,
  which is the correct pattern for CPU-bound blocking calls like engine search.
- Stateless per request: the client sends the full FEN each time; no server-
  side board state is maintained between requests.
"""

import logging

import chess
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, field_validator

from engine.constants import DEFAULT_DIFFICULTY
from engine.difficulty import Difficulty
from engine.evaluate import score_terms
from engine.search import get_best_move

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=logging.INFO)
_log = logging.getLogger(__name__)

app = FastAPI(title="Grandmaster Chess", version="1.0.0")


def game_status(board: chess.Board) -> str:
    """
    Summarize the state of the game for the UI status line.

    Returns:
        "checkmate", "draw", "check", or "" while the game simply goes on.
    """
    if board.is_checkmate():
        return "checkmate"
    if board.is_game_over(claim_draw=True):
        return "draw"
    if board.is_check():
        return "check"
    return ""


def _parse_fen(fen: str) -> chess.Board:
    try:
        return chess.Board(fen)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid FEN: {exc}") from exc


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class MoveRequest(BaseModel):
    """
    Client request to the engine.

    Fields:
        fen: Full FEN string representing the current board position.
        difficulty: Playing strength, one of Beginner, Easy, Hard, Master
                    (case-insensitive). Unknown names are rejected with 422.
    """

    fen: str
    difficulty: Difficulty = Difficulty(DEFAULT_DIFFICULTY)

    @field_validator("difficulty", mode="before")
    @classmethod
    def parse_difficulty(cls, v: object) -> Difficulty:
        """Accept difficulty names in any letter case."""
        return Difficulty.parse(v)


class MoveResponse(BaseModel):
    """
    Engine response after computing the best move.

    Fields:
        move: Best move in UCI notation (e.g. "e2e4", "e7e8q").
        san: The same move in standard algebraic notation, for move history.
        fen: Board FEN after the engine's move is applied.
        score: Evaluation in centipawns, positive = White is better.
        depth: Search depth in plies (0 for Beginner's random moves).
        nodes: Number of positions searched.
        status: Game status after the move ("checkmate", "draw", "check", "").
    """

    move: str
    san: str
    fen: str
    score: int
    depth: int
    nodes: int
    status: str


class EvaluateRequest(BaseModel):
    """Position to evaluate, as a FEN string."""

    fen: str


class EvaluateResponse(BaseModel):
    """
    Static evaluation of a position, all in centipawns from White's side.

    Fields:
        score: material + positional.
        material: Material balance only.
        positional: Piece-square table balance only.
        status: Game status of the position.
    """

    score: int
    material: int
    positional: int
    status: str


class DifficultyInfo(BaseModel):
    """One difficulty level and the search depth it maps to."""

    name: str
    depth: int


# ---------------------------------------------------------------------------
# API routes
# ---------------------------------------------------------------------------


@app.post("/api/move", response_model=MoveResponse)
def api_move(request: MoveRequest) -> MoveResponse:
    """
    Compute the engine's move for the given position and difficulty.

    Validates the FEN, confirms the game is not over, runs the search,
    applies the move, and returns the result.

    Args:
        request: MoveRequest with a FEN string and a difficulty.

    Returns:
        MoveResponse with the move (UCI and SAN), updated FEN, score, depth,
        node count and game status.

    Raises:
        HTTPException 400: Malformed FEN or game already over.
        HTTPException 500: Engine failure.
    """
    board = _parse_fen(request.fen)

    # Same predicate as the status line, so a claimable draw ends the game.
    if game_status(board) in ("checkmate", "draw"):
        raise HTTPException(
            status_code=400,
            detail=f"Game is already over: {board.result(claim_draw=True)}",
        )

    try:
        move, score, depth, nodes = get_best_move(board, request.difficulty)
    except Exception as exc:
        _log.exception("Engine search failed for FEN=%s", request.fen)
        raise HTTPException(status_code=500, detail=f"Engine error: {exc}") from exc

    if move is None:
        raise HTTPException(status_code=500, detail="Engine returned no move")

    _log.info(
        "Move=%s difficulty=%s score=%d depth=%d nodes=%d fen=%s",
        move.uci(),
        request.difficulty.value,
        score,
        depth,
        nodes,
        request.fen[:40],
    )

    san = board.san(move)
    board.push(move)
    return MoveResponse(
        move=move.uci(),
        san=san,
        fen=board.fen(),
        score=score,
        depth=depth,
        nodes=nodes,
        status=game_status(board),
    )


@app.post("/api/evaluate", response_model=EvaluateResponse)
def api_evaluate(request: EvaluateRequest) -> EvaluateResponse:
    """Return the static evaluation of a position without searching."""
    board = _parse_fen(request.fen)
    mat, pos = score_terms(board)
    return EvaluateResponse(
        score=mat + pos,
        material=mat,
        positional=pos,
        status=game_status(board),
    )


@app.get("/api/difficulties", response_model=list[DifficultyInfo])
def api_difficulties() -> list[DifficultyInfo]:
    """List the difficulty levels, weakest first."""
    return [DifficultyInfo(name=level.value, depth=level.depth) for level in Difficulty]
