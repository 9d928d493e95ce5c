"""
Search entry point: minimax with alpha-beta pruning and a fixed,
difficulty-driven search depth.

This module defines the stable public interface that interface/uci.py and
web/app.py depend on:

    get_best_move(board, difficulty) -> SearchResult(move, score, depth, nodes)
    select_move(board, difficulty)   -> chess.Move | None

The search works on absolute scores (engine.evaluate: positive favors White).
White is always the maximizing player and Black the minimizing player, and
the root derives which one it is from board.turn. There is no assumption
about which color the automated player has.

Search outline:

1. Difficulty is turned into a depth (engine.difficulty). Depth 0 is the
   Beginner level: a uniformly random legal move, nothing is evaluated.

2. The caller's board is copied once. Every candidate move is pushed onto the
   copy, searched recursively and popped again, so the copy is always back in
   its original state between root moves and the caller's board is never
   touched.

3. Checkmate and draws are recognized at every node before the depth test, so
   a mated position scores as a mate even at depth 0 instead of as an
   ordinary material count.

4. Captures are searched first (MVV-LVA). The sort is stable, so among equal
   keys python-chess's enumeration order is kept and ties at the root always
   resolve to the same move.

Threading model:
    get_best_move() is synchronous and keeps no module-level state besides
    the `random` module used for Beginner mode. Each call owns its scratch
    board and its SearchState, so independent boards can be searched from
    several threads at once.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple

import chess

from engine.constants import CHECKMATE_SCORE, DEFAULT_DIFFICULTY, DRAW_SCORE, PIECE_VALUES
from engine.difficulty import Difficulty
from engine.evaluate import evaluate

_log = logging.getLogger(__name__)

# Window bounds. Strictly outside every score the search can produce,
# including mate scores.
INF: int = 1_000_000


class SearchInvariantError(RuntimeError):
    """
    The rules engine contradicted itself during a search.

    Raised when a move taken from board.legal_moves cannot be pushed, or when
    board.pop() does not undo the move that was just pushed. Either means the
    scratch board no longer matches the tree being searched, so the result of
    the search cannot be trusted and the error is propagated to the caller.
    """


class SearchResult(NamedTuple):
    """
    Outcome of one search.

    Fields:
        move:  Chosen move, or None when the position has no legal moves
               (checkmate or stalemate).
        score: Centipawn score of the chosen move, positive favors White.
               Always 0 for Beginner (random) moves.
        depth: Depth in plies that was searched (0 for random moves).
        nodes: Number of positions visited by minimax().
    """

    move: chess.Move | None
    score: int
    depth: int
    nodes: int


@dataclass
class SearchState:
    """
    Per-search settings and counters.

    Attributes:
        evaluator:  Leaf evaluation function returning an absolute score.
        prune:      Cut off branches once beta <= alpha. Disabling it turns
                    the search into plain minimax, with the same result and
                    more nodes.
        node_count: Number of minimax() calls made so far.
    """

    evaluator: Callable[[chess.Board], int] = evaluate
    prune: bool = True
    node_count: int = 0


def _order_moves(board: chess.Board, moves: Iterable[chess.Move]) -> list[chess.Move]:
    """
    Order moves for better alpha-beta pruning using MVV-LVA for captures.

    Captures of valuable pieces are searched first, and among captures of the
    same victim the cheaper attacker goes first. Quiet moves follow in their
    original order.

    Score formula:
        captures: 10_000 + 10 * victim_value - attacker_piece_type
        quiet moves: 0

    Args:
        board: The current board position (used to look up piece types).
        moves: Legal moves to order.

    Returns:
        List of moves sorted from highest to lowest score.
    """
    def _mvv_lva_score(move: chess.Move) -> int:
        if not board.is_capture(move):
            return 0
        attacker = board.piece_at(move.from_square)
        victim = board.piece_at(move.to_square)
        # En passant: the captured pawn is not on move.to_square.
        victim_val = PIECE_VALUES[victim.piece_type] if victim else PIECE_VALUES[chess.PAWN]
        attacker_rank = attacker.piece_type if attacker else 0
        return 10_000 + 10 * victim_val - attacker_rank

    return sorted(moves, key=_mvv_lva_score, reverse=True)


def _make(board: chess.Board, move: chess.Move) -> None:
    try:
        board.push(move)
    except Exception as exc:
        raise SearchInvariantError(f"rules engine rejected move {move}") from exc


def _unmake(board: chess.Board, move: chess.Move) -> None:
    try:
        undone = board.pop()
    except IndexError as exc:
        raise SearchInvariantError(f"move stack empty while undoing {move}") from exc
    if undone != move:
        raise SearchInvariantError(f"undid {undone} while expecting {move}")


def _terminal_score(board: chess.Board, ply: int) -> int | None:
    """
    Score a finished game, or return None if the game goes on.

    A mate found closer to the root is worth more than a distant one, so the
    engine plays the fastest mate and delays being mated.
    """
    if board.is_checkmate():
        mate = CHECKMATE_SCORE - ply
        return -mate if board.turn == chess.WHITE else mate
    if board.is_stalemate() or board.is_insufficient_material():
        return DRAW_SCORE
    return None


def minimax(
    board: chess.Board,
    depth: int,
    alpha: int,
    beta: int,
    maximizing: bool,
    state: SearchState,
    ply: int = 0,
) -> int:
    """
    Minimax search with alpha-beta pruning.

    The maximizing player (White) picks the child with the highest score and
    the minimizing player (Black) the child with the lowest. Alpha is the best
    score the maximizer is already guaranteed elsewhere in the tree, beta the
    best score the minimizer is guaranteed. Once beta <= alpha the remaining
    siblings cannot change the result and are skipped.

    Args:
        board:      Current position. Modified in place via push/pop and
                    always restored before returning.
        depth:      Remaining depth in plies. At 0 the position is scored by
                    state.evaluator.
        alpha:      Lower bound of the search window.
        beta:       Upper bound of the search window.
        maximizing: True when the side to move is White.
        state:      Evaluator, pruning switch and node counter.
        ply:        Distance from the root, used to rank mates by distance.

    Returns:
        Absolute centipawn score of the position. Checkmate returns
        -(CHECKMATE_SCORE - ply) when White is mated and
        +(CHECKMATE_SCORE - ply) when Black is mated, at any depth.
        Stalemate and insufficient material return DRAW_SCORE.

    Raises:
        SearchInvariantError: The rules engine failed to make or unmake a
            move it had listed as legal.
    """
    state.node_count += 1

    terminal = _terminal_score(board, ply)
    if terminal is not None:
        return terminal

    if depth <= 0:
        return state.evaluator(board)

    if maximizing:
        best = -INF
        for move in _order_moves(board, board.legal_moves):
            _make(board, move)
            score = minimax(board, depth - 1, alpha, beta, False, state, ply + 1)
            _unmake(board, move)

            best = max(best, score)
            alpha = max(alpha, best)
            if state.prune and beta <= alpha:
                break
        return best

    best = INF
    for move in _order_moves(board, board.legal_moves):
        _make(board, move)
        score = minimax(board, depth - 1, alpha, beta, True, state, ply + 1)
        _unmake(board, move)

        best = min(best, score)
        beta = min(beta, best)
        if state.prune and beta <= alpha:
            break
    return best


def get_best_move(
    board: chess.Board,
    difficulty: Difficulty | str = DEFAULT_DIFFICULTY,
    *,
    depth: int | None = None,
    rng: random.Random | None = None,
    evaluator: Callable[[chess.Board], int] = evaluate,
    prune: bool = True,
) -> SearchResult:
    """
    Return the best move for the side to move at the given difficulty.

    This is the stable interface called by the UCI handler and the web API.

    Args:
        board:      The current position. Not modified.
        difficulty: A Difficulty member or its name ("Beginner", "Easy",
                    "Hard", "Master", case-insensitive).
        depth:      Search depth in plies, overriding the difficulty's depth.
                    0 selects a random move.
        rng:        Random source for depth 0. Defaults to the `random`
                    module.
        evaluator:  Leaf evaluation function (absolute scores).
        prune:      Use alpha-beta cutoffs. Only tests turn this off.

    Returns:
        SearchResult(move, score, depth, nodes). move is None when the side
        to move has no legal moves.

    Raises:
        UnknownDifficultyError: difficulty is not a known level.
        ValueError: depth is negative.
        SearchInvariantError: The rules engine contradicted itself.
    """
    level = Difficulty.parse(difficulty)
    search_depth = level.depth if depth is None else depth
    if search_depth < 0:
        raise ValueError(f"search depth must be >= 0, got {search_depth}")

    moves = list(board.legal_moves)
    if not moves:
        _log.debug("no legal moves, nothing to search")
        return SearchResult(None, 0, 0, 0)

    if search_depth == 0:
        chooser = rng if rng is not None else random
        return SearchResult(chooser.choice(moves), 0, 0, 0)

    scratch = board.copy()
    state = SearchState(evaluator=evaluator, prune=prune)
    maximizing = scratch.turn == chess.WHITE

    alpha, beta = -INF, INF
    best_move: chess.Move | None = None
    best_score = -INF if maximizing else INF

    for move in _order_moves(scratch, moves):
        _make(scratch, move)
        score = minimax(scratch, search_depth - 1, alpha, beta, not maximizing, state, ply=1)
        _unmake(scratch, move)

        # Strict comparison: the first move reaching the best score is kept.
        if maximizing:
            if score > best_score:
                best_score = score
                best_move = move
            if prune:
                alpha = max(alpha, best_score)
        else:
            if score < best_score:
                best_score = score
                best_move = move
            if prune:
                beta = min(beta, best_score)

    if best_move is None:
        raise SearchInvariantError("root search finished without a move")

    _log.debug(
        "difficulty=%s depth=%d move=%s score=%d nodes=%d",
        level.value,
        search_depth,
        best_move,
        best_score,
        state.node_count,
    )
    return SearchResult(best_move, best_score, search_depth, state.node_count)


def select_move(
    board: chess.Board,
    difficulty: Difficulty | str,
    *,
    rng: random.Random | None = None,
) -> chess.Move | None:
    """
    Choose the automated player's move, or None if there is no legal move.

    Callers should check board.is_game_over() first; a None result means the
    side to move is checkmated or stalemated.
    """
    return get_best_move(board, difficulty, rng=rng).move
