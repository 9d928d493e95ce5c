"""
Static position evaluation: material plus piece-square tables.

A chess engine needs to assign a numeric score to any board position so the
search can compare the positions its candidate moves lead to. This module
scores a position by counting material and adding a small positional bonus
for each piece according to the piece-square tables (PSTs) in
engine.constants.

The score is absolute, not relative to the side to move: positive favors
White, negative favors Black. The search decides which side maximizes, so the
evaluator never looks at board.turn.

Evaluation is deterministic. The same position always yields the same score,
which alpha-beta pruning relies on when it discards branches.
"""

import chess

from engine.constants import PIECE_VALUES, PST


def _table_bonus(piece: chess.Piece, square: chess.Square) -> int:
    """Positional bonus for one piece, read from White's point of view."""
    table = PST[piece.piece_type]
    rank = chess.square_rank(square)
    file = chess.square_file(square)
    # Tables are printed with rank 8 on row 0, so White reads them upside
    # down and Black reads them as written.
    row = 7 - rank if piece.color == chess.WHITE else rank
    return table[row][file]


def score_terms(board: chess.Board) -> tuple[int, int]:
    """
    Material and piece-square balances in one walk over the board.

    Args:
        board: The position to score. Not modified.

    Returns:
        (material, positional), both in centipawns, White minus Black.
        Kings are included in material and cancel each other out.
    """
    mat = 0
    pos = 0
    for sq in chess.SQUARES:
        piece = board.piece_at(sq)
        if piece is None:
            continue

        value = PIECE_VALUES[piece.piece_type]
        bonus = _table_bonus(piece, sq)

        if piece.color == chess.WHITE:
            mat += value
            pos += bonus
        else:
            mat -= value
            pos -= bonus

    return mat, pos


def material(board: chess.Board) -> int:
    """Material balance in centipawns (White minus Black)."""
    return score_terms(board)[0]


def positional(board: chess.Board) -> int:
    """Piece-square table balance in centipawns (White minus Black)."""
    return score_terms(board)[1]


def evaluate(board: chess.Board, *, positional_term: bool = True) -> int:
    """
    Centipawn evaluation of a position, positive when White is better.

    Args:
        board:           The position to score. Not modified. Terminal
                         positions are scored like any other; recognizing
                         checkmate is the search's job.
        positional_term: Include the piece-square bonuses. When False the
                         result equals material(board).

    Returns:
        Absolute centipawn score.

    Example:
        >>> import chess
        >>> evaluate(chess.Board())  # the starting position is symmetric
        0
    """
    mat, pos = score_terms(board)
    return mat + pos if positional_term else mat
