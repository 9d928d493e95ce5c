"""
Chess AI engine package.

This package picks a move for an automated player using minimax search with
alpha-beta pruning over a material + piece-square-table evaluation. Move
generation, check detection and FEN handling are delegated to python-chess.

Modules:
    constants  — Piece values, PST arrays, special scores, difficulty depths
    difficulty — Difficulty levels and the difficulty-to-depth policy
    evaluate   — Static position evaluation (material + piece-square tables)
    search     — Minimax search with alpha-beta pruning, move selection
"""
