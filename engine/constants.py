"""
Engine constants: piece values, heuristic weights, and search parameters.

All numeric constants used throughout the engine are defined here so that
the evaluation and search modules never need to introduce their own magic
numbers. The heuristic weights (center, development, king safety, mobility, noise) are
configuration defaults with no derivation behind them; they are tuned for
casual play, not for engine strength.

Piece values follow the standard centipawn convention (1 pawn = 100 cp).
"""

import chess

# ---------------------------------------------------------------------------
# Piece values (centipawns)
# ---------------------------------------------------------------------------
# Bishops are slightly stronger than knights in open positions (330 vs 320).
# The king has no material value: it is never traded.

PAWN_VALUE: int = 100
KNIGHT_VALUE: int = 320
BISHOP_VALUE: int = 330
ROOK_VALUE: int = 500
QUEEN_VALUE: int = 900
KING_VALUE: int = 0

# Mapping from python-chess piece type constants to centipawn values.
# Used by the material sub-score and by MVV-LVA move ordering.
PIECE_VALUES: dict[int, int] = {
    chess.PAWN:   PAWN_VALUE,
    chess.KNIGHT: KNIGHT_VALUE,
    chess.BISHOP: BISHOP_VALUE,
    chess.ROOK:   ROOK_VALUE,
    chess.QUEEN:  QUEEN_VALUE,
    chess.KING:   KING_VALUE,
}

# ---------------------------------------------------------------------------
# Positional heuristics
# ---------------------------------------------------------------------------

# The four central squares and the bonus for occupying one of them.
CENTER_SQUARES: tuple[int, ...] = (chess.D4, chess.E4, chess.D5, chess.E5)
CENTER_BONUS: int = 20

# Penalty per enemy piece attacking a king's square.
KING_ATTACKER_PENALTY: int = 15

# Centipawns per legal move of difference between the two sides.
MOBILITY_WEIGHT: int = 2

# Bonus per knight or bishop standing on one of its side's development
# squares. Also ranks quiet moves for the search.
DEVELOPMENT_BONUS: int = 10
WHITE_DEVELOPMENT_SQUARES: tuple[int, ...] = (
    chess.C3, chess.D2, chess.E2, chess.F3, chess.G3,
    chess.C4, chess.D3, chess.E3, chess.F4, chess.G4,
)
BLACK_DEVELOPMENT_SQUARES: tuple[int, ...] = tuple(
    chess.square_mirror(sq) for sq in WHITE_DEVELOPMENT_SQUARES
)
DEVELOPING_PIECES: tuple[int, ...] = (chess.KNIGHT, chess.BISHOP)

# Evaluation noise: at most +/- NOISE_AMPLITUDE / 2 cp at depth 0, fading
# linearly to nothing at NOISE_DEPTH_HORIZON plies.
NOISE_AMPLITUDE: int = 100
NOISE_DEPTH_HORIZON: int = 20

# ---------------------------------------------------------------------------
# Special scores
# ---------------------------------------------------------------------------
# Mate scores are encoded as CHECKMATE_SCORE - ply so shorter mates score
# higher. Anything beyond MATE_THRESHOLD is a proven mate, not material.

CHECKMATE_SCORE: int = 99_999
MATE_THRESHOLD: int = CHECKMATE_SCORE - 1_000
DRAW_SCORE: int = 0

# ---------------------------------------------------------------------------
# Search parameters
# ---------------------------------------------------------------------------
# MAX_SEARCH_PLY caps the negamax depth whatever the caller requests.
# SEARCH_BRANCH_CAP truncates every ply below the root to the first few
# ordered moves; the root itself is always searched full-width, and so is
# any node whose capped moves all get mated.
MAX_SEARCH_PLY: int = 4
SEARCH_BRANCH_CAP: int = 4

# Length cap of the principal variation reported with a search result.
PV_MAX_LENGTH: int = 3

# How often (in nodes) the search checks the clock. Each node runs a full
# evaluation with legal-move generation, so this is far lower than a
# classical engine would use.
TIME_CHECK_NODES: int = 32

# How much of the allocated time budget the search is allowed to consume.
TIME_USAGE_FRACTION: float = 0.9

# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

DEFAULT_ANALYSIS_DEPTH: int = 15
MAX_ANALYSIS_DEPTH: int = 20

# Confidence (percent) reported with an analysis: BASE + depth, capped at
# MAX, minus a penalty per ply the search could not complete, floored at MIN.
CONFIDENCE_BASE: int = 85
CONFIDENCE_MAX: int = 98
CONFIDENCE_MIN: int = 70
CONFIDENCE_PENALTY_PER_PLY: int = 5
