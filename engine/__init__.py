"""
Chess engine package.

This package evaluates positions with a small hand-crafted heuristic and
picks moves with a shallow, difficulty-tunable negamax search.

Modules:
    constants  - Piece values, heuristic weights, and search parameters
    errors     - Error taxonomy shared by every layer
    models     - Immutable Position, Evaluation, MoveInfo, AnalysisResult
    evaluate   - Static evaluation (material, center, king safety, mobility)
    search     - Truncated negamax, iterative deepening, time management
    difficulty - Difficulty tiers and bot move selection
    analysis   - Full position analysis for API clients
"""
