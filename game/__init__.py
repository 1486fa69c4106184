"""
Game package: sessions against the bot, ratings, and storage.

Modules:
    shared_types - Enums shared with the web layer (color, status, result)
    session      - Immutable game sessions and their state machine
    rating       - User statistics and the fixed-delta rating updater
    store        - SessionStore protocol and the in-memory implementation
    service      - ChessService, the entry point used by the HTTP layer
"""
