"""
Interface package: adapters for the collaborators the engine relies on.

Modules:
    rules      - Rules oracle adapter over python-chess: FEN loading, move
                 parsing and legality, terminal status.
    recognizer - Position recognizer contract plus a stand-in that picks
                 from a catalog of well-known openings.
"""
