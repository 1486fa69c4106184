"""
Web application package for ChessVision.

Provides the FastAPI REST API (analysis, games against the bot, user
statistics) under the ``/api`` prefix, its request/response models, and
environment-driven settings.
"""
