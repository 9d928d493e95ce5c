"""
Web application package for the Chess AI engine.

Provides a FastAPI-based REST API that a browser board UI calls to get the
automated player's move at a chosen difficulty.
"""
