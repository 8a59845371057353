"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from fastapi import Request

from leap.core.engine import LeapEngine


def get_engine(request: Request) -> LeapEngine:
    """Get the engine attached to the running application.

    The engine is constructed by ``create_app`` and stored on
    ``app.state`` for the lifetime of the process.

    Returns:
        The initialized LeapEngine.

    Raises:
        RuntimeError: If the application has no engine attached.
    """
    engine: LeapEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise RuntimeError("Leap engine not initialized. Is the server running?")
    return engine
