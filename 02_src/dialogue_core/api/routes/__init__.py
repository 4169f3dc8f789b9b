"""API routes."""

from . import control, dialogue, observability

__all__ = ["control", "dialogue", "observability"]
