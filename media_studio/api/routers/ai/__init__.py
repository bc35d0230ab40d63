"""
AI router package.

Exports the router for the single generation endpoint.
"""

from .ai_router import router

__all__ = ["router"]
