"""Command implementations for lmchat."""

from . import ask, chat, models

__all__ = ["ask", "chat", "models"]
