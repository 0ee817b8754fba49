"""Bot lifecycle surface consumed by the dashboard."""

from .service import BotController, BotLogEntry, BotStateError, BotStats, InProcessBotService

__all__ = [
    "BotController",
    "BotLogEntry",
    "BotStateError",
    "BotStats",
    "InProcessBotService",
]
