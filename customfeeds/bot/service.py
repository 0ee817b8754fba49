from __future__ import annotations

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Literal, Optional, Protocol


logger = logging.getLogger("customfeeds.bot")

BotStatus = Literal["stopped", "starting", "running", "stopping", "error"]
LogLevel = Literal["debug", "info", "warn", "error"]

_PY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class BotStateError(Exception):
    """Raised when a lifecycle call does not fit the current status."""


@dataclass(frozen=True)
class BotLogEntry:
    timestamp: float
    level: LogLevel
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": _iso(self.timestamp), "level": self.level, "message": self.message}


@dataclass
class BotStats:
    start_time: Optional[float] = None
    total_updates: int = 0
    successful_updates: int = 0
    failed_updates: int = 0
    last_update_time: Optional[float] = None
    uptime_seconds: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": _iso(self.start_time),
            "uptime_seconds": self.uptime_seconds,
            "total_updates": self.total_updates,
            "successful_updates": self.successful_updates,
            "failed_updates": self.failed_updates,
            "last_update_time": _iso(self.last_update_time),
        }


class BotController(Protocol):
    """What the dashboard needs from a feeds bot, whatever runs it."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def get_status(self) -> BotStatus: ...

    def get_stats(self) -> BotStats: ...

    def get_logs(self, limit: Optional[int] = None) -> List[BotLogEntry]: ...


class InProcessBotService:
    """Lifecycle and bookkeeping for a bot running inside this process.

    - `start`/`stop` move through the transitional statuses and reject calls
      that do not apply (already running, already stopped).
    - The attestation workflow reports each feed update with `record_update`
      and fatal failures with `fail`.
    - Logs are kept in a bounded ring, newest last.
    """

    def __init__(self, log_limit: int = 200, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._status: BotStatus = "stopped"
        self._stats = BotStats()
        self._logs: Deque[BotLogEntry] = deque(maxlen=max(int(log_limit), 1))

    def _log(self, level: LogLevel, message: str) -> None:
        self._logs.append(BotLogEntry(timestamp=self._clock(), level=level, message=message))
        logger.log(_PY_LEVELS[level], "bot: %s", message)

    def start(self) -> None:
        with self._lock:
            if self._status in ("starting", "running"):
                raise BotStateError("Bot is already running")
            if self._status == "stopping":
                raise BotStateError("Bot is stopping; try again shortly")
            self._status = "starting"
            self._log("info", "Starting custom feeds bot")
            self._stats = replace(self._stats, start_time=self._clock(), uptime_seconds=0)
            self._status = "running"
            self._log("info", "Bot started")

    def stop(self) -> None:
        with self._lock:
            if self._status == "stopped":
                raise BotStateError("Bot is not running")
            if self._status == "stopping":
                raise BotStateError("Bot is already stopping")
            self._status = "stopping"
            self._log("info", "Stopping custom feeds bot")
            self._stats = replace(self._stats, start_time=None, uptime_seconds=0)
            self._status = "stopped"
            self._log("info", "Bot stopped")

    def fail(self, message: str) -> None:
        with self._lock:
            self._status = "error"
            self._stats = replace(self._stats, start_time=None, uptime_seconds=0)
            self._log("error", message)

    def record_update(self, success: bool, message: Optional[str] = None) -> None:
        with self._lock:
            now = self._clock()
            stats = self._stats
            self._stats = replace(
                stats,
                total_updates=stats.total_updates + 1,
                successful_updates=stats.successful_updates + (1 if success else 0),
                failed_updates=stats.failed_updates + (0 if success else 1),
                last_update_time=now,
            )
            if success:
                self._log("info", message or "Feed update succeeded")
            else:
                self._log("warn", message or "Feed update failed")

    def get_status(self) -> BotStatus:
        return self._status

    def get_stats(self) -> BotStats:
        with self._lock:
            stats = self._stats
            uptime = 0
            if stats.start_time is not None and self._status == "running":
                uptime = max(int(self._clock() - stats.start_time), 0)
            return replace(stats, uptime_seconds=uptime)

    def get_logs(self, limit: Optional[int] = None) -> List[BotLogEntry]:
        with self._lock:
            entries = list(self._logs)
        if limit is not None:
            if limit <= 0:
                return []
            entries = entries[-limit:]
        return entries


__all__ = [
    "BotController",
    "BotLogEntry",
    "BotStateError",
    "BotStats",
    "BotStatus",
    "InProcessBotService",
]
