from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from .bot import BotController, BotStateError
from .errors import message_error


logger = logging.getLogger("customfeeds.bot.routes")

router = APIRouter(prefix="/api/bot", tags=["bot"])


def get_bot(request: Request) -> BotController:
    return request.app.state.bot


def _snapshot(bot: BotController) -> Dict[str, Any]:
    return {"status": bot.get_status(), "stats": bot.get_stats().to_dict()}


def _lifecycle(bot: BotController, action: str) -> Any:
    try:
        if action == "start":
            bot.start()
        else:
            bot.stop()
    except BotStateError as exc:
        logger.warning("Bot %s rejected: %s", action, exc)
        return message_error(str(exc), status_code=409, success=False, status=bot.get_status())
    except Exception as exc:
        logger.exception("Error during bot %s", action)
        return message_error(str(exc) or "Unknown error", status_code=500, success=False, status=bot.get_status())

    verb = "started" if action == "start" else "stopped"
    return {"success": True, "message": f"Bot {verb} successfully", **_snapshot(bot)}


@router.post("/start")
def start_bot(bot: BotController = Depends(get_bot)):
    return _lifecycle(bot, "start")


@router.post("/stop")
def stop_bot(bot: BotController = Depends(get_bot)):
    return _lifecycle(bot, "stop")


@router.get("/status")
def read_status(bot: BotController = Depends(get_bot)):
    return _snapshot(bot)


@router.get("/stats")
def read_stats(bot: BotController = Depends(get_bot)):
    return bot.get_stats().to_dict()


@router.get("/logs")
def read_logs(
    limit: Optional[int] = Query(default=None, ge=0),
    bot: BotController = Depends(get_bot),
):
    return {"logs": [entry.to_dict() for entry in bot.get_logs(limit)]}
