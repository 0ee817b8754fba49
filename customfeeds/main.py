import logging
import os

import uvicorn

from .settings import bool_env


logger = logging.getLogger("customfeeds.main")


def start() -> None:
    """Start the console API server."""
    host = os.getenv("HOST", "0.0.0.0")  # noqa: S104
    port = int(os.getenv("PORT", "8000") or "8000")
    logger.info("Starting server on %s:%s", host, port)
    uvicorn.run("customfeeds.app:app", host=host, port=port, reload=bool_env("UVICORN_RELOAD"))


if __name__ == "__main__":
    start()
