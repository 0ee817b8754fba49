import logging
import os
from typing import Optional

import httpx
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .bot import BotController, InProcessBotService
from .chains import ChainRegistry, default_registry
from .errors import install_exception_handlers
from .fdc import VerifierClient, build_verifier_table
from .middleware import RequestContextMiddleware
from .routes_bot import router as bot_router
from .routes_chains import router as chains_router
from .routes_fdc import router as fdc_router
from .routes_health import router as health_router
from .settings import Settings


load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("customfeeds")


def create_app(
    settings: Optional[Settings] = None,
    *,
    registry: Optional[ChainRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    bot: Optional[BotController] = None,
) -> FastAPI:
    """Build the console API with its collaborators wired onto `app.state`."""
    settings = settings or Settings.from_env()
    registry = registry or default_registry()
    logger.setLevel(settings.log_level)

    app = FastAPI(title="Custom Feeds Console API", version=__version__)

    app.state.settings = settings
    app.state.chain_registry = registry
    app.state.verifier_client = VerifierClient(
        table=build_verifier_table(registry),
        api_key=settings.verifier_api_key,
        timeout=settings.verifier_timeout,
        transport=transport,
    )
    app.state.bot = bot if bot is not None else InProcessBotService(log_limit=settings.bot_log_limit)

    origins = list(settings.cors_origins)
    allow_credentials = True if origins and origins != ["*"] else False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)

    install_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(chains_router)
    app.include_router(fdc_router)
    app.include_router(bot_router)

    logger.info(
        "Console API ready: %d chains, verifier timeout=%s",
        len(registry),
        settings.verifier_timeout,
    )
    return app


app = create_app()
