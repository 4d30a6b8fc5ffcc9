"""
HTTP front door.

Routes:
    GET  /ping  -> 200 "pong"
    POST /sync  -> 200 (accepted), 422 (malformed body), 500 "Unknown bucket"

The app owns one client session shared by both lanes. On shutdown it
waits for in-flight lane tasks before closing the session.
"""

import logging
from typing import Optional

import aiohttp
from aiohttp import web
from pydantic import ValidationError

from core.download.http_client import create_session
from core.logging.utilities import log_with_context
from s6_agent import metrics
from s6_agent.classifier import ProcessingLane
from s6_agent.config import AgentConfig
from s6_agent.dispatcher import Dispatcher, Rejected
from s6_agent.materializer import Materializer
from s6_agent.schemas.file_ref import FileRef
from s6_agent.warmer import CacheWarmer

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", AgentConfig)
DISPATCHER_KEY = web.AppKey("dispatcher", Dispatcher)
SESSION_KEY = web.AppKey("session", aiohttp.ClientSession)

UNKNOWN_BUCKET_MESSAGE = "Unknown bucket"


async def ping(request: web.Request) -> web.Response:
    return web.Response(text="pong")


async def sync(request: web.Request) -> web.Response:
    """Accept a file reference for background processing."""
    body = await request.read()

    try:
        ref = FileRef.model_validate_json(body)
    except ValidationError as e:
        metrics.record_sync_request(ProcessingLane.UNKNOWN.value, "invalid")
        log_with_context(
            logger,
            logging.INFO,
            "Rejected malformed sync request",
            error_message=str(e).splitlines()[0],
        )
        return web.Response(status=422)

    result = request.app[DISPATCHER_KEY].handle(ref)
    if isinstance(result, Rejected):
        return web.Response(status=500, text=UNKNOWN_BUCKET_MESSAGE)

    return web.Response(status=200)


def create_app(
    config: AgentConfig,
    session: Optional[aiohttp.ClientSession] = None,
    drain_timeout: Optional[float] = None,
) -> web.Application:
    """
    Build the agent application.

    Args:
        config: Validated agent configuration
        session: Client session for outbound requests (None = created on
            startup and closed on cleanup)
        drain_timeout: Seconds to wait for lane tasks on shutdown
            (None = wait until they finish)

    Returns:
        aiohttp Application ready for web.run_app or a test server
    """
    app = web.Application()
    app[CONFIG_KEY] = config

    async def on_startup(app: web.Application) -> None:
        client = session or create_session(timeout=config.download.timeout_seconds)
        app[SESSION_KEY] = client
        app[DISPATCHER_KEY] = Dispatcher(
            config,
            materializer=Materializer(config, session=client),
            warmer=CacheWarmer(config.thumbor, session=client),
        )
        log_with_context(
            logger,
            logging.INFO,
            "Agent started",
            http_address=config.http_address,
        )

    async def on_shutdown(app: web.Application) -> None:
        dispatcher = app[DISPATCHER_KEY]
        if dispatcher.in_flight:
            log_with_context(
                logger,
                logging.INFO,
                "Waiting for lane tasks",
                in_flight=dispatcher.in_flight,
            )
        await dispatcher.drain(timeout=drain_timeout)

    async def on_cleanup(app: web.Application) -> None:
        if session is None:
            await app[SESSION_KEY].close()

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    app.on_cleanup.append(on_cleanup)

    app.router.add_get("/ping", ping)
    app.router.add_post("/sync", sync)

    return app
