"""Request/response logging middleware for the webhook server."""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Optional

from aiohttp import web

from bot_core.types import IncomingMessage
from utils.config import BotSettings


ERROR_RESPONSE = {"error": "Error processing request"}
REDACTED = "<redacted>"


def log_incoming(message: IncomingMessage, settings: Optional[BotSettings] = None) -> None:
    """Log one decoded update with structured metadata.

    The admin phrase unlocks the submissions report, so it is never logged.
    """

    text = message.text
    if settings is not None and settings.matches_admin_phrase(text):
        text = REDACTED
    logging.getLogger("middleware.logging").info(
        "incoming message",
        extra={
            "chat_id": message.chat.id,
            "chat_type": message.chat.kind.value,
            "user_id": message.sender.id,
            "message_id": message.id,
            "text": text,
        },
    )


@web.middleware
async def logging_middleware(
    request: web.Request,
    handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
) -> web.StreamResponse:
    """Log each request and turn unexpected failures into a JSON 500."""

    logger = logging.getLogger("middleware.logging")
    started = time.monotonic()
    try:
        response = await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception(
            "handler raised exception",
            extra={"method": request.method, "path": request.path},
        )
        return web.json_response(ERROR_RESPONSE, status=500)

    logger.debug(
        "handler completed",
        extra={
            "method": request.method,
            "path": request.path,
            "status": response.status,
            "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
        },
    )
    return response


def setup_middlewares(app: web.Application) -> None:
    """Register the logging middleware on the application."""

    app.middlewares.append(logging_middleware)
