"""Entrypoint for the Aether bot webhook server."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from pathlib import Path

import faulthandler
from aiohttp import web

from bot_core.bot import AetherBot
from utils.config import BotSettings, load_settings
from utils.logging_utils import configure_logging

faulthandler.enable()


async def main(settings: BotSettings) -> None:
    """Serve the webhook until cancelled."""

    bot = AetherBot(settings)
    runner = web.AppRunner(bot.create_app())
    await runner.setup()
    site = web.TCPSite(runner, settings.webhook_host, settings.webhook_port)
    await site.start()
    logging.getLogger(__name__).info(
        "Listening for Telegram updates on %s:%s%s",
        settings.webhook_host,
        settings.webhook_port,
        settings.webhook_path,
    )
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def _bootstrap() -> None:
    """Load configuration, configure logging and start the asyncio loop."""

    project_root = Path(__file__).parent
    settings = load_settings()

    log_dir = project_root / "logs"
    configure_logging(log_dir, level=settings.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Aether bot starting up")
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Aether bot interrupted by user")
    except Exception:  # pragma: no cover - safety net
        logger.exception("Aether bot stopped due to an unexpected error")
        raise
    finally:
        # Ensure logging handlers flush buffers before the interpreter exits.
        for handler in logging.getLogger().handlers:
            with suppress(Exception):
                handler.flush()


if __name__ == "__main__":
    _bootstrap()
