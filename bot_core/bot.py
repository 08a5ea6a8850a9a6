"""Core bot orchestration logic."""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from aiohttp import web

from bot_core.dependency_injector import DependencyContainer
from bot_core.dispatcher import CommandRouter
from bot_core.interfaces import DatastoreClient, MessagingClient
from bot_core.module_loader import ModuleLoader
from bot_core.registry import CommandRegistry
from bot_core.types import IncomingMessage
from clients.airtable import AirtableClient
from clients.telegram import TelegramGateway, create_bot
from middleware.logging_middleware import log_incoming, setup_middlewares
from modules.events.storage import EventStorage
from modules.moderation.permission_check import PrivilegeResolver
from modules.submissions.storage import SubmissionStorage
from modules.verification.storage import MemberStorage
from utils.config import BotSettings


SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"
OK_RESPONSE = {"status": "ok"}
NOT_CONFIGURED_RESPONSE = {"error": "Bot not configured."}


class AetherBot:
    """Wires settings, clients, storages and feature modules into a webhook app.

    ``messenger`` and ``datastore`` default to the Telegram and Airtable
    clients built from ``settings``; tests pass in-memory fakes instead.
    Without a bot token nothing is wired and the webhook answers 500.
    """

    def __init__(
        self,
        settings: BotSettings,
        *,
        messenger: Optional[MessagingClient] = None,
        datastore: Optional[DatastoreClient] = None,
    ) -> None:
        logging.debug("Initialising AetherBot components")
        self.settings = settings
        self.router: Optional[CommandRouter] = None
        self.module_loader: Optional[ModuleLoader] = None

        if not settings.bot_token and messenger is None:
            logging.error("TELEGRAM_BOT_TOKEN is not set; webhook will reject updates")
            self.messenger = None
            self.datastore = datastore
            return

        self.messenger = messenger or TelegramGateway(create_bot(settings))
        self.datastore = datastore or AirtableClient(
            settings.airtable_api_key,
            settings.airtable_base_id,
            timeout=settings.request_timeout,
        )

        self.container = DependencyContainer()
        self.registry = CommandRegistry()
        self.resolver = PrivilegeResolver(self.messenger, settings)

        self.container.register("settings", settings)
        self.container.register("messenger", self.messenger)
        self.container.register("datastore", self.datastore)
        self.container.register("privilege_resolver", self.resolver)
        self.container.register("event_storage", EventStorage(self.datastore, settings.events_table_id))
        self.container.register(
            "submission_storage", SubmissionStorage(self.datastore, settings.submissions_table_id)
        )
        self.container.register("member_storage", MemberStorage(self.datastore, settings.members_table_id))

        self.module_loader = ModuleLoader(self.registry, self.container)
        self.module_loader.load_all_modules()
        self.router = CommandRouter(self.registry, self.messenger, self.resolver, settings)
        logging.info("AetherBot ready with %s command handler(s)", len(self.registry))

    @property
    def configured(self) -> bool:
        return self.router is not None

    async def handle_update(self, request: web.Request) -> web.Response:
        """POST handler for Telegram webhook deliveries."""

        if not self.configured:
            return web.json_response(NOT_CONFIGURED_RESPONSE, status=500)

        secret = self.settings.webhook_secret
        provided = request.headers.get(SECRET_HEADER, "")
        if secret and not hmac.compare_digest(provided.encode(), secret.encode()):
            logging.warning("Rejected webhook call with a missing or wrong secret token")
            return web.json_response({"error": "Forbidden"}, status=403)

        try:
            payload = await request.json()
            message = IncomingMessage.from_update(payload)
        except (ValueError, TypeError) as exc:
            # acknowledge anyway so Telegram does not redeliver it forever
            logging.warning("Ignoring undecodable update: %s", exc)
            return web.json_response(OK_RESPONSE)

        if message is None:
            logging.debug("Update carries no message; acknowledged")
            return web.json_response(OK_RESPONSE)

        log_incoming(message, self.settings)
        await self.router.handle(message)
        return web.json_response(OK_RESPONSE)

    async def handle_health(self, _: web.Request) -> web.Response:
        return web.json_response({"ok": True, "configured": self.configured})

    async def on_startup(self, _: web.Application) -> None:
        if self.configured and self.settings.webhook_url and isinstance(self.messenger, TelegramGateway):
            url = self.settings.webhook_url.rstrip("/") + self.settings.webhook_path
            await self.messenger.register_webhook(url, self.settings.webhook_secret)

    async def on_cleanup(self, _: web.Application) -> None:
        logging.info("Shutting down AetherBot")
        if self.module_loader is not None:
            await self.module_loader.shutdown()
        for client in (self.messenger, self.datastore):
            close = getattr(client, "close", None)
            if close is not None:
                await close()

    def create_app(self) -> web.Application:
        app = web.Application()
        setup_middlewares(app)
        app.router.add_post(self.settings.webhook_path, self.handle_update)
        app.router.add_get("/healthz", self.handle_health)
        app.on_startup.append(self.on_startup)
        app.on_cleanup.append(self.on_cleanup)
        return app
