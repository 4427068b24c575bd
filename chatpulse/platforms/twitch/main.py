# chatpulse/platforms/twitch/main.py
import logging
import twitchio
from twitchio import eventsub
from twitchio.ext import commands

import sentry_sdk
from chatpulse.core.config import settings
from chatpulse.core.logger import setup_logging
from chatpulse.core.db import create_tables
from chatpulse.core.history import SqlHistoryStore
from chatpulse.core.events import MonitorSettings
from chatpulse.core.clients.twitch import TwitchClient
from chatpulse.core.constants import TwitchConfig
from chatpulse.engine.lifecycle import ChannelLifecycle
from chatpulse.platforms.base import ListenerSource, PageSnapshot
from chatpulse.platforms.twitch.adapter import TwitchAdapter
from chatpulse.platforms.twitch.relay import ChatRelay

if settings.SENTRY_DSN:
    sentry_sdk.init(dsn=settings.SENTRY_DSN)

setup_logging(webhook_url=settings.LOGS_WEBHOOK_URL, app_name="twitch")
log = logging.getLogger(__name__)


class TwitchMonitorBot(commands.Bot):
    def __init__(self):
        super().__init__(
            client_id=settings.TWITCH_CLIENT_ID,
            client_secret=settings.TWITCH_CLIENT_SECRET,
            bot_id=settings.TWITCH_BOT_ID,
            owner_id=settings.TWITCH_OWNER_ID,
            prefix="!",
        )
        self.chat_source = ListenerSource("twitch-eventsub")
        self.twitch_client = TwitchClient()
        self.lifecycle = ChannelLifecycle(
            SqlHistoryStore(limit=settings.HISTORY_LIMIT),
            settings=MonitorSettings.from_settings(settings),
            sample_interval=settings.SAMPLE_INTERVAL_SECONDS,
            persist_timeout=settings.PERSIST_TIMEOUT_SECONDS,
        )

    async def setup_hook(self) -> None:
        await create_tables()
        await self.add_component(ChatRelay(self.chat_source, self.lifecycle, settings.TWITCH_BOT_ID))

        # On first run this fails gracefully; auth happens via event_oauth_authorized.
        try:
            await self._subscribe_chat()
            log.info("Subscribed to chat messages via WebSocket.")
        except Exception as e:
            log.warning(
                "Could not subscribe to chat on startup (no saved token?): %s. "
                "Visit http://localhost:4343/oauth to authorize.",
                e,
            )

    async def _subscribe_chat(self) -> None:
        chat_sub = eventsub.ChatMessageSubscription(
            broadcaster_user_id=settings.TWITCH_OWNER_ID,
            user_id=settings.TWITCH_BOT_ID,
        )
        await self.subscribe_websocket(payload=chat_sub)

    async def event_ready(self) -> None:
        log.info("-" * 40)
        log.info("Chat monitor is ONLINE for channel: %s", settings.TWITCH_CHANNEL)
        log.info("-" * 40)
        adapter = TwitchAdapter(
            PageSnapshot(url=f"{TwitchConfig.BASE_URL}{settings.TWITCH_CHANNEL}"),
            self.chat_source,
            api_client=self.twitch_client if self.twitch_client.configured else None,
        )
        await self.lifecycle.navigate(adapter)

    async def event_oauth_authorized(
        self, payload: twitchio.authentication.UserTokenPayload
    ) -> None:
        """Called on first-time OAuth. Saves the token then subscribes to chat."""
        await self.add_token(payload.access_token, payload.refresh_token)
        log.info("Authorization successful for User ID: %s. Tokens saved.", payload.user_id)
        try:
            await self._subscribe_chat()
            log.info("Subscribed to chat messages after OAuth.")
        except Exception as e:
            log.error("Failed to subscribe to chat after OAuth", exc_info=e)

    async def close(self, **options) -> None:
        await self.lifecycle.shutdown()
        await super().close(**options)


if __name__ == "__main__":
    bot = TwitchMonitorBot()
    bot.run()
