# chatpulse/platforms/twitch/relay.py
import logging
import twitchio
from twitchio.ext import commands

from chatpulse.engine.lifecycle import ChannelLifecycle
from chatpulse.platforms.base import ListenerSource

log = logging.getLogger(__name__)


def chat_message_node(payload: twitchio.ChatMessage) -> dict:
    """Flattens an EventSub chat message into the raw-node shape TwitchAdapter reads."""
    return {
        "data-a-user": payload.chatter.display_name or payload.chatter.name,
        "text": payload.text,
    }


class ChatRelay(commands.Component):
    """Feeds live Twitch chat into the monitor and answers !pulse."""

    def __init__(self, source: ListenerSource, lifecycle: ChannelLifecycle, bot_id: str | None):
        self.source = source
        self.lifecycle = lifecycle
        self.bot_id = bot_id

    @commands.Component.listener()
    async def event_message(self, payload: twitchio.ChatMessage) -> None:
        self._relay(payload)

    def _relay(self, payload: twitchio.ChatMessage) -> None:
        if payload.chatter.id == self.bot_id:
            return
        self.source.push(chat_message_node(payload))

    @commands.command(name="pulse")
    async def pulse(self, ctx: commands.Context) -> None:
        """!pulse: current chat activity."""
        snap = self.lifecycle.snapshot()
        log.debug("!pulse requested by %s", ctx.chatter.name)
        if snap.channel_name is None:
            await ctx.reply("Not monitoring right now.")
            return
        await ctx.reply(
            f"📈 {snap.messages_per_minute} msg/min · {snap.messages_per_second} msg/s · "
            f"{snap.unique_chatters} chatters ({snap.total_messages} msgs this session)"
        )
