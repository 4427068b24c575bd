# chatpulse/core/clients/twitch.py
import aiohttp
import logging

from chatpulse.core.config import settings

log = logging.getLogger(__name__)


class TwitchClient:
    """
    A reusable async client for the Twitch Helix API.
    Handles automatic App Access Token generation and stream polling.
    """

    def __init__(self, client_id: str | None = None, client_secret: str | None = None):
        self.client_id = client_id or settings.TWITCH_CLIENT_ID
        self.client_secret = client_secret or settings.TWITCH_CLIENT_SECRET
        self.app_token = None

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def _get_app_token(self) -> str | None:
        """Fetches a new App Access Token from Twitch."""
        url = "https://id.twitch.tv/oauth2/token"
        params = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "client_credentials",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(url, params=params) as response:
                    if response.status == 200:
                        data = await response.json()
                        self.app_token = data.get("access_token")
                        log.info("Successfully acquired Twitch App Access Token.")
                        return self.app_token
                    log.error(
                        f"Failed to get Twitch token: {response.status} - {await response.text()}"
                    )
                    return None
        except Exception as e:
            log.error("Exception while fetching Twitch token", exc_info=e)
            return None

    async def get_stream_status(self, username: str) -> dict | None:
        """
        Checks if a user is live.
        Returns the stream data dict if live, or None if offline/error.
        """
        if not self.configured:
            return None

        if not self.app_token:
            await self._get_app_token()

        if not self.app_token:
            return None

        url = "https://api.twitch.tv/helix/streams"
        params = {"user_login": username}
        headers = {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {self.app_token}",
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(url, params=params, headers=headers) as response:
                    # Token expired: refresh once and retry
                    if response.status == 401:
                        log.warning("Twitch token expired. Refreshing...")
                        await self._get_app_token()
                        headers["Authorization"] = f"Bearer {self.app_token}"
                        async with session.get(url, params=params, headers=headers) as retry_response:
                            if retry_response.status == 200:
                                data = await retry_response.json()
                            else:
                                return None
                    elif response.status == 200:
                        data = await response.json()
                    else:
                        log.error(f"Twitch API Error: {response.status}")
                        return None

            if data and data.get("data"):
                return data["data"][0]

            return None  # offline

        except Exception as e:
            log.error("Exception while checking Twitch stream status", exc_info=e)
            return None

    async def get_viewer_count(self, username: str) -> int:
        """Live viewer count for a channel, or 0 when offline or unknown."""
        stream = await self.get_stream_status(username)
        if not stream:
            return 0
        return int(stream.get("viewer_count") or 0)
