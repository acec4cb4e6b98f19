from typing import Dict, Optional

import httpx

from linkick.core.config import settings
from linkick.core.errors import ChannelNotFound, ResolutionBlocked
from linkick.core.http import http_client
from linkick.core.logger import Logger

logger = Logger("ChannelResolver")


class ChannelResolver:
    """Maps a channel slug to its chatroom id.

    The override table is checked first; otherwise one lookup request is made.
    There are no retries.
    """

    def __init__(
        self,
        overrides: Optional[Dict[str, str]] = None,
        lookup_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if overrides is None:
            overrides = settings.channel_overrides_map
        self.overrides = {k.lower(): str(v) for k, v in overrides.items()}
        self.lookup_url = lookup_url or settings.KICK_CHANNEL_URL
        self._transport = transport

    async def resolve(self, slug: str) -> str:
        key = (slug or "").strip().lower()
        if not key:
            raise ChannelNotFound(slug or "", "channel name is empty")

        if key in self.overrides:
            room_id = self.overrides[key]
            logger.info(f"Resolved {key} -> {room_id} (override)")
            return room_id

        url = settings.kick_url(self.lookup_url, slug=key)
        try:
            async with http_client(self._transport) as client:
                resp = await client.get(url)
        except httpx.InvalidURL as e:
            raise ChannelNotFound(key, "channel name does not form a valid lookup URL") from e
        except httpx.HTTPError as e:
            logger.warn(f"Channel lookup for {key} failed: {e}")
            raise ResolutionBlocked(key, f"lookup request failed ({e.__class__.__name__})") from e

        if resp.status_code == 404:
            raise ChannelNotFound(key, "channel does not exist")
        if not resp.is_success:
            logger.warn(f"Channel lookup for {key} returned HTTP {resp.status_code}")
            raise ResolutionBlocked(key, f"lookup refused with HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ChannelNotFound(key, "lookup response is not JSON") from e

        chatroom = data.get("chatroom") if isinstance(data, dict) else None
        room_id = chatroom.get("id") if isinstance(chatroom, dict) else None
        if room_id is None or room_id == "":
            raise ChannelNotFound(key, "no chatroom id in lookup response")

        logger.info(f"Resolved {key} -> {room_id}")
        return str(room_id)
