"""
Unit tests for channel resolution.
"""

import httpx
import pytest

from linkick.core.errors import ChannelNotFound, ResolutionBlocked
from linkick.services.channel_resolver import ChannelResolver
from tests.helpers import json_transport


def resolver_for(routes, overrides=None):
    return ChannelResolver(overrides=overrides or {}, transport=json_transport(routes))


class TestResolve:
    """Test slug to chatroom id resolution."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_override_skips_lookup(self):
        def handler(request):
            raise AssertionError("no request expected")

        resolver = ChannelResolver(overrides={"Demo": 123}, transport=httpx.MockTransport(handler))
        assert await resolver.resolve("DEMO ") == "123"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_lookup(self):
        resolver = resolver_for({"/api/v1/channels/streamer": (200, {"id": 9, "chatroom": {"id": 4567}})})
        assert await resolver.resolve("streamer") == "4567"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_lookup_lowercases_slug(self):
        resolver = resolver_for({"/api/v1/channels/streamer": (200, {"chatroom": {"id": 1}})})
        assert await resolver.resolve("Streamer") == "1"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_slug(self):
        with pytest.raises(ChannelNotFound):
            await resolver_for({}).resolve("  ")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_not_found(self):
        with pytest.raises(ChannelNotFound) as exc:
            await resolver_for({}).resolve("ghost")
        assert not isinstance(exc.value, ResolutionBlocked)
        assert exc.value.slug == "ghost"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_chatroom(self):
        resolver = resolver_for({"/api/v1/channels/odd": (200, {"id": 9})})
        with pytest.raises(ChannelNotFound):
            await resolver.resolve("odd")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_json_body(self):
        resolver = resolver_for({"/api/v1/channels/odd": (200, "<html>challenge</html>")})
        with pytest.raises(ChannelNotFound):
            await resolver.resolve("odd")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_url_slug(self):
        with pytest.raises(ChannelNotFound) as exc:
            await resolver_for({}).resolve("bad\x01slug")
        assert not isinstance(exc.value, ResolutionBlocked)
        assert exc.value.slug == "bad\x01slug"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_blocked_status(self):
        resolver = resolver_for({"/api/v1/channels/walled": (403, "<html>blocked</html>")})
        with pytest.raises(ResolutionBlocked):
            await resolver.resolve("walled")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_transport_error(self):
        resolver = resolver_for({"/api/v1/channels/down": httpx.ConnectError("refused")})
        with pytest.raises(ResolutionBlocked):
            await resolver.resolve("down")
