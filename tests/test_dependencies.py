from unittest.mock import patch

import pytest

from crm_overlay.dependencies import get_current_user_name, get_redis_client


async def _open(generator):
    return await generator.__anext__()


class TestGetRedisClient:
    """The per-request Redis client is always closed."""

    @pytest.mark.asyncio
    async def test_cache_disabled_yields_none(self):
        with patch("crm_overlay.dependencies.settings.CONFIG_CACHE_TTL", 0), patch(
            "crm_overlay.dependencies.Redis.from_url"
        ) as from_url:
            generator = get_redis_client()
            assert await _open(generator) is None
            await generator.aclose()
        from_url.assert_not_called()

    @pytest.mark.asyncio
    async def test_client_is_closed_after_request(self, mock_redis):
        with patch("crm_overlay.dependencies.settings.CONFIG_CACHE_TTL", 60), patch(
            "crm_overlay.dependencies.Redis.from_url", return_value=mock_redis
        ):
            generator = get_redis_client()
            assert await _open(generator) is mock_redis
            mock_redis.aclose.assert_not_awaited()

            with pytest.raises(StopAsyncIteration):
                await generator.__anext__()

        mock_redis.ping.assert_awaited_once()
        mock_redis.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unreachable_redis_yields_none_and_closes(self, mock_redis):
        mock_redis.ping.side_effect = ConnectionError("refused")
        with patch("crm_overlay.dependencies.settings.CONFIG_CACHE_TTL", 60), patch(
            "crm_overlay.dependencies.Redis.from_url", return_value=mock_redis
        ):
            generator = get_redis_client()
            assert await _open(generator) is None
            await generator.aclose()

        mock_redis.aclose.assert_awaited_once()


class TestGetCurrentUserName:
    @pytest.mark.asyncio
    async def test_header_is_trimmed(self):
        assert await get_current_user_name("  Dana Admin ") == "Dana Admin"

    @pytest.mark.asyncio
    async def test_missing_header_is_unknown(self):
        assert await get_current_user_name(None) == "unknown"
