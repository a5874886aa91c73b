"""Tests for the price lookup cache configuration."""

from unittest.mock import MagicMock, Mock, patch

from redis.exceptions import ConnectionError, TimeoutError

from app.core.cache import (
    CACHE_EXPIRATION,
    CACHE_NAMESPACE,
    URLS_EXPIRE_AFTER,
    clear_price_cache,
    configure_price_cache,
    get_cache_stats,
    get_redis_connection,
)


class TestRedisConnection:
    """Tests for Redis connection management."""

    @patch("app.core.cache.Redis")
    def test_get_redis_connection_success(self, mock_redis):
        mock_client = Mock()
        mock_client.ping.return_value = True
        mock_redis.from_url.return_value = mock_client

        conn = get_redis_connection()

        assert conn is mock_client
        mock_client.ping.assert_called_once()
        assert mock_redis.from_url.call_args.kwargs["decode_responses"] is False

    @patch("app.core.cache.Redis")
    def test_get_redis_connection_refused(self, mock_redis):
        mock_redis.from_url.side_effect = ConnectionError("Connection refused")

        assert get_redis_connection() is None

    @patch("app.core.cache.Redis")
    def test_get_redis_connection_ping_timeout(self, mock_redis):
        mock_client = Mock()
        mock_client.ping.side_effect = TimeoutError("Connection timeout")
        mock_redis.from_url.return_value = mock_client

        assert get_redis_connection() is None


class TestConfigurePriceCache:
    """Tests for configure_price_cache."""

    @patch("app.core.cache.RedisCache")
    @patch("app.core.cache.get_redis_connection")
    @patch("app.core.cache.requests_cache.install_cache")
    def test_installs_redis_backed_cache(self, mock_install, mock_redis_conn, mock_backend):
        connection = Mock()
        mock_redis_conn.return_value = connection

        assert configure_price_cache() is True

        mock_backend.assert_called_once_with(namespace=CACHE_NAMESPACE, connection=connection)
        call_kwargs = mock_install.call_args.kwargs
        assert call_kwargs["backend"] is mock_backend.return_value
        assert call_kwargs["urls_expire_after"] == URLS_EXPIRE_AFTER
        assert call_kwargs["allowable_methods"] == ("GET",)
        assert call_kwargs["stale_if_error"] is True

    @patch("app.core.cache.get_redis_connection")
    @patch("app.core.cache.requests_cache.install_cache")
    def test_redis_unavailable_skips_caching(self, mock_install, mock_redis_conn):
        mock_redis_conn.return_value = None

        assert configure_price_cache() is False
        mock_install.assert_not_called()

    def test_quotes_expire_before_metadata(self):
        assert CACHE_EXPIRATION["quote"] < CACHE_EXPIRATION["default"] < CACHE_EXPIRATION["metadata"]
        assert URLS_EXPIRE_AFTER["*/v8/finance/chart/*"] == CACHE_EXPIRATION["quote"]


class TestCacheOperations:
    """Tests for clearing and describing the cache."""

    @patch("app.core.cache.requests_cache.get_cache")
    def test_clear_price_cache(self, mock_get_cache):
        mock_cache = Mock()
        mock_get_cache.return_value = mock_cache

        assert clear_price_cache() is True
        mock_cache.clear.assert_called_once()

    @patch("app.core.cache.requests_cache.get_cache")
    def test_clear_without_active_cache(self, mock_get_cache):
        mock_get_cache.return_value = None

        assert clear_price_cache() is False

    @patch("app.core.cache.requests_cache.get_cache")
    def test_get_cache_stats_enabled(self, mock_get_cache):
        mock_cache = Mock()
        mock_cache.responses = {"key1": "value1", "key2": "value2"}
        mock_get_cache.return_value = mock_cache

        stats = get_cache_stats()

        assert stats["enabled"] is True
        assert "backend" in stats
        assert stats["size"] == 2

    @patch("app.core.cache.requests_cache.get_cache")
    def test_get_cache_stats_disabled(self, mock_get_cache):
        mock_get_cache.return_value = None

        assert get_cache_stats() == {"enabled": False}

    @patch("app.core.cache.requests_cache.get_cache")
    def test_get_cache_stats_size_unavailable(self, mock_get_cache):
        mock_cache = Mock()
        mock_cache.responses = MagicMock()
        mock_cache.responses.__len__.side_effect = ConnectionError("down")
        mock_get_cache.return_value = mock_cache

        stats = get_cache_stats()

        assert stats["enabled"] is True
        assert stats["size"] == "unavailable"
