"""Tests for ConfigurationRefresher."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from secure_config.cache.refresh import CacheRefreshSettings, ConfigurationRefresher
from secure_config.config.configuration import Configuration


class DictCache:
    """In-memory stand-in for the distributed cache."""

    def __init__(self, values):
        self.values = values
        self.reads = []

    async def get(self, key):
        self.reads.append(key)
        return self.values.get(key)


def _settings(*keys, interval=300):
    return CacheRefreshSettings(IntervalSeconds=interval, Keys=list(keys))


class TestRefreshOnce:
    @pytest.mark.asyncio
    async def test_copies_values(self):
        configuration = Configuration({"FeatureFlags": {"Orders": "off"}})
        cache = DictCache({"FeatureFlags:Orders": "on", "Limits:MaxBatch": "50"})
        refresher = ConfigurationRefresher(
            cache, configuration, _settings("FeatureFlags:Orders", "Limits:MaxBatch")
        )

        updated = await refresher.refresh_once()

        assert updated == 2
        assert configuration["FeatureFlags:Orders"] == "on"
        assert configuration["Limits:MaxBatch"] == "50"

    @pytest.mark.asyncio
    async def test_missing_values_leave_configuration(self):
        configuration = Configuration({"Mode": "base"})
        refresher = ConfigurationRefresher(DictCache({}), configuration, _settings("Mode"))

        assert await refresher.refresh_once() == 0
        assert configuration["Mode"] == "base"

    @pytest.mark.asyncio
    async def test_unchanged_values_not_counted(self):
        configuration = Configuration({"Mode": "fast"})
        refresher = ConfigurationRefresher(DictCache({"Mode": "fast"}), configuration, _settings("Mode"))

        assert await refresher.refresh_once() == 0

    @pytest.mark.asyncio
    async def test_failing_key_skipped(self):
        cache = AsyncMock()
        cache.get.side_effect = [ConnectionError("redis down"), "value-b"]
        configuration = Configuration()
        refresher = ConfigurationRefresher(cache, configuration, _settings("A", "B"))

        assert await refresher.refresh_once() == 1
        assert configuration["A"] is None
        assert configuration["B"] == "value-b"

    @pytest.mark.asyncio
    async def test_change_listeners_notified(self):
        configuration = Configuration()
        seen = []
        configuration.on_change(lambda key, value: seen.append((key, value)))
        refresher = ConfigurationRefresher(DictCache({"Mode": "fast"}), configuration, _settings("Mode"))

        await refresher.refresh_once()

        assert seen == [("Mode", "fast")]


class TestBackgroundRefresh:
    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        cache = DictCache({"Mode": "fast"})
        configuration = Configuration()
        refresher = ConfigurationRefresher(cache, configuration, _settings("Mode", interval=0.01))

        refresher.start()
        assert refresher.is_running
        await asyncio.sleep(0.05)
        await refresher.stop()

        assert not refresher.is_running
        assert configuration["Mode"] == "fast"
        assert len(cache.reads) >= 1

    @pytest.mark.asyncio
    async def test_no_keys_is_noop(self):
        refresher = ConfigurationRefresher(DictCache({}), Configuration(), _settings())

        refresher.start()

        assert not refresher.is_running
        await refresher.stop()

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        refresher = ConfigurationRefresher(DictCache({}), Configuration(), _settings("A"))
        await refresher.stop()
        assert not refresher.is_running
