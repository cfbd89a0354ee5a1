"""
Timed configuration refresh from a distributed cache.

Keys listed under ``InitialConfiguration:TimedCacheRefresh:Keys`` are read
from the cache every ``IntervalSeconds`` and written into the live
configuration under the same key. Values missing from the cache leave the
current configuration value in place.
"""

import asyncio
import logging

from secure_config.config.configuration import Configuration
from secure_config.config.setup import TimedCacheRefresh
from secure_config.types import ConfigurationCache

logger = logging.getLogger(__name__)

# Settings are the bound TimedCacheRefresh section
CacheRefreshSettings = TimedCacheRefresh


class ConfigurationRefresher:
    """
    Copies cached values into configuration on a fixed interval.

    Usage:
        refresher = ConfigurationRefresher(cache, configuration, setup.timed_cache_refresh)
        refresher.start()
        ...
        await refresher.stop()
    """

    def __init__(
        self,
        cache: ConfigurationCache,
        configuration: Configuration,
        settings: CacheRefreshSettings | None = None,
    ):
        self.cache = cache
        self.configuration = configuration
        self.settings = settings or CacheRefreshSettings()
        self._task: asyncio.Task | None = None

    @property
    def keys(self) -> list[str]:
        return list(self.settings.keys)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> int:
        """
        Read every configured key from the cache and apply non-None values.

        A failure reading one key is logged and does not stop the others.

        Returns:
            Number of configuration keys updated
        """
        updated = 0
        for key in self.keys:
            try:
                value = await self.cache.get(key)
            except Exception as e:
                logger.warning(
                    "Failed to read configuration key from cache",
                    extra={"key": key, "error": str(e), "error_type": type(e).__name__},
                )
                continue

            if value is None:
                continue
            if self.configuration[key] != value:
                self.configuration.set(key, value)
                updated += 1

        logger.debug(
            "Configuration refreshed from cache",
            extra={"keys_checked": len(self.keys), "keys_updated": updated},
        )
        return updated

    def start(self) -> None:
        """Start the background refresh task. No-op when there are no keys."""
        if not self.keys:
            logger.debug("No cache refresh keys configured, refresher not started")
            return
        if self._task is not None:
            logger.warning("Configuration refresher already running")
            return

        self._task = asyncio.create_task(self._run())
        logger.info(
            "Configuration refresher started",
            extra={
                "interval_seconds": self.settings.interval_seconds,
                "keys": self.keys,
            },
        )

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.debug("Configuration refresher stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.settings.interval_seconds)
            try:
                await self.refresh_once()
            except Exception as e:
                logger.warning(
                    "Error in periodic configuration refresh",
                    extra={"error": str(e)},
                )


__all__ = ["ConfigurationRefresher", "CacheRefreshSettings"]
