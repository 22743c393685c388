"""Cache-expiry driven status polling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from pyadtsync._cache import CacheEntry, StatusCache
from pyadtsync.device import DeviceClient
from pyadtsync.exceptions import AdtFetchError
from pyadtsync.models.status import StatusSnapshot

_logger = logging.getLogger(__name__)


async def fetch_status(device: DeviceClient) -> StatusSnapshot:
    """Fetch a snapshot, normalising any device failure to :class:`AdtFetchError`."""
    _logger.debug("Getting state from device")
    try:
        return await device.get_current_status()
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        raise AdtFetchError(f"Failed to fetch status: {exc}") from exc


class RefreshScheduler:
    """Keeps a :class:`StatusCache` populated by re-fetching on every expiry.

    Each expiry starts exactly one refresh.  On success the fresh snapshot
    is stored and ``on_refreshed`` is called; on failure ``on_failure`` is
    called once, and the engine schedules its own recovery from there.
    The refresh task never outlives the fetch.

    :meth:`start` bumps a generation counter; a refresh that belongs to an
    earlier generation never writes into the cache.
    """

    def __init__(
        self,
        cache: StatusCache,
        device: DeviceClient,
        *,
        on_refreshed: Callable[[StatusSnapshot], None],
        on_failure: Callable[[], None],
    ) -> None:
        self._cache = cache
        self._device = device
        self._on_refreshed = on_refreshed
        self._on_failure = on_failure
        self._generation = 0
        self._running = False
        self._pending: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def refresh_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def start(self) -> None:
        """Attach to the cache's expiry handler."""
        self._generation += 1
        self._running = True
        self._cache.on_expired = self._handle_expired
        _logger.info("Enabling autoRefresh every %s seconds", self._cache.ttl)

    def stop(self) -> None:
        """Detach from the cache and cancel an in-flight refresh."""
        self._generation += 1
        self._running = False
        if self._cache.on_expired == self._handle_expired:
            self._cache.on_expired = None
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            pending.cancel()

    def _handle_expired(self, entry: CacheEntry) -> None:
        _logger.debug("%s expired", entry.key)
        if not self._running:
            return
        if self.refresh_pending:
            _logger.debug("Refresh already in flight; ignoring expiry")
            return
        self._pending = asyncio.get_running_loop().create_task(self._refresh(self._generation))

    async def _refresh(self, generation: int) -> None:
        try:
            snapshot = await fetch_status(self._device)
        except AdtFetchError as err:
            if generation != self._generation:
                return
            _logger.error("Failed refreshing status: %s", err)
            self._pending = None
            self._on_failure()
            return

        if generation != self._generation:
            _logger.debug("Discarding refresh from a superseded generation")
            return
        self._pending = None
        self._cache.set(snapshot)
        self._on_refreshed(snapshot)
