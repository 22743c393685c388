"""Single-entry TTL cache for the latest alarm status snapshot."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from pyadtsync.exceptions import AdtTimeoutError
from pyadtsync.models.status import StatusSnapshot

_logger = logging.getLogger(__name__)

STATUS_KEY = "status"


@dataclass(slots=True)
class CacheEntry:
    """The one live cache entry."""

    value: StatusSnapshot
    ttl_seconds: float
    key: str = STATUS_KEY
    inserted_at: float = field(default_factory=time.monotonic)

    @property
    def age(self) -> float:
        return time.monotonic() - self.inserted_at


class StatusCache:
    """Holds at most one :class:`StatusSnapshot` for ``ttl`` seconds.

    * :meth:`set` stores the snapshot, re-arms a one-shot expiry timer and
      resolves every reader blocked in :meth:`wait_for_set`.
    * When the timer elapses the entry is evicted and the ``on_expired``
      handler is called once with the evicted entry.  A later :meth:`set`
      cancels the pending timer, so an entry never expires twice.

    The handler is a single slot: assigning a new one replaces the old,
    and ``None`` detaches it.  Must be used from within a running event
    loop.
    """

    def __init__(
        self,
        ttl: float,
        *,
        on_expired: Callable[[CacheEntry], None] | None = None,
    ) -> None:
        if ttl <= 0:
            raise ValueError(f"ttl must be positive seconds, got {ttl!r}")
        self._ttl = ttl
        self._entry: CacheEntry | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._waiters: list[asyncio.Future[StatusSnapshot]] = []
        self.on_expired = on_expired

    @property
    def ttl(self) -> float:
        """Time-to-live in seconds."""
        return self._ttl

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    @property
    def pending_readers(self) -> int:
        """Number of readers currently suspended waiting for a value."""
        return sum(1 for w in self._waiters if not w.done())

    def get(self) -> StatusSnapshot | None:
        """Return the cached snapshot, or ``None`` when empty."""
        entry = self._entry
        return entry.value if entry is not None else None

    def set(self, value: StatusSnapshot) -> None:
        """Store *value*, restart the TTL clock and wake waiting readers."""
        loop = asyncio.get_running_loop()
        self._cancel_timer()
        self._entry = CacheEntry(value=value, ttl_seconds=self._ttl)
        self._timer = loop.call_later(self._ttl, self._expire)

        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(value)

    def clear(self) -> None:
        """Drop the entry without firing the expiry handler."""
        self._cancel_timer()
        self._entry = None

    async def wait_for_set(self, timeout: float | None = None) -> StatusSnapshot:
        """Suspend until the next :meth:`set` and return its value.

        Raises
        ------
        AdtTimeoutError
            If *timeout* seconds pass without a ``set``.
        """
        fut: asyncio.Future[StatusSnapshot] = asyncio.get_running_loop().create_future()
        self._waiters.append(fut)
        try:
            if timeout is None:
                return await fut
            return await asyncio.wait_for(fut, timeout)
        except TimeoutError as exc:
            raise AdtTimeoutError(f"No status received within {timeout}s") from exc
        finally:
            with contextlib.suppress(ValueError):
                self._waiters.remove(fut)

    def cancel_waiters(self) -> None:
        """Cancel every suspended reader."""
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.cancel()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _expire(self) -> None:
        entry = self._entry
        self._timer = None
        self._entry = None
        if entry is None:
            return
        _logger.debug("%s expired after %.1fs", entry.key, entry.age)
        handler = self.on_expired
        if handler is not None:
            handler(entry)
