"""State synchronisation between the security portal and an accessory."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pyadtsync._cache import StatusCache
from pyadtsync._redact import redact_for_log
from pyadtsync._refresh import RefreshScheduler, fetch_status
from pyadtsync.config import AdtConfig
from pyadtsync.device import DeviceClient
from pyadtsync.exceptions import AdtFetchError, AdtPolicyRejection
from pyadtsync.models.status import (
    ArmingState,
    LowBatteryStatus,
    StatusSnapshot,
    TargetState,
)
from pyadtsync.state.pending import PendingTarget
from pyadtsync.state.policy import check_target_transition

_logger = logging.getLogger(__name__)

StateListener = Callable[[StatusSnapshot], None]


class StateSyncEngine:
    """Owns the status cache, the refresh loop and the arming policy.

    One engine per configured panel.  All methods must run on the same
    event loop.

    Usage::

        async with HttpDeviceClient(config) as device:
            engine = StateSyncEngine(config, device)
            await engine.init()
            state = await engine.get_state()
    """

    def __init__(self, config: AdtConfig, device: DeviceClient) -> None:
        self._config = config
        self._device = device
        self._cache = StatusCache(config.cache_ttl)
        self._scheduler = RefreshScheduler(
            self._cache,
            device,
            on_refreshed=self._handle_snapshot,
            on_failure=self._schedule_recovery,
        )
        self._listeners: list[StateListener] = []
        self._pending_target: PendingTarget | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._initialized = False
        self._init_epoch = 0
        _logger.debug("Initialized with config=%s", redact_for_log(config))

    @property
    def config(self) -> AdtConfig:
        return self._config

    @property
    def cache(self) -> StatusCache:
        return self._cache

    @property
    def initialized(self) -> bool:
        """Whether the last :meth:`init` logged in and seeded the cache."""
        return self._initialized

    @property
    def pending_target(self) -> TargetState | None:
        """Target staged by :meth:`request_target_state` until the next poll arrives.

        Informational only: :meth:`get_target_state` always reports what the
        panel last returned.
        """
        return self._pending_target.target if self._pending_target is not None else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> bool:
        """Log in, seed the cache and start the refresh loop.

        Also the recovery path after a failed refresh: every call tears
        down the previous loop first, so listeners never pile up.  A call
        that is overtaken by a newer :meth:`init` or by :meth:`close` while
        awaiting the device returns ``False`` without touching the cache.

        Returns
        -------
        bool
            ``True`` once initialised.  ``False`` when login or the first
            fetch failed; the error is logged and nothing is retried.
        """
        self._init_epoch += 1
        epoch = self._init_epoch
        self._initialized = False
        self._scheduler.stop()
        self._cache.clear()

        try:
            await self._device.login()
        except asyncio.CancelledError:
            raise
        except Exception as err:
            _logger.error("Initialization failed: %s", err)
            return False
        if epoch != self._init_epoch:
            _logger.debug("Initialization superseded after login")
            return False

        _logger.debug("Initializing status")
        try:
            snapshot = await fetch_status(self._device)
        except AdtFetchError as err:
            _logger.error("Initialization failed: %s", err)
            return False
        if epoch != self._init_epoch:
            _logger.debug("Initialization superseded; discarding status")
            return False

        self._scheduler.start()
        self._cache.set(snapshot)
        self._handle_snapshot(snapshot)
        self._initialized = True
        _logger.debug("Status initialized with %s", redact_for_log(snapshot.raw))
        return True

    async def close(self) -> None:
        """Stop polling and release waiting readers and background tasks.

        This includes a recovery :meth:`init` started after a failed refresh.
        """
        self._init_epoch += 1
        self._initialized = False
        self._scheduler.stop()
        self._cache.clear()
        self._cache.cancel_waiters()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_state(self, timeout: float | None = None) -> StatusSnapshot:
        """Return the cached snapshot, waiting for the next one if empty.

        Waits indefinitely unless *timeout* (or ``config.max_wait``) is set,
        in which case :class:`~pyadtsync.exceptions.AdtTimeoutError` is raised.
        """
        cached = self._cache.get()
        if cached is None:
            _logger.debug("Waiting for status")
            effective_timeout = timeout if timeout is not None else self._config.max_wait
            cached = await self._cache.wait_for_set(effective_timeout)
        return cached

    async def get_battery_level(self) -> int:
        return (await self.get_state()).battery_level

    async def get_low_battery_status(self) -> LowBatteryStatus:
        return (await self.get_state()).low_battery_status

    async def get_current_state(self) -> ArmingState:
        return (await self.get_state()).arming_state

    async def get_target_state(self) -> TargetState:
        return (await self.get_state()).target_state

    def on_state_changed(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every fetched snapshot.  Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def request_target_state(self, target: TargetState | int) -> None:
        """Validate and dispatch a target state without awaiting the panel.

        The outcome is confirmed by the next poll, not here.

        Raises
        ------
        ValueError
            *target* is not a supported target state.
        AdtPolicyRejection
            The cached status shows a faulted panel that is not ready.
            No device call is made and the staged target is cleared.
        """
        target = TargetState(target)
        if target == TargetState.UNKNOWN:
            raise ValueError("Unsupported target state")
        _logger.debug("Requested target %s", target.name)
        self._pending_target = PendingTarget(target)

        try:
            check_target_transition(self._cache.get(), target)
        except AdtPolicyRejection:
            _logger.info("Can't arm system. System is not ready.")
            self._pending_target = None
            raise

        _logger.info("Setting status to %s", target.name)
        task = asyncio.get_running_loop().create_task(self._dispatch(target))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until dispatched state changes have reached the device."""
        tasks = list(self._tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _dispatch(self, target: TargetState) -> None:
        try:
            await self._device.change_state(target)
        except asyncio.CancelledError:
            raise
        except Exception as err:
            _logger.error("Changing state to %s failed: %s", target.name, err)
            if self._pending_target is not None and self._pending_target.target == target:
                self._pending_target = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _schedule_recovery(self) -> None:
        _logger.info("Re-initializing after failed refresh")
        task = asyncio.get_running_loop().create_task(self.init())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _handle_snapshot(self, snapshot: StatusSnapshot) -> None:
        pending = self._pending_target
        if pending is not None:
            if pending.is_confirmed_by(snapshot):
                _logger.debug("Target %s confirmed after %.1fs", pending.target.name, pending.age)
            else:
                _logger.info(
                    "Target %s not adopted by panel (reports %s)",
                    pending.target.name,
                    snapshot.target_state.name,
                )
            self._pending_target = None

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.warning("State listener failed", exc_info=True)
