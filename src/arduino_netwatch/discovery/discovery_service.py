"""
Service that keeps a snapshot of the devices seen by the board fresh by polling
it on a fixed interval, and serves that snapshot to readers without waiting on
the network.
"""
import asyncio
from datetime import datetime, timezone

import structlog

from ..config import Config, DiscoveryConfig
from ..gateway.base_gateway import BaseCallGateway
from ..gateway.exceptions import GatewayError
from ..models.common import ServiceState
from ..models.devices import EMPTY_SNAPSHOT, Snapshot, WifiInfo
from .snapshot import build_snapshot
from .wifi import parse_iwinfo

logger = structlog.get_logger(__name__)

class DeviceDiscoveryService:
    """
    Periodic, non-overlapping discovery of the board's network devices.

    A timer task fires every `poll_interval_seconds`. A fire while a cycle is still
    in flight is dropped, so at most one `netinfo` call is outstanding. Each successful
    cycle builds a new read-only snapshot and swaps it in with a single assignment;
    failed cycles leave the previous snapshot in place.
    """

    def __init__(self, gateway: BaseCallGateway, app_config: Config):
        self.gateway = gateway
        self.app_config = app_config
        self.discovery_config: DiscoveryConfig = app_config.discovery
        self.logger = logger.bind(service=app_config.service_name)

        self._snapshot: Snapshot = EMPTY_SNAPSHOT
        self._state = ServiceState.IDLE
        self._timer_task: asyncio.Task | None = None
        self._cycle_task: asyncio.Task | None = None
        # Bumped by stop(); a cycle started under an older generation must not apply its result
        self._generation = 0

        self.last_updated: datetime | None = None
        self.last_error: Exception | None = None
        self.cycle_count = 0
        self.dropped_fires = 0

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def running(self) -> bool:
        return self._timer_task is not None and self._state != ServiceState.STOPPED

    def current_snapshot(self) -> Snapshot:
        """Returns the snapshot of the most recently completed cycle (empty before the first)."""
        return self._snapshot

    async def start(self) -> None:
        """Arms the poll timer and triggers an immediate discovery cycle."""
        if self._state == ServiceState.STOPPED:
            raise RuntimeError("DeviceDiscoveryService cannot be restarted after stop()")
        if self._timer_task is not None:
            self.logger.warning("Discovery service already started.")
            return

        interval = self.discovery_config.poll_interval_seconds
        self.logger.info("Starting discovery service.", poll_interval_seconds=interval)
        self._timer_task = asyncio.create_task(self._run_timer(interval), name="netwatch-poll-timer")
        self._on_timer_fire()

    async def stop(self) -> None:
        """Cancels the timer and any in-flight cycle, and clears the snapshot."""
        if self._state == ServiceState.STOPPED:
            return
        self.logger.info("Stopping discovery service.", cycle_in_flight=self._state == ServiceState.POLLING)
        self._state = ServiceState.STOPPED
        self._generation += 1

        tasks = [task for task in (self._timer_task, self._cycle_task) if task is not None and not task.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._timer_task = None
        self._cycle_task = None
        self._snapshot = EMPTY_SNAPSHOT
        self.logger.info("Discovery service stopped.")

    async def poll_network(self) -> bool:
        """
        Runs one discovery cycle now unless one is already in flight.
        Returns True when a new snapshot was applied.
        """
        if self._state == ServiceState.STOPPED:
            raise RuntimeError("DeviceDiscoveryService is stopped")
        if self._state == ServiceState.POLLING:
            self.logger.debug("Discovery cycle already in flight, skipping.")
            return False
        self._state = ServiceState.POLLING
        return await self._run_cycle(self._generation)

    async def wifi_status(self) -> WifiInfo:
        """
        Queries the board's WIFI state. Not cached; gateway errors propagate to the caller.
        Callers that need a record regardless can fall back to `WifiInfo()`, the
        disconnected state with default fields.
        """
        method = self.discovery_config.iwinfo_method
        try:
            raw = await self.gateway.invoke(method, {})
        except GatewayError as e:
            self.logger.warning("WIFI status query failed.", operation=method, error=str(e), error_type=type(e).__name__)
            raise
        return parse_iwinfo(raw)

    async def _run_timer(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self._on_timer_fire()

    def _on_timer_fire(self) -> None:
        if self._state != ServiceState.IDLE:
            if self._state == ServiceState.POLLING:
                self.dropped_fires += 1
                self.logger.debug("Timer fired during an in-flight cycle, dropping.", dropped_fires=self.dropped_fires)
            return
        self._state = ServiceState.POLLING
        self._cycle_task = asyncio.create_task(self._run_cycle(self._generation), name="netwatch-discovery-cycle")

    async def _run_cycle(self, generation: int) -> bool:
        try:
            return await self._poll_once(generation)
        finally:
            if generation == self._generation:
                self._state = ServiceState.IDLE
                self._cycle_task = None

    async def _poll_once(self, generation: int) -> bool:
        method = self.discovery_config.netinfo_method
        log = self.logger.bind(operation=method, generation=generation)
        log.debug("Discovery cycle started.")

        try:
            payload = await self.gateway.invoke(method, {})
        except GatewayError as e:
            if generation == self._generation:
                self.last_error = e
            log.warning("Discovery cycle failed, keeping previous snapshot.", error=str(e), error_type=type(e).__name__)
            return False
        except Exception as e:
            # Anything else must not kill the timer either
            if generation == self._generation:
                self.last_error = e
            log.exception("Unexpected error during discovery cycle, keeping previous snapshot.", error_type=type(e).__name__)
            return False

        if generation != self._generation:
            log.info("Discarding discovery result that arrived after stop().")
            return False

        snapshot = build_snapshot(payload)
        self._snapshot = snapshot
        self.last_updated = datetime.now(timezone.utc)
        self.last_error = None
        self.cycle_count += 1
        log.debug("Discovery cycle completed.", device_count=len(snapshot), cycle_count=self.cycle_count)
        return True

    async def __aenter__(self) -> "DeviceDiscoveryService":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
