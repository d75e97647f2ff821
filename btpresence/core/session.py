"""Scan session controller driving the Instant and Scheduled run modes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from btpresence.core.aggregator import enrich, fold, to_record
from btpresence.core.errors import AdapterUnavailableError, RadioError
from btpresence.core.model import DeviceProperties, ScanConfig, ScanMode, ScanSession
from btpresence.core.vendor import VendorResolver
from btpresence.radio.base import Adapter, Device, Radio

Sleep = Callable[[float], Awaitable[None]]
LOGGER = logging.getLogger(__name__)


def _silent(_: str) -> None:
    return None


class ScanSessionController:
    """Runs exactly one scan session against the first available adapter.

    The controller owns the ``ScanSession`` for the whole run; ticks are
    awaited one after another, so the record store is never shared.
    """

    def __init__(
        self,
        config: ScanConfig,
        radio: Radio,
        resolver: VendorResolver,
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        echo: Callable[[str], None] = _silent,
    ) -> None:
        self.config = config
        self._radio = radio
        self._resolver = resolver
        self._sleep = sleep
        self._clock = clock
        self._echo = echo

    async def run(self) -> ScanSession:
        adapters = await self._radio.list_adapters()
        if not adapters:
            raise AdapterUnavailableError("No Bluetooth adapter found.")
        adapter = adapters[0]
        LOGGER.debug("Using adapter %s", adapter.name)

        if self.config.mode is ScanMode.INSTANT:
            return await self._run_instant(adapter)
        return await self._run_scheduled(adapter)

    async def _stop(self, adapter: Adapter) -> None:
        try:
            await adapter.stop_scan()
        except RadioError as exc:
            LOGGER.warning("Could not stop scanning on %s: %s", adapter.name, exc)

    async def _read_properties(self, device: Device) -> DeviceProperties | None:
        try:
            return await device.properties()
        except RadioError as exc:
            LOGGER.debug("Skipping device this tick: %s", exc)
            return None

    async def _run_instant(self, adapter: Adapter) -> ScanSession:
        self._echo("Scan was set to be instant, starting scan...")
        session = ScanSession(mode=ScanMode.INSTANT, started_at=self._clock())

        await adapter.start_scan()
        try:
            await self._sleep(self.config.instant_window)
        finally:
            await self._stop(adapter)

        try:
            devices = await adapter.visible_devices()
        except RadioError as exc:
            LOGGER.warning("Could not list devices for the snapshot: %s", exc)
            devices = []

        for device in devices:
            properties = await self._read_properties(device)
            if properties is None:
                continue
            session.snapshot.append(to_record(enrich(properties, 0, self._resolver)))

        LOGGER.info("Instant snapshot captured %d devices", len(session.snapshot))
        return session

    async def _run_scheduled(self, adapter: Adapter) -> ScanSession:
        config = self.config
        self._echo("Scan was set to be delayed")
        for remaining in range(config.start_after_duration, 0, -1):
            self._echo(f"Scan starts in {remaining} seconds")
            await self._sleep(1)

        self._echo(f"Scan started, it will last for {config.scan_duration} seconds...")
        await adapter.start_scan()
        session = ScanSession(
            mode=ScanMode.SCHEDULED,
            started_at=self._clock(),
            duration=config.scan_duration,
        )
        try:
            while self._clock() - session.started_at < config.scan_duration:
                await self._tick(adapter, session)
                await self._sleep(config.poll_interval)
        finally:
            await self._stop(adapter)

        LOGGER.info("Scheduled scan tracked %d devices", len(session.records))
        return session

    async def _tick(self, adapter: Adapter, session: ScanSession) -> None:
        try:
            devices = await adapter.visible_devices()
        except RadioError as exc:
            LOGGER.warning("Skipping tick, could not list devices: %s", exc)
            return

        now = int(self._clock() - session.started_at)
        for device in devices:
            properties = await self._read_properties(device)
            if properties is None:
                continue
            sighting = enrich(properties, now, self._resolver)
            fold(session.records, sighting, now, self.config.gap_tolerance)
        LOGGER.debug("Tick at %ds saw %d devices", now, len(devices))
