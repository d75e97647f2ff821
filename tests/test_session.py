from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from btpresence.core.errors import AdapterUnavailableError, RadioError
from btpresence.core.model import DeviceProperties, ScanConfig, ScanMode
from btpresence.core.report import build
from btpresence.core.session import ScanSessionController
from btpresence.core.vendor import VendorResolver


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeDevice:
    def __init__(self, address: str, *, name: str | None = None, fail: bool = False, empty: bool = False) -> None:
        self.address = address
        self.name = name
        self.fail = fail
        self.empty = empty

    async def properties(self) -> DeviceProperties | None:
        if self.fail:
            raise RadioError(f"properties unavailable for {self.address}")
        if self.empty:
            return None
        return DeviceProperties(address=self.address, local_name=self.name, rssi=-50)


class FakeAdapter:
    def __init__(self, visible: Callable[[], list[FakeDevice]], *, fail_stop: bool = False) -> None:
        self.name = "hci0"
        self._visible = visible
        self.fail_stop = fail_stop
        self.calls: list[str] = []

    async def start_scan(self) -> None:
        self.calls.append("start")

    async def stop_scan(self) -> None:
        self.calls.append("stop")
        if self.fail_stop:
            raise RadioError("stop failed")

    async def visible_devices(self) -> list[FakeDevice]:
        self.calls.append("list")
        return self._visible()


class FakeRadio:
    def __init__(self, adapters: list[FakeAdapter]) -> None:
        self.adapters = adapters

    async def list_adapters(self) -> list[FakeAdapter]:
        return self.adapters


def _controller(config: ScanConfig, radio: FakeRadio, clock: FakeClock, messages: list[str] | None = None) -> ScanSessionController:
    return ScanSessionController(
        config,
        radio,
        VendorResolver({"B827EB": "Raspberry Pi Foundation"}),
        sleep=clock.sleep,
        clock=clock,
        echo=(messages.append if messages is not None else lambda _: None),
    )


def test_no_adapter_raises_before_scanning() -> None:
    clock = FakeClock()
    controller = _controller(ScanConfig(mode=ScanMode.INSTANT), FakeRadio([]), clock)

    with pytest.raises(AdapterUnavailableError):
        asyncio.run(controller.run())
    assert clock.sleeps == []


def test_instant_snapshot_keeps_order_and_skips_unreadable_devices() -> None:
    devices = [
        FakeDevice("B8:27:EB:00:00:01", name="pi"),
        FakeDevice("AA:00:00:00:00:02", fail=True),
        FakeDevice("AA:00:00:00:00:03", empty=True),
        FakeDevice("AA:00:00:00:00:04", name="tag"),
    ]
    adapter = FakeAdapter(lambda: devices)
    clock = FakeClock()
    controller = _controller(ScanConfig(mode=ScanMode.INSTANT, instant_window=5.0), FakeRadio([adapter]), clock)

    session = asyncio.run(controller.run())

    assert adapter.calls == ["start", "stop", "list"]
    assert clock.sleeps == [5.0]
    assert [r.device_id for r in session.snapshot] == ["B8:27:EB:00:00:01", "AA:00:00:00:00:04"]
    assert session.snapshot[0].vendor == "Raspberry Pi Foundation"
    assert all(not r.intervals for r in session.snapshot)

    document = build(session.record_store(), session.mode)
    assert list(document) == ["0", "1"]
    assert "bluetooth_durations" not in document["0"]


def test_scheduled_scan_merges_presence_intervals() -> None:
    clock = FakeClock()
    device_a = FakeDevice("B8:27:EB:00:00:01", name="pi")
    device_b = FakeDevice("AA:00:00:00:00:02", name="tag")

    def visible() -> list[FakeDevice]:
        t = clock.now - 2.0  # countdown offset
        seen: list[FakeDevice] = []
        if t < 3 or 8 <= t < 10 or 20 <= t < 20.5:
            seen.append(device_a)
        if t == 3.0:
            seen.append(device_b)
        return seen

    adapter = FakeAdapter(visible)
    config = ScanConfig(mode=ScanMode.SCHEDULED, start_after_duration=2, scan_duration=21, poll_interval=0.5)
    messages: list[str] = []

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock, messages).run())

    assert adapter.calls[0] == "start"
    assert adapter.calls[-1] == "stop"
    assert clock.sleeps[:2] == [1, 1]
    assert "Scan starts in 2 seconds" in messages
    assert "Scan starts in 1 seconds" in messages
    assert session.duration == 21

    intervals_a = [(i.start, i.end) for i in session.records["B8:27:EB:00:00:01"].intervals]
    intervals_b = [(i.start, i.end) for i in session.records["AA:00:00:00:00:02"].intervals]
    assert intervals_a == [(0, 2), (8, 9), (20, 20)]
    assert intervals_b == [(3, 3)]

    document = build(session.record_store(), session.mode)
    assert set(document) == {"B8:27:EB:00:00:01", "AA:00:00:00:00:02"}
    assert document["B8:27:EB:00:00:01"]["bluetooth_durations"] == "0-2,8-9,20-20"


def test_scheduled_scan_skips_failed_property_reads() -> None:
    clock = FakeClock()
    flaky = FakeDevice("AA:00:00:00:00:09", name="flaky")

    def visible() -> list[FakeDevice]:
        flaky.fail = clock.now >= 1.0
        return [flaky]

    adapter = FakeAdapter(visible)
    config = ScanConfig(mode=ScanMode.SCHEDULED, scan_duration=3, poll_interval=1.0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert [(i.start, i.end) for i in session.records["AA:00:00:00:00:09"].intervals] == [(0, 0)]


def test_scheduled_scan_skips_tick_when_listing_fails() -> None:
    clock = FakeClock()

    def visible() -> list[FakeDevice]:
        if clock.now < 1.0:
            raise RadioError("adapter busy")
        return [FakeDevice("AA:00:00:00:00:07")]

    adapter = FakeAdapter(visible)
    config = ScanConfig(mode=ScanMode.SCHEDULED, scan_duration=2, poll_interval=1.0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert [(i.start, i.end) for i in session.records["AA:00:00:00:00:07"].intervals] == [(1, 1)]
    assert adapter.calls[-1] == "stop"


def test_zero_duration_scheduled_scan_records_nothing() -> None:
    clock = FakeClock()
    adapter = FakeAdapter(lambda: [FakeDevice("AA:00:00:00:00:01")])
    config = ScanConfig(mode=ScanMode.SCHEDULED, scan_duration=0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert session.records == {}
    assert adapter.calls == ["start", "stop"]


def test_only_first_adapter_is_used() -> None:
    clock = FakeClock()
    first = FakeAdapter(lambda: [])
    second = FakeAdapter(lambda: [FakeDevice("AA:00:00:00:00:01")])
    config = ScanConfig(mode=ScanMode.INSTANT, instant_window=1.0)

    session = asyncio.run(_controller(config, FakeRadio([first, second]), clock).run())

    assert session.snapshot == []
    assert second.calls == []


def test_scheduled_records_survive_stop_failure() -> None:
    clock = FakeClock()
    adapter = FakeAdapter(lambda: [FakeDevice("AA:00:00:00:00:05", name="tag")], fail_stop=True)
    config = ScanConfig(mode=ScanMode.SCHEDULED, scan_duration=3, poll_interval=1.0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert adapter.calls[-1] == "stop"
    assert [(i.start, i.end) for i in session.records["AA:00:00:00:00:05"].intervals] == [(0, 2)]


def test_instant_snapshot_survives_stop_failure() -> None:
    clock = FakeClock()
    adapter = FakeAdapter(lambda: [FakeDevice("AA:00:00:00:00:06", name="tag")], fail_stop=True)
    config = ScanConfig(mode=ScanMode.INSTANT, instant_window=1.0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert [r.device_id for r in session.snapshot] == ["AA:00:00:00:00:06"]


def test_instant_snapshot_listing_failure_yields_empty_snapshot() -> None:
    clock = FakeClock()

    def visible() -> list[FakeDevice]:
        raise RadioError("adapter gone")

    adapter = FakeAdapter(visible)
    config = ScanConfig(mode=ScanMode.INSTANT, instant_window=1.0)

    session = asyncio.run(_controller(config, FakeRadio([adapter]), clock).run())

    assert session.snapshot == []
