"""Service layer used by the CLI and the public API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path

from btpresence.core import report
from btpresence.core.errors import ReportWriteError
from btpresence.core.model import ScanConfig, ScanReport
from btpresence.core.session import ScanSessionController, Sleep
from btpresence.core.vendor import VendorResolver
from btpresence.radio.base import Radio
from btpresence.radio.bleak_radio import BleakRadio

LOGGER = logging.getLogger(__name__)


class ScanService:
    def __init__(
        self,
        config: ScanConfig,
        *,
        radio: Radio | None = None,
        resolver: VendorResolver | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.radio = radio or BleakRadio(adapter=config.adapter)
        self.resolver = resolver or VendorResolver.from_path(config.oui_path)
        self._sleep = sleep
        self._clock = clock

    def lookup_vendor(self, address: str) -> str:
        return self.resolver.resolve(address)

    def scan(self, echo: Callable[[str], None] | None = None) -> ScanReport:
        return asyncio.run(self.scan_async(echo))

    async def scan_async(self, echo: Callable[[str], None] | None = None) -> ScanReport:
        controller = ScanSessionController(
            self.config,
            self.radio,
            self.resolver,
            sleep=self._sleep,
            clock=self._clock,
            echo=echo or (lambda _: None),
        )
        session = await controller.run()
        document = report.build(session.record_store(), session.mode)
        path = report.report_path(Path(self.config.output_dir), session.mode)

        write_error: str | None = None
        try:
            report.write_report(document, path)
        except ReportWriteError as exc:
            LOGGER.warning("%s", exc)
            write_error = str(exc)

        return ScanReport(mode=session.mode, document=document, path=path, write_error=write_error)
