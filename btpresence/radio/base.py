"""Radio collaborator interfaces."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from btpresence.core.model import DeviceProperties


class Device(Protocol):
    async def properties(self) -> DeviceProperties | None:
        """Return the current advertisement properties, or None when nothing is known."""


class Adapter(Protocol):
    name: str

    async def start_scan(self) -> None:
        """Begin discovery."""

    async def stop_scan(self) -> None:
        """End discovery."""

    async def visible_devices(self) -> Sequence[Device]:
        """Return the devices seen since discovery started."""


class Radio(Protocol):
    async def list_adapters(self) -> Sequence[Adapter]:
        """Return the adapters available for scanning, first one preferred."""
