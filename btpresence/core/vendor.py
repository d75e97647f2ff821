"""Vendor lookup from an IEEE-style OUI table."""

from __future__ import annotations

import csv
import io
import logging
from importlib import resources
from pathlib import Path

UNKNOWN_VENDOR = "Unknown"
LOGGER = logging.getLogger(__name__)


def address_prefix(address: str) -> str:
    """Return the organizationally-unique prefix of ``address`` as bare hex, e.g. ``B827EB``."""
    octets = address.strip().upper().replace("-", ":").split(":")
    return "".join(octets[:3])


def _parse_table(text: str) -> dict[str, str]:
    table: dict[str, str] = {}
    for row in csv.reader(io.StringIO(text)):
        if len(row) < 3:
            continue
        prefix = row[1].strip().upper()
        if prefix and prefix not in table:
            table[prefix] = row[2].strip()
    return table


def _read_packaged_table() -> str:
    return resources.files("btpresence.data").joinpath("oui.csv").read_text(encoding="utf-8")


class VendorResolver:
    def __init__(self, table: dict[str, str] | None = None) -> None:
        self._table = dict(table or {})

    @classmethod
    def from_path(cls, path: Path | None = None) -> VendorResolver:
        """Load the table at ``path`` (or the packaged one); a missing table resolves everything to Unknown."""
        try:
            if path is None:
                text = _read_packaged_table()
            else:
                text = Path(path).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            LOGGER.warning("Vendor table unavailable (%s); vendors will be reported as Unknown", exc)
            return cls()
        table = _parse_table(text)
        LOGGER.debug("Loaded %d vendor prefixes from %s", len(table), path or "packaged table")
        return cls(table)

    def __len__(self) -> int:
        return len(self._table)

    def resolve(self, device_id: str) -> str:
        return self._table.get(address_prefix(device_id), UNKNOWN_VENDOR)
