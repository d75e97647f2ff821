"""Free-text normalization applied before values enter a device record."""

from __future__ import annotations

_UNSAFE_CHARS = ("'", "`", '"')


def sanitize(text: str) -> str:
    for char in _UNSAFE_CHARS:
        text = text.replace(char, " ")
    return text
