"""Display formatting for database-native values.

Pure mapping, no I/O. Each cell of a fetched row goes through `format_value`,
which returns the canonical display string plus a semantic kind the
presentation layer uses for alignment and styling.
"""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass
from decimal import Decimal

NULL_TEXT = "NULL"
NIL_TEXT = "<nil>"


class _Missing:
    """Marker for a cell that has no value at all (not even NULL)."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


@dataclass(frozen=True)
class FormattedValue:
    """A display string and the semantic kind it was derived from."""

    text: str
    kind: str

    @property
    def right_aligned(self) -> bool:
        return self.kind in {"integer", "float", "numeric"}

    def __str__(self) -> str:
        return self.text


def format_uuid(raw: bytes) -> str:
    """
    Render 16 raw bytes as `8-4-4-4-12` lowercase hex.

    Input that does not hex-encode to exactly 32 characters is returned as
    the plain hex string.
    """
    hex_str = bytes(raw).hex()
    if len(hex_str) != 32:
        return hex_str
    return "-".join(
        [hex_str[0:8], hex_str[8:12], hex_str[12:16], hex_str[16:20], hex_str[20:32]]
    )


def format_value(value: object) -> FormattedValue:
    """Map one database value to its display string and kind."""
    if value is MISSING:
        return FormattedValue(NIL_TEXT, "unknown")
    if value is None:
        return FormattedValue(NULL_TEXT, "null")
    # bool is an int subclass
    if isinstance(value, bool):
        return FormattedValue("true" if value else "false", "boolean")
    if isinstance(value, int):
        return FormattedValue(str(value), "integer")
    if isinstance(value, float):
        return FormattedValue(f"{value:.2f}", "float")
    if isinstance(value, Decimal):
        return FormattedValue(str(value), "numeric")
    if isinstance(value, str):
        return FormattedValue(value, "text")
    if isinstance(value, (dt.datetime, dt.date)):
        # strftime("%Y") does not zero-pad years before 1000 on every platform
        return FormattedValue(
            f"{value.year:04d}-{value.month:02d}-{value.day:02d}", "date"
        )
    if isinstance(value, uuid.UUID):
        return FormattedValue(str(value), "uuid")
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        if len(raw) == 16:
            return FormattedValue(format_uuid(raw), "uuid")
        return FormattedValue(raw.hex(), "binary")
    return FormattedValue(f"<{type(value).__name__}>", "unknown")
