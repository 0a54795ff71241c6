"""
Row decoding with nullable columns.

Every column read from the store is either a value or absent (NULL, or not
selected at all). Absent text decodes to "". A present value of the wrong
type raises `DecodeError`; that is a hard failure for the whole operation.
"""

from __future__ import annotations

from typing import Any

from core.errors import DecodeError

from .schemas import ChannelEntry, PackageChannel

_ABSENT = object()


def column(row: dict[str, Any], name: str) -> Any:
    """Return the raw column value, or `_ABSENT` for NULL / missing."""
    value = row.get(name)
    return _ABSENT if value is None else value


def text(row: dict[str, Any], name: str) -> str:
    value = column(row, name)
    if value is _ABSENT:
        return ""
    if not isinstance(value, str):
        raise DecodeError(name, value, "text")
    return value


def is_present(row: dict[str, Any], name: str) -> bool:
    return column(row, name) is not _ABSENT


def channel_entry(row: dict[str, Any], *, replaces: str | None = None) -> ChannelEntry:
    """
    Decode a (package_name, channel_name, bundle_name[, replaces]) row.

    When `replaces` is given it overrides the row's own replaces column.
    """
    return ChannelEntry(
        package_name=text(row, "package_name"),
        channel_name=text(row, "channel_name"),
        bundle_name=text(row, "bundle_name"),
        replaces=replaces if replaces is not None else text(row, "replaces"),
    )


def package_channel(row: dict[str, Any]) -> PackageChannel:
    return PackageChannel(
        name=text(row, "channel_name"),
        head_bundle_name=text(row, "head_bundle_name"),
    )
