"""
Catalog SQL (raw).

One query per resolver question. The replaces-graph is walked with self
joins on `channel_entry`:
- `replaced` is the entry a row replaces (row.replaces_entry_id -> replaced.entry_id)
- `replacement` is the entry that replaces a row (replacement.replaces_entry_id -> row.entry_id)

"Latest" means minimum depth within a (package, channel); ties on depth are
broken by bundle name so results are deterministic.
"""

from __future__ import annotations

from typing import Any

from core import db


async def list_package_names(*, timeout: float | None = None) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT DISTINCT name
        FROM package
        ORDER BY name
        """,
        timeout=timeout,
    )


async def get_package_channels(name: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
    """
    One row per channel of the package, with the package's default channel
    repeated on every row.
    """
    return await db.fetch_all(
        """
        SELECT DISTINCT
          p.name AS package_name,
          p.default_channel,
          c.name AS channel_name,
          c.head_bundle_name
        FROM package p
        JOIN channel c ON c.package_name = p.name
        WHERE p.name = $1
        ORDER BY channel_name
        """,
        name,
        timeout=timeout,
    )


async def get_head_bundle(
    package_name: str,
    channel_name: str,
    *,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT b.payload
        FROM channel c
        JOIN bundle b ON b.name = c.head_bundle_name
        WHERE c.package_name = $1
          AND c.name = $2
        LIMIT 1
        """,
        package_name,
        channel_name,
        timeout=timeout,
    )


async def get_bundle(name: str, *, timeout: float | None = None) -> dict[str, Any] | None:
    return await db.fetch_one(
        """
        SELECT payload
        FROM bundle
        WHERE name = $1
        LIMIT 1
        """,
        name,
        timeout=timeout,
    )


async def list_entries_replacing(bundle_name: str, *, timeout: float | None = None) -> list[dict[str, Any]]:
    """
    Entries whose replaces-edge points at an entry carrying `bundle_name`,
    across every channel that bundle appears in.
    """
    return await db.fetch_all(
        """
        SELECT DISTINCT
          e.package_name,
          e.channel_name,
          e.bundle_name
        FROM channel_entry e
        JOIN channel_entry replaced ON replaced.entry_id = e.replaces_entry_id
        WHERE replaced.bundle_name = $1
        ORDER BY e.package_name, e.channel_name, e.bundle_name
        """,
        bundle_name,
        timeout=timeout,
    )


async def get_replacement_bundle(
    bundle_name: str,
    package_name: str,
    channel_name: str,
    *,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    """
    Payload of the bundle whose entry replaces the entry holding
    `bundle_name` in (package_name, channel_name).
    """
    return await db.fetch_one(
        """
        SELECT b.payload
        FROM channel_entry e
        JOIN channel_entry replacement ON replacement.replaces_entry_id = e.entry_id
        JOIN bundle b ON b.name = replacement.bundle_name
        WHERE e.bundle_name = $1
          AND e.package_name = $2
          AND e.channel_name = $3
        ORDER BY replacement.depth ASC, replacement.bundle_name ASC
        LIMIT 1
        """,
        bundle_name,
        package_name,
        channel_name,
        timeout=timeout,
    )


async def list_entries_providing(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> list[dict[str, Any]]:
    return await db.fetch_all(
        """
        SELECT DISTINCT
          e.package_name,
          e.channel_name,
          e.bundle_name,
          replaced.bundle_name AS replaces
        FROM channel_entry e
        JOIN api_provider ap ON ap.channel_entry_id = e.entry_id
        LEFT JOIN channel_entry replaced ON replaced.entry_id = e.replaces_entry_id
        WHERE ap.group_or_name = $1
          AND ap.version = $2
          AND ap.kind = $3
        ORDER BY e.package_name, e.channel_name, e.bundle_name, replaces
        """,
        group,
        version,
        kind,
        timeout=timeout,
    )


async def list_latest_entries_providing(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> list[dict[str, Any]]:
    """
    One row per (package, channel): the providing entry closest to the
    channel head.
    """
    return await db.fetch_all(
        """
        SELECT DISTINCT ON (e.package_name, e.channel_name)
          e.package_name,
          e.channel_name,
          e.bundle_name,
          replaced.bundle_name AS replaces
        FROM channel_entry e
        JOIN api_provider ap ON ap.channel_entry_id = e.entry_id
        LEFT JOIN channel_entry replaced ON replaced.entry_id = e.replaces_entry_id
        WHERE ap.group_or_name = $1
          AND ap.version = $2
          AND ap.kind = $3
        ORDER BY e.package_name, e.channel_name, e.depth ASC, e.bundle_name ASC
        """,
        group,
        version,
        kind,
        timeout=timeout,
    )


async def get_default_channel_provider(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> dict[str, Any] | None:
    """
    Latest providing bundle in a package's default channel.

    When several packages provide the API from their default channel, the
    first (package_name, channel_name) group wins.
    """
    return await db.fetch_one(
        """
        SELECT DISTINCT ON (e.package_name, e.channel_name)
          e.package_name,
          e.channel_name,
          e.bundle_name,
          b.payload
        FROM channel_entry e
        JOIN api_provider ap ON ap.channel_entry_id = e.entry_id
        JOIN bundle b ON b.name = e.bundle_name
        JOIN package p ON p.name = e.package_name
        WHERE ap.group_or_name = $1
          AND ap.version = $2
          AND ap.kind = $3
          AND p.default_channel = e.channel_name
        ORDER BY e.package_name, e.channel_name, e.depth ASC, e.bundle_name ASC
        LIMIT 1
        """,
        group,
        version,
        kind,
        timeout=timeout,
    )
