"""
Catalog graph resolver.

Each function answers one question about the catalog by running a single
repository query and decoding its rows:
- "no rows" raises `NotFound` carrying the query parameters
- NULL text columns decode to ""
- store failures (`StoreError`, `Cancelled`, `DeadlineExceeded`) propagate unchanged

Every function takes a keyword-only `timeout` (seconds). `None` falls back to
the pool's command timeout.
"""

from __future__ import annotations

import logging

from core.errors import NotFound

from . import decoding, repository
from .schemas import ApiKey, ChannelEntry, PackageManifest

logger = logging.getLogger(__name__)


def _not_found(message: str, **params: str) -> NotFound:
    logger.debug("catalog_not_found params=%s", params)
    return NotFound(message, **params)


async def list_packages(*, timeout: float | None = None) -> set[str]:
    """
    Return the distinct package names in the catalog.

    An empty catalog yields an empty set, not an error. NULL names are skipped.
    """
    rows = await repository.list_package_names(timeout=timeout)
    return {decoding.text(row, "name") for row in rows if decoding.is_present(row, "name")}


async def get_package(name: str, *, timeout: float | None = None) -> PackageManifest:
    """
    Return the package's default channel and every channel with its head bundle.

    Behaviour change: all channels are returned, ordered by name. Earlier
    catalog servers only materialized the first two channel rows.
    """
    rows = await repository.get_package_channels(name, timeout=timeout)
    if not rows:
        raise _not_found(f"package {name} not found", name=name)

    first = rows[0]
    return PackageManifest(
        package_name=decoding.text(first, "package_name"),
        default_channel_name=decoding.text(first, "default_channel"),
        channels=tuple(decoding.package_channel(row) for row in rows),
    )


async def get_bundle_for_channel(
    package_name: str,
    channel_name: str,
    *,
    timeout: float | None = None,
) -> str:
    row = await repository.get_head_bundle(package_name, channel_name, timeout=timeout)
    if row is None:
        raise _not_found(
            f"no bundle found for {package_name} {channel_name}",
            package_name=package_name,
            channel_name=channel_name,
        )
    return decoding.text(row, "payload")


async def get_bundle_for_name(name: str, *, timeout: float | None = None) -> str:
    row = await repository.get_bundle(name, timeout=timeout)
    if row is None:
        raise _not_found(f"no bundle found named {name}", name=name)
    return decoding.text(row, "payload")


async def get_channel_entries_that_replace(
    name: str,
    *,
    timeout: float | None = None,
) -> list[ChannelEntry]:
    """
    What immediately upgrades from bundle `name`, in every channel it appears in.

    A bundle nothing replaces and a bundle that does not exist both raise
    `NotFound`.
    """
    rows = await repository.list_entries_replacing(name, timeout=timeout)
    entries = [decoding.channel_entry(row, replaces=name) for row in rows]
    if not entries:
        raise _not_found(f"no channel entries found that replace {name}", name=name)
    return entries


async def get_bundle_that_replaces(
    name: str,
    package_name: str,
    channel_name: str,
    *,
    timeout: float | None = None,
) -> str:
    row = await repository.get_replacement_bundle(name, package_name, channel_name, timeout=timeout)
    if row is None:
        raise _not_found(
            f"no bundle found that replaces {name}",
            name=name,
            package_name=package_name,
            channel_name=channel_name,
        )
    return decoding.text(row, "payload")


async def get_channel_entries_that_provide(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> list[ChannelEntry]:
    """
    Every channel entry, in any package or channel, whose bundle provides the API.
    """
    api = ApiKey(group=group, version=version, kind=kind)
    rows = await repository.list_entries_providing(group, version, kind, timeout=timeout)
    entries = [decoding.channel_entry(row) for row in rows]
    if not entries:
        raise _not_found(f"no channel entries found that provide {api}", group=group, version=version, kind=kind)
    return entries


async def get_latest_channel_entries_that_provide(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> list[ChannelEntry]:
    """
    Like `get_channel_entries_that_provide`, collapsed to the minimum-depth
    entry per (package, channel).

    Entries tied on depth are resolved by bundle name (lowest wins).
    """
    api = ApiKey(group=group, version=version, kind=kind)
    rows = await repository.list_latest_entries_providing(group, version, kind, timeout=timeout)
    entries = [decoding.channel_entry(row) for row in rows]
    if not entries:
        raise _not_found(f"no channel entries found that provide {api}", group=group, version=version, kind=kind)
    return entries


async def get_bundle_that_provides(
    group: str,
    version: str,
    kind: str,
    *,
    timeout: float | None = None,
) -> str:
    """
    Return the payload of the latest bundle providing the API from a
    package's default channel.

    Only the first (package, channel) group is returned; this does not check
    that a single package provides the API.
    """
    api = ApiKey(group=group, version=version, kind=kind)
    row = await repository.get_default_channel_provider(group, version, kind, timeout=timeout)
    if row is None or not decoding.is_present(row, "payload"):
        raise _not_found(f"no bundle found that provides {api}", group=group, version=version, kind=kind)

    payload = decoding.text(row, "payload")
    logger.debug(
        "catalog_provider_resolved api=%s package=%s channel=%s bundle=%s",
        api,
        decoding.text(row, "package_name"),
        decoding.text(row, "channel_name"),
        decoding.text(row, "bundle_name"),
    )
    return payload
