"""Shared fixtures: a scripted fake pool and a real Postgres catalog."""

from __future__ import annotations

import os
from typing import Any

import asyncpg
import pytest
import pytest_asyncio

from catalog.schema import TABLES, create_schema
from core import db


class FakePool:
    """Stands in for `asyncpg.Pool`: returns queued results in call order."""

    def __init__(self) -> None:
        self.results: list[Any] = []
        self.calls: list[tuple[str, str, tuple[Any, ...], float | None]] = []

    def queue(self, result: Any) -> FakePool:
        self.results.append(result)
        return self

    def _next(self, method: str, sql: str, args: tuple[Any, ...], timeout: float | None) -> Any:
        self.calls.append((method, sql, args, timeout))
        result = self.results.pop(0) if self.results else None
        if isinstance(result, BaseException):
            raise result
        return result

    async def fetch(self, sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        return self._next("fetch", sql, args, timeout) or []

    async def fetchrow(self, sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
        return self._next("fetchrow", sql, args, timeout)

    async def close(self) -> None:
        return None


@pytest.fixture
def fake_pool(monkeypatch: pytest.MonkeyPatch) -> FakePool:
    fake = FakePool()
    monkeypatch.setattr(db, "_pool", fake)
    return fake


class CatalogBuilder:
    """Writes catalog rows through a writable connection for integration tests."""

    def __init__(self, conn: Any) -> None:
        self.conn = conn
        self._next_entry_id = 1

    async def package(self, name: str, default_channel: str | None) -> None:
        await self.conn.execute(
            "INSERT INTO package (name, default_channel) VALUES ($1, $2)",
            name,
            default_channel,
        )

    async def channel(self, package_name: str, name: str, head_bundle_name: str | None) -> None:
        await self.conn.execute(
            "INSERT INTO channel (package_name, name, head_bundle_name) VALUES ($1, $2, $3)",
            package_name,
            name,
            head_bundle_name,
        )

    async def bundle(self, name: str, payload: str | None = None) -> None:
        await self.conn.execute(
            "INSERT INTO bundle (name, payload) VALUES ($1, $2) ON CONFLICT (name) DO NOTHING",
            name,
            payload if payload is not None else f"payload:{name}",
        )

    async def entry(
        self,
        package_name: str,
        channel_name: str,
        bundle_name: str,
        *,
        depth: int,
        replaces: int | None = None,
    ) -> int:
        entry_id = self._next_entry_id
        self._next_entry_id += 1
        await self.conn.execute(
            """
            INSERT INTO channel_entry
              (entry_id, package_name, channel_name, bundle_name, replaces_entry_id, depth)
            VALUES ($1, $2, $3, $4, $5, $6)
            """,
            entry_id,
            package_name,
            channel_name,
            bundle_name,
            replaces,
            depth,
        )
        return entry_id

    async def set_replaces(self, entry_id: int, replaced_entry_id: int) -> None:
        await self.conn.execute(
            "UPDATE channel_entry SET replaces_entry_id = $2 WHERE entry_id = $1",
            entry_id,
            replaced_entry_id,
        )

    async def provides(self, entry_id: int, group: str, version: str, kind: str) -> None:
        await self.conn.execute(
            """
            INSERT INTO api_provider (channel_entry_id, group_or_name, version, kind)
            VALUES ($1, $2, $3, $4)
            """,
            entry_id,
            group,
            version,
            kind,
        )

    async def chain(self, package_name: str, channel_name: str, bundle_names: list[str]) -> dict[str, int]:
        """
        Insert a replaces-chain, head first: bundle_names[0] is the channel
        head at depth 0 and replaces bundle_names[1], and so on.
        """
        ids: dict[str, int] = {}
        replaces: int | None = None
        for depth in range(len(bundle_names) - 1, -1, -1):
            name = bundle_names[depth]
            await self.bundle(name)
            replaces = await self.entry(package_name, channel_name, name, depth=depth, replaces=replaces)
            ids[name] = replaces
        return ids


async def _drop_tables(conn: Any) -> None:
    for table in TABLES:
        await conn.execute(f"DROP TABLE IF EXISTS {table} CASCADE")


@pytest_asyncio.fixture
async def catalog():
    url = os.environ.get("CATALOG_TEST_DATABASE_URL", "").strip()
    if not url:
        pytest.skip("CATALOG_TEST_DATABASE_URL is not set")

    conn = await asyncpg.connect(url)
    await _drop_tables(conn)
    await create_schema(conn)
    await db.init_pool(url)
    try:
        yield CatalogBuilder(conn)
    finally:
        await db.close_pool()
        await _drop_tables(conn)
        await conn.close()
