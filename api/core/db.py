"""
Async catalog store access (raw SQL) using asyncpg.

This module owns the connection pool: the one shared handle every catalog
query runs against. Callers open it with `init_pool()` and release it with
`close_pool()`; closing and re-opening against another database is how a
caller swaps in an updated catalog.

The pool is read-only: every connection starts with
`default_transaction_read_only=on`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .errors import Cancelled, DeadlineExceeded, StoreError

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None

DEFAULT_POOL_MIN_SIZE = 1
DEFAULT_POOL_MAX_SIZE = 5
DEFAULT_COMMAND_TIMEOUT = 30.0


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def database_url() -> str:
    url = (
        os.environ.get("CATALOG_DATABASE_URL", "").strip()
        or os.environ.get("DATABASE_URL", "").strip()
    )
    if not url:
        raise StoreError("CATALOG_DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def pool_settings() -> dict[str, Any]:
    min_size = max(0, _env_int("CATALOG_POOL_MIN_SIZE", DEFAULT_POOL_MIN_SIZE))
    max_size = max(1, min_size, _env_int("CATALOG_POOL_MAX_SIZE", DEFAULT_POOL_MAX_SIZE))
    return {
        "min_size": min_size,
        "max_size": max_size,
        "command_timeout": _env_float("CATALOG_COMMAND_TIMEOUT", DEFAULT_COMMAND_TIMEOUT),
    }


async def init_pool(dsn: str | None = None) -> None:
    """
    Open the read-only pool against `dsn` (or the configured database URL).

    An unreachable or invalid locator raises `StoreError`. When concurrent
    callers race to open the pool, the first one wins and the others close
    the pool they created.
    """
    global _pool
    if _pool is not None:
        return None

    settings = pool_settings()
    try:
        opened = await asyncpg.create_pool(
            dsn=_sanitize_database_url(dsn) if dsn else database_url(),
            server_settings={"default_transaction_read_only": "on"},
            **settings,
        )
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        raise StoreError(f"Failed to open catalog store: {exc}") from exc

    if _pool is not None:
        await opened.close()
        logger.info("catalog_pool_discarded reason=already_open")
        return None
    _pool = opened

    logger.info(
        "catalog_pool_opened min_size=%s max_size=%s command_timeout=%s",
        settings["min_size"],
        settings["max_size"],
        settings["command_timeout"],
    )


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("catalog_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise StoreError("DB pool is not initialized. Call init_pool() first.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _first_line(sql: str) -> str:
    for line in sql.splitlines():
        if line.strip():
            return line.strip()
    return ""


async def _run(method: str, sql: str, args: tuple[Any, ...], timeout: float | None) -> Any:
    """
    Execute `pool().<method>(sql, *args)` and translate engine failures.

    asyncio.CancelledError is not caught: cancelling the awaiting task
    cancels the query.
    """
    try:
        return await getattr(pool(), method)(sql, *args, timeout=timeout)
    except asyncpg.QueryCanceledError as exc:
        logger.warning("catalog_query_cancelled query=%r", _first_line(sql))
        raise Cancelled(f"Query was cancelled: {exc}") from exc
    except asyncio.TimeoutError as exc:
        logger.warning("catalog_query_deadline_exceeded query=%r timeout=%s", _first_line(sql), timeout)
        raise DeadlineExceeded(f"Query did not complete within its deadline ({timeout}s).") from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
        logger.warning("catalog_query_failed query=%r error=%s", _first_line(sql), exc)
        raise StoreError(f"Catalog query failed: {exc}") from exc


async def fetch_one(sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    row = await _run("fetchrow", sql, args, timeout)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    rows = await _run("fetch", sql, args, timeout)
    return [_record_to_dict(r) for r in rows]
