"""
Relational schema the catalog resolver reads.

The resolver never creates or changes these tables; a separate catalog build
step does. `create_schema()` is provided for that step and for test fixtures.

Text columns are nullable on purpose: rows written by older catalog builders
may leave them empty, and the resolver decodes NULL text as "".
"""

from __future__ import annotations

import asyncpg

TABLES = ("api_provider", "channel_entry", "bundle", "channel", "package")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS package (
  name TEXT PRIMARY KEY,
  default_channel TEXT
);

CREATE TABLE IF NOT EXISTS channel (
  package_name TEXT NOT NULL,
  name TEXT NOT NULL,
  head_bundle_name TEXT,
  PRIMARY KEY (package_name, name)
);

CREATE TABLE IF NOT EXISTS bundle (
  name TEXT PRIMARY KEY,
  payload TEXT
);

CREATE TABLE IF NOT EXISTS channel_entry (
  entry_id BIGINT PRIMARY KEY,
  package_name TEXT,
  channel_name TEXT,
  bundle_name TEXT,
  replaces_entry_id BIGINT REFERENCES channel_entry (entry_id),
  depth INTEGER NOT NULL DEFAULT 0 CHECK (depth >= 0)
);

CREATE TABLE IF NOT EXISTS api_provider (
  channel_entry_id BIGINT NOT NULL REFERENCES channel_entry (entry_id),
  group_or_name TEXT NOT NULL,
  version TEXT NOT NULL,
  kind TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS channel_entry_bundle_idx
  ON channel_entry (bundle_name, package_name, channel_name);
CREATE INDEX IF NOT EXISTS channel_entry_replaces_idx
  ON channel_entry (replaces_entry_id);
CREATE INDEX IF NOT EXISTS api_provider_api_idx
  ON api_provider (group_or_name, version, kind);
"""


async def create_schema(conn: asyncpg.Connection) -> None:
    await conn.execute(SCHEMA_SQL)
