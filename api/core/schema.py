"""
Schema bootstrap, run once at startup.

Statements are idempotent so restarts against an existing database are safe.
"""

from __future__ import annotations

import logging

from . import db

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS groups (
      id bigserial PRIMARY KEY,
      name text NOT NULL,
      CONSTRAINT groups_name_key UNIQUE (name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS songs (
      id bigserial PRIMARY KEY,
      name text NOT NULL,
      release_date date NOT NULL,
      text text NOT NULL,
      group_id bigint NOT NULL REFERENCES groups (id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS songs_group_id_idx ON songs (group_id)",
)


async def ensure_schema() -> None:
    async with db.transaction() as conn:
        for statement in SCHEMA_STATEMENTS:
            await conn.execute(statement)
    logger.info("schema_ready tables=groups,songs")
