"""
Song and group persistence (raw SQL).

Functions taking a `conn` run on a caller-owned connection, so they can be
composed inside one transaction (see `service.create_song`).
"""

from __future__ import annotations

from datetime import date
from typing import Any

import asyncpg

from core import db

SONG_COLUMNS = "id, name, release_date, text, group_id"

# Column name for each updatable field; keeps user keys out of the SQL text.
_UPDATE_COLUMNS = {
    "name": "name",
    "release_date": "release_date",
    "text": "text",
    "group_id": "group_id",
}


def _contains_pattern(value: str) -> str:
    """
    ILIKE pattern matching `value` anywhere, with LIKE wildcards taken literally.
    """
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def list_songs(
    *,
    name: str = "",
    group_name: str = "",
    text: str = "",
    release_date: date | None = None,
) -> list[dict[str, Any]]:
    """
    Songs joined with their group, narrowed by every non-empty filter.
    """
    conditions: list[str] = []
    args: list[Any] = []

    if name:
        args.append(_contains_pattern(name))
        conditions.append(f"s.name ILIKE ${len(args)}")
    if group_name:
        args.append(_contains_pattern(group_name))
        conditions.append(f"g.name ILIKE ${len(args)}")
    if text:
        args.append(_contains_pattern(text))
        conditions.append(f"s.text ILIKE ${len(args)}")
    if release_date is not None:
        args.append(release_date)
        conditions.append(f"s.release_date = ${len(args)}")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    return await db.fetch_all(
        f"""
        SELECT
          s.id,
          s.name,
          s.release_date,
          s.text,
          g.id AS group_id,
          g.name AS group_name
        FROM songs s
        JOIN groups g ON g.id = s.group_id
        {where}
        ORDER BY s.id
        """,
        *args,
    )


async def get_song(song_id: int) -> dict[str, Any] | None:
    return await db.fetch_one(
        f"""
        SELECT {SONG_COLUMNS}
        FROM songs
        WHERE id = $1
        """,
        song_id,
    )


async def update_song(song_id: int, changes: dict[str, Any]) -> dict[str, Any] | None:
    """
    Write only the given fields. Returns the updated row, or None when the
    song does not exist.
    """
    if not changes:
        return await get_song(song_id)

    assignments: list[str] = []
    args: list[Any] = [song_id]
    for field, value in changes.items():
        column = _UPDATE_COLUMNS[field]
        args.append(value)
        assignments.append(f"{column} = ${len(args)}")

    return await db.fetch_one(
        f"""
        UPDATE songs
        SET {', '.join(assignments)}
        WHERE id = $1
        RETURNING {SONG_COLUMNS}
        """,
        *args,
    )


async def delete_song(song_id: int) -> bool:
    """
    Delete a song. Returns False when no row matched.
    """
    row = await db.fetch_one(
        """
        DELETE FROM songs
        WHERE id = $1
        RETURNING id
        """,
        song_id,
    )
    return row is not None


async def find_group_id(conn: asyncpg.Connection, name: str) -> int | None:
    group_id = await conn.fetchval("SELECT id FROM groups WHERE name = $1", name)
    return int(group_id) if group_id is not None else None


async def resolve_group_id(conn: asyncpg.Connection, name: str) -> int:
    """
    Id of the group called `name`, inserting the group when it is missing.

    A concurrent creator may insert the same name first; the unique
    constraint turns our insert into a no-op and the id is re-read.
    """
    group_id = await find_group_id(conn, name)
    if group_id is not None:
        return group_id

    group_id = await conn.fetchval(
        """
        INSERT INTO groups (name)
        VALUES ($1)
        ON CONFLICT (name) DO NOTHING
        RETURNING id
        """,
        name,
    )
    if group_id is None:
        group_id = await find_group_id(conn, name)
    if group_id is None:
        raise RuntimeError(f"Failed to resolve group {name!r}.")
    return int(group_id)


async def insert_song(
    conn: asyncpg.Connection,
    *,
    name: str,
    release_date: date,
    text: str,
    group_id: int,
) -> int:
    song_id = await conn.fetchval(
        """
        INSERT INTO songs (name, release_date, text, group_id)
        VALUES ($1, $2, $3, $4)
        RETURNING id
        """,
        name,
        release_date,
        text,
        group_id,
    )
    if song_id is None:
        raise RuntimeError("Failed to insert song.")
    return int(song_id)
