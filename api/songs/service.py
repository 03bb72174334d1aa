"""
Song business logic.

Flow for creation:
1) Ask the song info provider for release date, lyrics and link
2) In one transaction: find-or-create the group, parse the date, insert the song
3) Any failure rolls the whole transaction back
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import asyncpg
from fastapi import HTTPException, status

from core import db, song_info
from core.config import Settings

from . import repository, schemas

VERSES_PER_PAGE = 2

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_errors(detail: str) -> AsyncIterator[None]:
    """
    Turn store failures inside the block into a logged 500.
    """
    try:
        yield
    except db.STORE_ERRORS as exc:
        logger.error("store_failed detail=%r error=%s", detail, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        ) from exc


def paginate_verses(text: str, page: int, *, per_page: int = VERSES_PER_PAGE) -> list[str] | None:
    """
    Verses on 1-based `page`, or None when the page starts past the last verse.
    """
    verses = (text or "").split("\n")
    start = (page - 1) * per_page
    if page < 1 or start >= len(verses):
        return None
    return verses[start : start + per_page]


def _not_found(song_id: int) -> HTTPException:
    logger.info("song_not_found song_id=%s", song_id)
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Song with ID {song_id} not found",
    )


async def list_songs(
    *,
    name: str = "",
    group_name: str = "",
    text: str = "",
    release_date: str = "",
) -> dict[str, Any]:
    name, group_name, text, release_date = (
        (name or "").strip(),
        (group_name or "").strip(),
        (text or "").strip(),
        (release_date or "").strip(),
    )

    parsed_date = None
    if release_date:
        try:
            parsed_date = schemas.parse_iso_date(release_date)
        except ValueError as exc:
            logger.error("invalid_release_date_filter value=%r", release_date)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid release_date. Use YYYY-MM-DD",
            ) from exc

    logger.info(
        "listing_songs name=%r group_name=%r text=%r release_date=%r",
        name,
        group_name,
        text,
        release_date,
    )
    async with store_errors("Failed to fetch songs"):
        rows = await repository.list_songs(
            name=name,
            group_name=group_name,
            text=text,
            release_date=parsed_date,
        )

    if not rows:
        logger.info("no_songs_found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No songs found")

    songs = [
        {
            "id": int(row["id"]),
            "name": str(row["name"]),
            "release_date": row["release_date"],
            "text": str(row["text"]),
            "group_id": int(row["group_id"]),
            "group_name": str(row["group_name"]),
        }
        for row in rows
    ]
    return {
        "group": {"id": songs[0]["group_id"], "name": songs[0]["group_name"]},
        "songs": songs,
    }


async def song_text_page(song_id: int, page: int) -> dict[str, Any]:
    async with store_errors("Failed to fetch song"):
        song = await repository.get_song(song_id)
    if song is None:
        raise _not_found(song_id)

    verses = paginate_verses(str(song["text"]), page)
    if verses is None:
        logger.error("page_exceeds_verses song_id=%s page=%s", song_id, page)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Page exceeds total verses",
        )

    return {
        "song_id": int(song["id"]),
        "title": str(song["name"]),
        "page": page,
        "verses": verses,
    }


async def create_song(payload: schemas.CreateSongRequest, *, settings: Settings) -> int:
    group_name, song_name = payload.group, payload.song
    logger.info("fetching_song_info group=%r song=%r url=%s", group_name, song_name, settings.song_info_url)

    try:
        detail = await song_info.fetch_song_detail(
            base_url=settings.song_info_url,
            group=group_name,
            song=song_name,
            timeout_s=settings.song_info_timeout_s,
        )
    except song_info.SongInfoFetchError as exc:
        logger.error("song_info_fetch_failed group=%r song=%r error=%s", group_name, song_name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch song info",
        ) from exc
    except song_info.SongInfoParseError as exc:
        logger.error("song_info_parse_failed group=%r song=%r error=%s", group_name, song_name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to parse song info",
        ) from exc

    try:
        async with store_errors("Failed to add song"):
            async with db.transaction() as conn:
                group_id = await repository.resolve_group_id(conn, group_name)
                release_date = song_info.parse_release_date(detail.release_date)
                song_id = await repository.insert_song(
                    conn,
                    name=song_name,
                    release_date=release_date,
                    text=detail.text,
                    group_id=group_id,
                )
    except song_info.SongInfoParseError as exc:
        logger.error("invalid_provider_date group=%r song=%r error=%s", group_name, song_name, exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid release date from song info provider",
        ) from exc

    logger.info("song_added song_id=%s group_id=%s", song_id, group_id)
    return song_id


async def update_song(song_id: int, payload: schemas.SongUpdate) -> int:
    changes = payload.changes()
    logger.info("updating_song song_id=%s fields=%s", song_id, sorted(changes))

    async with store_errors(f"Failed to update song with ID {song_id}"):
        try:
            row = await repository.update_song(song_id, changes)
        except asyncpg.exceptions.ForeignKeyViolationError as exc:
            logger.error("unknown_group song_id=%s group_id=%s", song_id, changes.get("group_id"))
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Group with ID {changes.get('group_id')} not found",
            ) from exc
    if row is None:
        raise _not_found(song_id)

    logger.info("song_updated song_id=%s", song_id)
    return song_id


async def delete_song(song_id: int) -> int:
    logger.info("deleting_song song_id=%s", song_id)
    async with store_errors(f"Failed to delete song with ID {song_id}"):
        deleted = await repository.delete_song(song_id)

    if deleted:
        logger.info("song_deleted song_id=%s", song_id)
    else:
        logger.info("song_delete_no_match song_id=%s nothing deleted", song_id)
    return song_id
