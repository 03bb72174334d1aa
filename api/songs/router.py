"""
Song API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import PlainTextResponse

from core.config import Settings, get_settings

from . import schemas, service

router = APIRouter()


@router.post("/music", response_class=PlainTextResponse)
async def add_song(
    request: schemas.CreateSongRequest,
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    """
    Add a song, creating its group if needed, with details from the song info provider.
    """
    song_id = await service.create_song(request, settings=settings)
    return PlainTextResponse(f"Song with ID {song_id} has been added successfully")


@router.get("/music/{song_id}/text")
async def song_text(
    song_id: int = Path(..., ge=1, le=schemas.MAX_ID),
    page: int = Query(..., ge=1),
) -> dict:
    """
    Song lyrics, paginated by a fixed number of verses per page.
    """
    return await service.song_text_page(song_id, page)


@router.put("/music/{song_id}", response_class=PlainTextResponse)
async def update_song(
    payload: schemas.SongUpdate,
    song_id: int = Path(..., ge=1, le=schemas.MAX_ID),
) -> PlainTextResponse:
    await service.update_song(song_id, payload)
    return PlainTextResponse(f"Song with ID {song_id} has been updated successfully")


@router.delete("/music/{song_id}", response_class=PlainTextResponse)
async def delete_song(
    song_id: int = Path(..., ge=1, le=schemas.MAX_ID),
) -> PlainTextResponse:
    await service.delete_song(song_id)
    return PlainTextResponse(f"Song with ID {song_id} has been deleted")


@router.get("/songs")
async def list_songs(
    name: str = Query(default="", max_length=500),
    group_name: str = Query(default="", max_length=500),
    text: str = Query(default="", max_length=2000),
    release_date: str = Query(default="", max_length=10),
) -> dict:
    """
    List songs with their group, optionally filtered (all filters combine with AND).
    """
    return await service.list_songs(
        name=name,
        group_name=group_name,
        text=text,
        release_date=release_date,
    )
