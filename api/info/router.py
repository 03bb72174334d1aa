"""
Built-in song info provider endpoint.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, status

from . import catalog

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/info")
async def song_info(
    group: str = Query(default="", max_length=500),
    song: str = Query(default="", max_length=500),
) -> dict:
    """
    Release date (DD.MM.YYYY), lyrics and link for a song.
    """
    group, song = group.strip(), song.strip()
    if not group or not song:
        logger.error("song_info_missing_params group=%r song=%r", group, song)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing 'group' or 'song' parameter",
        )
    return catalog.lookup(group, song)
