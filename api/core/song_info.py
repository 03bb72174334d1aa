"""
Song info provider HTTP client.

Used endpoint:
- GET /info?group=...&song=...  -> {"releaseDate": "DD.MM.YYYY", "text": "...", "link": "..."}
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

PROVIDER_DATE_FORMAT = "%d.%m.%Y"


# Provider failures are explicit and separable from other runtime errors.
class SongInfoError(RuntimeError):
    pass


class SongInfoFetchError(SongInfoError):
    pass


class SongInfoParseError(SongInfoError):
    pass


class SongDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True, strict=True)

    release_date: str = Field(..., alias="releaseDate")
    text: str
    link: str = ""


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise SongInfoFetchError("SONG_INFO_URL is empty.")
    return base_url.rstrip("/")


async def fetch_song_detail(
    *,
    base_url: str,
    group: str,
    song: str,
    timeout_s: float = 10.0,
) -> SongDetail:
    """
    Ask the provider for release date, lyrics and link of `song` by `group`.
    """
    base_url = _normalize_base_url(base_url)

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s) as client:
            resp = await client.get("/info", params={"group": group, "song": song})
    except httpx.HTTPError as exc:
        raise SongInfoFetchError(f"Song info request failed: {exc}") from exc

    if not resp.is_success:
        body = resp.text[:300]
        raise SongInfoFetchError(f"Song info request failed: {resp.status_code} {body}")

    try:
        data: Any = resp.json()
    except ValueError as exc:
        raise SongInfoParseError("Song info response is not valid JSON.") from exc

    if not isinstance(data, dict):
        raise SongInfoParseError("Song info response is not a JSON object.")

    try:
        return SongDetail.model_validate(data)
    except ValidationError as exc:
        raise SongInfoParseError(f"Song info response is malformed: {exc.error_count()} error(s).") from exc


def parse_release_date(value: str) -> date:
    """
    Parse the provider's DD.MM.YYYY release date.
    """
    try:
        return datetime.strptime((value or "").strip(), PROVIDER_DATE_FORMAT).date()
    except ValueError as exc:
        raise SongInfoParseError(f"Invalid release date {value!r}, expected DD.MM.YYYY.") from exc
