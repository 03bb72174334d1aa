"""
Song API schemas (request models).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

# Largest value a Postgres bigint id can hold.
MAX_ID = 2**63 - 1

ISO_DATE_FORMAT = "%Y-%m-%d"

UPDATABLE_FIELDS = ("name", "release_date", "text", "group_id")


def parse_iso_date(value: Any) -> date:
    if not isinstance(value, str):
        raise ValueError("Invalid date format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value.strip(), ISO_DATE_FORMAT).date()
    except ValueError:
        raise ValueError("Invalid date format. Use YYYY-MM-DD") from None


class CreateSongRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    group: str = Field(..., min_length=1, max_length=500)
    song: str = Field(..., min_length=1, max_length=500)


class SongUpdate(BaseModel):
    """
    Partial update of a song.

    Only the recognized fields are accepted; which ones were actually sent is
    tracked by pydantic (`model_fields_set`), so absent fields stay untouched.
    """

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)] | None = None
    release_date: date | None = None
    text: str | None = None
    group_id: int | None = Field(default=None, ge=1, le=MAX_ID)

    @field_validator("name", "text", "group_id", mode="before")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("must not be null")
        return value

    @field_validator("release_date", mode="before")
    @classmethod
    def _parse_release_date(cls, value: Any) -> date:
        return parse_iso_date(value)

    def changes(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in UPDATABLE_FIELDS if name in self.model_fields_set}
