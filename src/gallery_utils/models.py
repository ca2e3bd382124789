"""Records exchanged between the export reader, the matcher and the importers."""

from datetime import UTC, datetime
from datetime import date as calendar_date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PhotoRecord(BaseModel):
    """One photo from the export; ``uri`` is its identity key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uri: str = Field(min_length=1)
    taken_at: datetime = Field(alias="creation_timestamp")
    caption: str = Field(default="", alias="title")
    latitude: float | None = None
    longitude: float | None = None
    location: str | None = None
    new_path: Path | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_geolocation(cls, data: Any) -> Any:  # noqa: ANN401
        """Pull coordinates out of the nested ``media_metadata`` block of an export entry."""
        if not isinstance(data, dict) or "latitude" in data:
            return data
        photo_metadata = (data.get("media_metadata") or {}).get("photo_metadata") or {}
        candidates = [photo_metadata, *(photo_metadata.get("exif_data") or [])]
        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            if candidate.get("latitude") is not None and candidate.get("longitude") is not None:
                return {
                    **data,
                    "latitude": candidate["latitude"],
                    "longitude": candidate["longitude"],
                }
        return data

    @field_validator("taken_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def has_gps(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class AlbumMetadata(BaseModel):
    """Front matter of an album index document plus where the album lives."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    title: str | None = None
    date: str | None = None
    subtitle: str | None = None
    description: str | None = None
    hashtags: list[str]
    index_path: Path
    album_path: Path
    album_key: str
    updated: bool = False

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_iso(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, calendar_date):
            return value.isoformat()
        return value

    def front_matter_values(self) -> dict[str, Any]:
        """Return the fields written back when the index document is rewritten."""
        return {
            "title": self.title,
            "date": self.date,
            "subtitle": self.subtitle,
            "description": self.description,
            "hashtags": list(self.hashtags),
        }


# album key -> identity key -> photo
ImportSet = dict[str, dict[str, PhotoRecord]]
# identity key -> processed photo
ImportCache = dict[str, PhotoRecord]
# timestamp key -> album photo path
GalleryPhotoMap = dict[str, Path]
