"""Pydantic models describing the feed refresh batch payload."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class BatchBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FeedPayload(BaseModel):
    """Feed identity plus whatever descriptive fields the refresher sent."""

    model_config = ConfigDict(extra="allow")

    id: int
    title: str | None = None
    feed_url: str | None = None
    site_url: str | None = None
    self_url: str | None = None
    options: dict[str, Any] | None = None

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude={"id"}, exclude_unset=True)


class EntryPayload(BatchBaseModel):
    public_id: str = Field(min_length=1, max_length=255)
    # kept raw: only a literal ``true`` asks for an update
    update: Any = None
    author: str | None = None
    content: str | None = None
    title: str | None = None
    url: str | None = None
    entry_id: str | None = None
    published: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("public_id")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("public_id must not be blank")
        return value

    @field_validator("entry_id", mode="before")
    @classmethod
    def _stringify_entry_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return _blank_to_none(value)

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, value: object) -> object:
        return {} if value is None else value

    @field_validator("published")
    @classmethod
    def _ensure_utc(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class BatchPayload(BatchBaseModel):
    feed: FeedPayload
    # validated one at a time so a bad item cannot sink the batch
    entries: list[Any] | None = None
