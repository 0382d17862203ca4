"""Entry aggregate and its revision state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, cast

from entrysync.domain.errors import RecordValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import timedelta

    from entrysync.domain.model.incoming import IncomingEntry

PUBLIC_ID_MAX_LENGTH = 255


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


@dataclass(frozen=True, slots=True, kw_only=True)
class OriginalSnapshot:
    """Entry fields as they were before the first update."""

    author: str | None
    content: str | None
    title: str | None
    url: str | None
    entry_id: str | None
    published: datetime | None
    data: dict[str, object]

    def to_payload(self) -> dict[str, object]:
        return {
            "author": self.author,
            "content": self.content,
            "title": self.title,
            "url": self.url,
            "entry_id": self.entry_id,
            "published": self.published.isoformat() if self.published else None,
            "data": dict(self.data),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> OriginalSnapshot:
        published = payload.get("published")
        data = payload.get("data")
        return cls(
            author=cast("str | None", payload.get("author")),
            content=cast("str | None", payload.get("content")),
            title=cast("str | None", payload.get("title")),
            url=cast("str | None", payload.get("url")),
            entry_id=cast("str | None", payload.get("entry_id")),
            published=datetime.fromisoformat(published) if isinstance(published, str) else None,
            data=dict(cast("dict[str, object]", data)) if isinstance(data, dict) else {},
        )


@dataclass(frozen=True, slots=True)
class Pristine:
    """Never updated with content to preserve."""


@dataclass(frozen=True, slots=True)
class Revised:
    """Updated at least once; ``snapshot`` is fixed for the life of the entry."""

    snapshot: OriginalSnapshot


type EntryState = Pristine | Revised


@dataclass(frozen=True, slots=True, kw_only=True)
class ThreadPost:
    """A reply merged into another entry instead of being stored on its own."""

    public_id: str
    entry_id: str | None
    author: str | None
    content: str | None
    url: str | None
    published: datetime | None

    def to_payload(self) -> dict[str, object]:
        return {
            "public_id": self.public_id,
            "entry_id": self.entry_id,
            "author": self.author,
            "content": self.content,
            "url": self.url,
            "published": self.published.isoformat() if self.published else None,
        }


@dataclass(eq=False, kw_only=True)
class Entry:
    feed_id: int
    public_id: str
    title: str | None = None
    url: str | None = None
    author: str | None = None
    content: str | None = None
    summary: str | None = None
    entry_id: str | None = None
    published: datetime | None = None
    data: dict[str, object] = field(default_factory=dict)
    # upstream id of the newest post merged into this entry's thread
    thread_tip: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    id: int | None = None

    # only written through apply_update; see ``state``
    _original: dict[str, object] | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.public_id or not self.public_id.strip():
            raise RecordValidationError("Entry public_id must not be blank")
        if len(self.public_id) > PUBLIC_ID_MAX_LENGTH:
            raise RecordValidationError(
                f"Entry public_id exceeds {PUBLIC_ID_MAX_LENGTH} characters"
            )

    @classmethod
    def from_incoming(
        cls,
        item: IncomingEntry,
        *,
        feed_id: int,
        summary: str | None,
        now: datetime,
    ) -> Entry:
        return cls(
            feed_id=feed_id,
            public_id=item.public_id,
            title=item.title,
            url=item.url,
            author=item.author,
            content=item.content,
            summary=summary,
            entry_id=item.entry_id,
            published=item.published,
            data=dict(item.data),
            thread_tip=item.entry_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def state(self) -> EntryState:
        if self._original is None:
            return Pristine()
        return Revised(OriginalSnapshot.from_payload(self._original))

    @property
    def original(self) -> OriginalSnapshot | None:
        state = self.state
        return state.snapshot if isinstance(state, Revised) else None

    @property
    def thread(self) -> list[dict[str, object]]:
        posts = self.data.get("thread")
        return list(cast("list[dict[str, object]]", posts)) if isinstance(posts, list) else []

    def snapshot(self) -> OriginalSnapshot:
        return OriginalSnapshot(
            author=self.author,
            content=self.content,
            title=self.title,
            url=self.url,
            entry_id=self.entry_id,
            published=self.published,
            data=dict(self.data),
        )

    def published_recently(self, *, now: datetime, window: timedelta) -> bool:
        """Whether the entry is young enough to accept upstream edits."""

        reference = self.published or self.created_at
        if reference is None:
            return False
        return _as_utc(reference) > _as_utc(now) - window

    def apply_update(self, item: IncomingEntry, *, summary: str | None, now: datetime) -> None:
        """Overwrite the upstream fields with ``item``.

        The first update of an entry that has content records the prior fields in
        its snapshot; later updates leave the snapshot alone. Posts threaded into
        the entry are kept.
        """

        if isinstance(self.state, Pristine) and self.content:
            self._original = self.snapshot().to_payload()

        self.author = item.author
        self.content = item.content
        self.title = item.title
        self.url = item.url
        self.entry_id = item.entry_id
        # upstream payloads never carry the posts merged into this entry
        thread = {"thread": self.data["thread"]} if "thread" in self.data else {}
        self.data = {**item.data, **thread}
        self.summary = summary
        self.updated_at = now

    def append_thread_post(self, post: ThreadPost, *, now: datetime) -> None:
        # reassign instead of mutating so the JSON column sees the change
        self.data = {**self.data, "thread": [*self.thread, post.to_payload()]}
        if post.entry_id:
            self.thread_tip = post.entry_id
        self.updated_at = now

    def replace_thread_post(self, post: ThreadPost, *, now: datetime) -> bool:
        """Swap in a newer version of a merged post. Returns whether it was found."""

        posts = self.thread
        for index, existing in enumerate(posts):
            if existing.get("public_id") == post.public_id:
                posts[index] = post.to_payload()
                self.data = {**self.data, "thread": posts}
                self.updated_at = now
                return True
        return False
