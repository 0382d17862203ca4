"""Fold self-replies into the entry that started the conversation.

An incoming item threads when ``data["in_reply_to"]`` names the upstream id of a
post already stored in the same feed (the entry itself or the newest post merged
into it) and the author matches. Instead of becoming its own entry the item is
appended to the parent's ``data["thread"]`` and the parent's ``thread_tip`` moves
forward, so the next reply in the chain lands on the same parent.

A reply that is already part of the parent's thread is a re-delivery: it changes
nothing unless it carries ``update``, in which case the merged post is replaced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from entrysync.domain.model import ThreadPost

from .contracts import Clock, ItemOutcome, utcnow

if TYPE_CHECKING:
    from entrysync.domain.model import Entry, Feed, IncomingEntry
    from entrysync.domain.ports import ReceiverUnitOfWork

log = logging.getLogger(__name__)


def _same_author(parent: Entry, item: IncomingEntry) -> bool:
    if not parent.author or not item.author:
        return False
    return parent.author.strip().casefold() == item.author.strip().casefold()


def _as_post(item: IncomingEntry) -> ThreadPost:
    return ThreadPost(
        public_id=item.public_id,
        entry_id=item.entry_id,
        author=item.author,
        content=item.content,
        url=item.url,
        published=item.published,
    )


@dataclass(slots=True)
class ThreadResolver:
    clock: Clock = utcnow

    def thread(
        self, uow: ReceiverUnitOfWork, item: IncomingEntry, feed: Feed
    ) -> ItemOutcome | None:
        """Merge ``item`` into an existing thread.

        Returns ``THREADED`` for a newly merged post, ``UPDATED`` or ``DUPLICATE``
        for a post the parent already holds, and ``None`` when ``item`` is not a
        reply to anything stored.
        """

        reply_to = item.in_reply_to
        if reply_to is None or feed.id is None:
            return None

        entries = uow.repositories.entries
        parent = entries.find_thread_parent(feed_id=feed.id, reply_to=reply_to)
        if parent is None or not _same_author(parent, item):
            return None

        already_merged = any(post.get("public_id") == item.public_id for post in parent.thread)
        if already_merged and not item.update:
            log.debug("Entry %s already threaded into %s", item.public_id, parent.public_id)
            return ItemOutcome.DUPLICATE

        if already_merged:
            parent.replace_thread_post(_as_post(item), now=self.clock())
            outcome = ItemOutcome.UPDATED
        else:
            parent.append_thread_post(_as_post(item), now=self.clock())
            outcome = ItemOutcome.THREADED
        entries.save(parent)
        uow.commit()
        log.debug("Threaded %s into %s (%s)", item.public_id, parent.public_id, outcome)
        return outcome
