"""Ports for the non-storage collaborators of the reconciler."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@runtime_checkable
class DuplicateCache(Protocol):
    """Shared, expiring record of public ids seen recently.

    A hint for duplicate suppression, never the source of truth.
    """

    def exists(self, key: str) -> bool: ...

    def register(
        self,
        primary_key: str,
        content: str | None,
        alternate_key: str | None = None,
    ) -> None: ...


@runtime_checkable
class Sanitizer(Protocol):
    def strip(self, html: str) -> str:
        """Return the text content of ``html`` without markup."""
        ...


@runtime_checkable
class ErrorReporter(Protocol):
    def report(self, category: str, message: str, context: Mapping[str, object]) -> None:
        """Record a failure. Must not raise."""
        ...


@runtime_checkable
class Metrics(Protocol):
    def increment(self, name: str) -> None: ...
