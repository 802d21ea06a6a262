"""Subscriptions — cancellation handles and the ordered subscriber list.

Invariants:
    - Subscription.unsubscribe() is idempotent and never raises
    - A notification pass iterates the list as it was when the pass began
    - An entry detached before its turn in a pass is skipped; others are
      notified exactly once per pass
    - A raising subscriber is logged and never stops the pass

Design Decisions:
    - Copy-on-iterate over copy-on-write: passes are short and subscriber
      counts small, so a tuple() copy per pass is simpler than shared arrays
    - Lock only guards list membership; callbacks run outside it so a
      subscriber may subscribe or unsubscribe from inside its own callback
"""

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]
CompleteCallback = Callable[[], None]


class Subscription:
    """Handle returned by every subscribe(). Also a context manager."""

    def __init__(self, on_unsubscribe: Callable[[], None] | None = None):
        self._on_unsubscribe = on_unsubscribe
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def unsubscribe(self) -> None:
        if self._closed:
            return
        self._closed = True
        callback, self._on_unsubscribe = self._on_unsubscribe, None
        if callback is not None:
            callback()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        return f"Subscription(closed={self._closed})"


class _Entry:
    """One registered subscriber. `active` flips to False on detach."""

    __slots__ = ("on_next", "on_complete", "active")

    def __init__(self, on_next: Callback, on_complete: CompleteCallback | None):
        self.on_next = on_next
        self.on_complete = on_complete
        self.active = True


class SubscriberList:
    """Ordered, thread-safe registry of callbacks for one notification source."""

    def __init__(self, label: str = ""):
        self._label = label
        self._entries: list[_Entry] = []
        self._lock = threading.Lock()
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(
        self, on_next: Callback, on_complete: CompleteCallback | None = None,
    ) -> Subscription:
        """Register a subscriber. On a closed list, completes it immediately."""
        entry = _Entry(on_next, on_complete)
        with self._lock:
            if not self._closed:
                self._entries.append(entry)
                return Subscription(lambda: self._remove(entry))
        subscription = Subscription()
        subscription.unsubscribe()
        if on_complete is not None:
            on_complete()
        return subscription

    def _remove(self, entry: _Entry) -> None:
        entry.active = False
        with self._lock:
            try:
                self._entries.remove(entry)
            except ValueError:
                pass  # already dropped by close()

    def entries(self) -> tuple[_Entry, ...]:
        """Current membership, for a pass that starts later."""
        with self._lock:
            return tuple(self._entries)

    def notify(self, value: Any, entries: tuple[_Entry, ...] | None = None) -> int:
        """Deliver value to every entry registered when the pass began.

        ``entries`` pins the membership captured earlier via entries().
        Returns the number of subscribers actually called.
        """
        if entries is None:
            entries = self.entries()
        delivered = 0
        for entry in entries:
            if not entry.active:
                continue
            delivered += 1
            try:
                entry.on_next(value)
            except Exception:
                logger.exception(
                    f"Subscriber callback failed on {self._label or 'stream'}",
                )
        return delivered

    def close(self) -> None:
        """Detach every subscriber and call its completion callback once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            entries, self._entries = self._entries, []
        for entry in entries:
            if not entry.active:
                continue
            entry.active = False
            if entry.on_complete is None:
                continue
            try:
                entry.on_complete()
            except Exception:
                logger.exception(
                    f"Completion callback failed on {self._label or 'stream'}",
                )
