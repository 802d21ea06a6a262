"""Event Channel — named, fire-and-forget notifications beside the snapshot.

Invariants:
    - emit() reaches only subscribers registered for that name when it is called
    - No buffering, no replay: a listener registered after emit() sees nothing of it
    - Each listener receives each emission at most once
    - A name is tracked only while it has listeners; the last unsubscribe
      forgets it, so caller-chosen names never accumulate
"""

import logging
import threading
from typing import Any

from statebox.core.stream import Stream
from statebox.core.subscription import SubscriberList, Subscription

logger = logging.getLogger(__name__)


class EventChannel:
    """Per-name subscriber lists, alive while the name has listeners."""

    def __init__(self, label: str = "events"):
        self._label = label
        self._channels: dict[str, SubscriberList] = {}
        self._lock = threading.Lock()
        self._closed = False

    def emit(self, name: str, payload: Any = None) -> None:
        _check_name(name)
        with self._lock:
            channel = self._channels.get(name)
        delivered = channel.notify(payload) if channel is not None else 0
        logger.debug(
            f"Emitted '{name}' to {delivered} listener(s)",
            extra={"store": self._label, "event_name": name},
        )

    def listen(self, name: str) -> Stream[Any]:
        _check_name(name)

        def subscribe(on_next, on_complete=None):
            return self._add(name, on_next, on_complete)
        return Stream(subscribe, f"{self._label}:{name}")

    def listener_count(self, name: str) -> int:
        with self._lock:
            channel = self._channels.get(name)
        return len(channel) if channel is not None else 0

    @property
    def channel_count(self) -> int:
        """Names that currently have at least one listener."""
        with self._lock:
            return len(self._channels)

    def _add(self, name: str, on_next, on_complete) -> Subscription:
        label = f"{self._label}:{name}"
        with self._lock:
            if not self._closed:
                channel = self._channels.get(name)
                if channel is None:
                    channel = self._channels[name] = SubscriberList(label)
                inner = channel.add(on_next, on_complete)

                def release() -> None:
                    inner.unsubscribe()
                    self._release(name, channel)
                return Subscription(release)
        # Closed: complete the listener immediately, outside the lock
        finished = SubscriberList(label)
        finished.close()
        return finished.add(on_next, on_complete)

    def _release(self, name: str, channel: SubscriberList) -> None:
        with self._lock:
            if self._channels.get(name) is channel and len(channel) == 0:
                del self._channels[name]

    def close(self) -> None:
        with self._lock:
            self._closed = True
            channels, self._channels = list(self._channels.values()), {}
        for channel in channels:
            channel.close()


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not name:
        raise ValueError(f"Event name must be a non-empty string, got {name!r}")
