"""Event-style delivery on top of a lookup future.

    client.lookup_events(urls).on("success", show).on("error", report)

Exactly one of the two events fires for a lookup. Handlers registered after
the lookup finished are called right away with the stored outcome.

Unlike an EventEmitter, an "error" with no handler is not raised anywhere;
it stays on `.future` (`events.future.exception()`), and `.error` exposes it
once the lookup is done.
"""

from __future__ import annotations

import threading
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, Optional

EVENTS = ("success", "error")

Handler = Callable[[Any], Any]


class LookupEvents:
    def __init__(self, future: Future[Any]) -> None:
        self.future = future
        self._lock = threading.Lock()
        self._handlers: dict[str, list[Handler]] = {name: [] for name in EVENTS}
        self._outcome: Optional[tuple[str, Any]] = None
        future.add_done_callback(self._dispatch)

    def on(self, event: str, handler: Handler) -> "LookupEvents":
        if event not in self._handlers:
            raise ValueError(f"Unknown event: {event!r} (expected one of {', '.join(EVENTS)})")

        with self._lock:
            outcome = self._outcome
            if outcome is None:
                self._handlers[event].append(handler)
                return self

        name, value = outcome
        if name == event:
            handler(value)
        return self

    @property
    def error(self) -> Optional[BaseException]:
        """The lookup error, or None while pending or after success."""
        with self._lock:
            outcome = self._outcome
        if outcome is None or outcome[0] != "error":
            return None
        return outcome[1]

    def _dispatch(self, future: Future[Any]) -> None:
        if future.cancelled():
            outcome: tuple[str, Any] = ("error", CancelledError())
        elif future.exception() is not None:
            outcome = ("error", future.exception())
        else:
            outcome = ("success", future.result())

        with self._lock:
            self._outcome = outcome
            handlers = list(self._handlers[outcome[0]])
            for hs in self._handlers.values():
                hs.clear()

        for handler in handlers:
            handler(outcome[1])
