"""
Scan progress events.

A scan produces, in order: for each root a StartingFolder followed by
FoundFile/ScannedFile events, then exactly one Complete. Consumers must not
assume any cadence; Complete is the only terminal event.
"""

import queue
from typing import Iterator, NamedTuple, Optional, Union


class StartingFolder(NamedTuple):
    root: str


class FoundFile(NamedTuple):
    found: int
    skipped: int
    path: str


class ScannedFile(NamedTuple):
    found: int
    skipped: int
    added: int
    updated: int
    path: str


class Complete(NamedTuple):
    found: int
    skipped: int
    added: int
    updated: int
    stale: list[str]


ProgressEvent = Union[StartingFolder, FoundFile, ScannedFile, Complete]


class ProgressChannel:
    """Unbounded single-producer/single-consumer event channel.

    The producer never blocks. The channel closes itself once Complete has
    been sent; later sends are rejected.
    """

    def __init__(self) -> None:
        self._queue: "queue.SimpleQueue[ProgressEvent]" = queue.SimpleQueue()
        self._closed = False
        self.result: Optional[Complete] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Progress channel already completed")
        if isinstance(event, Complete):
            self._closed = True
        self._queue.put(event)

    def receive(self, timeout: Optional[float] = None) -> ProgressEvent:
        """Block until the next event (queue.Empty on timeout)."""
        event = self._queue.get(timeout=timeout)
        if isinstance(event, Complete):
            self.result = event
        return event

    def drain(self) -> list[ProgressEvent]:
        """Return every event currently buffered without blocking."""
        events = []
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return events
            if isinstance(event, Complete):
                self.result = event
            events.append(event)

    def __iter__(self) -> Iterator[ProgressEvent]:
        """Iterate until (and including) the Complete event."""
        if self.result is not None:
            return
        while True:
            event = self.receive()
            yield event
            if isinstance(event, Complete):
                return
