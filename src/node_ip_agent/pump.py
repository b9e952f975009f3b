"""Bounded hand-off between the address subscription and the controller."""

from __future__ import annotations

import logging
import queue
from enum import Enum
from threading import Event, Thread
from typing import Iterator, Optional, Union

from node_ip_labels.events import AddressEvent

LOG = logging.getLogger(__name__)


class OverflowPolicy(Enum):
    BLOCK = "block"
    DROP_OLDEST = "drop-oldest"


class EndOfStream:
    """Marker queued once the subscription stops producing events."""

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = EndOfStream()

QueueItem = Union[AddressEvent, EndOfStream]


class EventQueue:
    """FIFO of address events with an explicit overflow policy.

    ``BLOCK`` makes the producer wait for room, giving up only once
    ``stop_event`` is set. ``DROP_OLDEST`` evicts the head of the queue so
    the newest change is always kept.
    """

    def __init__(
        self,
        maxsize: int,
        policy: OverflowPolicy = OverflowPolicy.BLOCK,
        *,
        stop_event: Optional[Event] = None,
        poll_interval: float = 0.5,
    ) -> None:
        if maxsize < 1:
            raise ValueError("event queue size must be at least 1")
        self._queue: "queue.Queue[QueueItem]" = queue.Queue(maxsize)
        self._policy = policy
        self._stop_event = stop_event or Event()
        self._poll_interval = poll_interval
        self.dropped = 0

    def __len__(self) -> int:
        return self._queue.qsize()

    def put(self, item: QueueItem) -> bool:
        """Enqueue ``item``; return ``False`` if shutdown interrupted it."""

        if self._policy is OverflowPolicy.BLOCK:
            while True:
                try:
                    self._queue.put(item, timeout=self._poll_interval)
                    return True
                except queue.Full:
                    if self._stop_event.is_set():
                        return False

        while True:
            try:
                self._queue.put_nowait(item)
                return True
            except queue.Full:
                try:
                    dropped = self._queue.get_nowait()
                except queue.Empty:
                    continue
                self.dropped += 1
                LOG.warning("event queue full, dropped oldest event %s", dropped)

    def get(self, timeout: float) -> Optional[QueueItem]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def close(self) -> None:
        self.put(END_OF_STREAM)


class EventPump(Thread):
    """Drain a subscription iterator into an :class:`EventQueue`."""

    def __init__(
        self,
        events: Iterator[AddressEvent],
        event_queue: EventQueue,
        stop_event: Event,
    ) -> None:
        super().__init__(daemon=True, name="address-event-pump")
        self._events = events
        self._queue = event_queue
        self._stop_event = stop_event

    def run(self) -> None:
        try:
            for event in self._events:
                if self._stop_event.is_set():
                    break
                if not self._queue.put(event):
                    break
        except Exception:
            if not self._stop_event.is_set():
                LOG.exception("address event subscription failed")
        finally:
            LOG.debug("address event pump finished")
            self._queue.close()
