"""Drive the reconciler from the interface address feed."""

from __future__ import annotations

import logging
from enum import Enum
from threading import Event
from typing import Optional

from node_ip_labels.events import AddressEvent
from node_ip_labels.reconciler import ReconcileResult, Reconciler

from .pump import END_OF_STREAM, EventPump, EventQueue, OverflowPolicy
from .sources.base import AddressSource

LOG = logging.getLogger(__name__)


class ControllerState(Enum):
    RESYNCING = "resyncing"
    WATCHING = "watching"
    STOPPED = "stopped"


class SyncController:
    """Resync node labels at startup, then follow address events.

    Events are handled one at a time in arrival order. A failed
    reconciliation is logged and the controller moves on to the next event;
    nothing is requeued.
    """

    def __init__(
        self,
        reconciler: Reconciler,
        source: AddressSource,
        interface: str,
        interface_index: int,
        *,
        stop_event: Optional[Event] = None,
        queue_size: int = 1024,
        overflow_policy: OverflowPolicy = OverflowPolicy.BLOCK,
        poll_interval: float = 0.5,
    ) -> None:
        self._reconciler = reconciler
        self._source = source
        self._interface = interface
        self._interface_index = interface_index
        self._stop_event = stop_event or Event()
        self._poll_interval = poll_interval
        self._queue = EventQueue(
            queue_size,
            overflow_policy,
            stop_event=self._stop_event,
            poll_interval=poll_interval,
        )
        self.state = ControllerState.RESYNCING

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> int:
        """Run until stopped; return the process exit code.

        The subscription is opened before the initial resync so changes that
        race with it are replayed afterwards.
        """

        pump = EventPump(self._source.subscribe(), self._queue, self._stop_event)
        pump.start()
        try:
            self.resync()
            self.state = ControllerState.WATCHING
            return self.watch()
        finally:
            self.state = ControllerState.STOPPED
            self._stop_event.set()
            self._source.close()
            pump.join(timeout=self._poll_interval * 2)

    def resync(self) -> ReconcileResult:
        self.state = ControllerState.RESYNCING
        addresses = self._source.list_current(self._interface)
        LOG.info("interface %s has addresses %s", self._interface, addresses)
        result = self._reconciler.full_resync(addresses)
        if not result.ok:
            # Steady-state events repair drift, so keep going.
            LOG.error(
                "initial resync of node %s failed (%s): %s",
                self._reconciler.node_name,
                result.outcome.value,
                result.error,
            )
        return result

    def watch(self) -> int:
        self.state = ControllerState.WATCHING
        LOG.info("watching address events on %s", self._interface)
        while not self._stop_event.is_set():
            item = self._queue.get(timeout=self._poll_interval)
            if item is None:
                continue
            if item is END_OF_STREAM:
                if self._stop_event.is_set():
                    break
                LOG.error(
                    "address event subscription ended; exiting so the agent "
                    "is restarted and resyncs"
                )
                return 1
            self.handle(item)
        LOG.info("stopped watching address events on %s", self._interface)
        return 0

    def handle(self, event: AddressEvent) -> Optional[ReconcileResult]:
        if event.interface_index != self._interface_index:
            LOG.debug(
                "ignoring %s of %s on interface index %d",
                event.kind.value,
                event.address,
                event.interface_index,
            )
            return None

        LOG.info(
            "address %s %s on %s", event.address, event.kind.value, self._interface
        )
        result = self._reconciler.apply_label(event.address, event.kind)
        if not result.ok:
            LOG.error(
                "failed to %s for address %s on node %s after %d attempt(s) "
                "(%s): %s",
                result.operation,
                event.address,
                self._reconciler.node_name,
                result.attempts,
                result.outcome.value,
                result.error,
            )
        return result
