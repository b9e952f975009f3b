"""Optimistic read-modify-write reconciliation of node address labels.

Every public operation follows the same protocol: fetch the node, derive the
desired label set from the freshly fetched copy with a pure mutation, and
write it back guarded by the node's version. A version conflict restarts the
cycle from a new fetch until the per-call time budget runs out; any other
failure aborts the call immediately.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional

from .codec import LABEL_PREFIX, LABEL_VALUE, Address, is_managed_key, label_key
from .events import EventKind
from .store import NodeStore, RequestTimeout, VersionConflict

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

Labels = Dict[str, str]
Mutation = Callable[[Mapping[str, str]], Labels]


class Outcome(Enum):
    SUCCESS = "success"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"
    ERROR = "error"


@dataclass(frozen=True)
class ReconcileResult:
    """Final outcome of one reconciler call."""

    operation: str
    outcome: Outcome
    attempts: int
    labels: Optional[Labels] = None
    error: Optional[BaseException] = None
    changed: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS


class _Attempt(NamedTuple):
    outcome: Outcome
    labels: Optional[Labels] = None
    error: Optional[BaseException] = None
    changed: bool = False


# ----------------------------------------------------------------------
# Pure label mutations
# ----------------------------------------------------------------------
def resync_labels(
    labels: Mapping[str, str], keys: Iterable[str], prefix: str = LABEL_PREFIX
) -> Labels:
    """Drop every managed key from ``labels`` and mark ``keys`` present."""

    desired = {k: v for k, v in labels.items() if not is_managed_key(k, prefix)}
    for key in keys:
        desired[key] = LABEL_VALUE
    return desired


def add_label(labels: Mapping[str, str], key: str) -> Labels:
    desired = dict(labels)
    desired[key] = LABEL_VALUE
    return desired


def remove_label(labels: Mapping[str, str], key: str) -> Labels:
    desired = dict(labels)
    desired.pop(key, None)
    return desired


class Reconciler:
    """Apply address label changes to a single remote node."""

    def __init__(
        self,
        store: NodeStore,
        node_name: str,
        *,
        prefix: str = LABEL_PREFIX,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if timeout <= 0:
            raise ValueError("reconcile timeout must be positive")
        self._store = store
        self._node_name = node_name
        self._prefix = prefix
        self._timeout = timeout
        self._clock = clock

    @property
    def node_name(self) -> str:
        return self._node_name

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def full_resync(self, addresses: Iterable[Address]) -> ReconcileResult:
        """Replace every managed label with the ones for ``addresses``."""

        keys: List[str] = [label_key(a, self._prefix) for a in addresses]
        LOG.info(
            "Resyncing node %s with %d address label(s): %s",
            self._node_name,
            len(keys),
            keys,
        )
        return self._reconcile(
            "full-resync", lambda labels: resync_labels(labels, keys, self._prefix)
        )

    def apply_label(self, address: Address, kind: EventKind) -> ReconcileResult:
        key = label_key(address, self._prefix)
        if kind is EventKind.ADDED:
            return self._reconcile(f"add {key}", lambda labels: add_label(labels, key))
        if kind is EventKind.REMOVED:
            return self._reconcile(
                f"remove {key}", lambda labels: remove_label(labels, key)
            )
        raise TypeError(f"Unsupported event kind: {kind!r}")

    # ------------------------------------------------------------------
    # Retry protocol
    # ------------------------------------------------------------------
    def _reconcile(self, operation: str, mutate: Mutation) -> ReconcileResult:
        start = self._clock()
        attempts = 0
        last_error: Optional[BaseException] = None

        while True:
            remaining = self._timeout - (self._clock() - start)
            if remaining <= 0:
                LOG.error(
                    "%s on node %s timed out after %d attempt(s)",
                    operation,
                    self._node_name,
                    attempts,
                )
                return ReconcileResult(
                    operation, Outcome.TIMEOUT, attempts, error=last_error
                )

            attempts += 1
            attempt = self._attempt(mutate, start, remaining)

            if attempt.outcome is Outcome.CONFLICT:
                LOG.info(
                    "version mismatch on node %s during %s, trying again",
                    self._node_name,
                    operation,
                )
                last_error = attempt.error
                continue

            return ReconcileResult(
                operation,
                attempt.outcome,
                attempts,
                labels=attempt.labels,
                error=attempt.error,
                changed=attempt.changed,
            )

    def _attempt(self, mutate: Mutation, start: float, remaining: float) -> _Attempt:
        try:
            node = self._store.get(self._node_name, timeout=remaining)
        except RequestTimeout as exc:
            LOG.error("timed out getting node %s: %s", self._node_name, exc)
            return _Attempt(Outcome.TIMEOUT, error=exc)
        except Exception as exc:
            LOG.error("failed to get node %s: %s", self._node_name, exc)
            return _Attempt(Outcome.ERROR, error=exc)

        current = dict(node.labels)
        desired = mutate(current)
        if desired == current:
            LOG.debug("labels on node %s already up to date", self._node_name)
            return _Attempt(Outcome.SUCCESS, labels=desired)

        node.labels = desired
        try:
            self._store.update(
                node, timeout=self._timeout - (self._clock() - start)
            )
        except VersionConflict as exc:
            return _Attempt(Outcome.CONFLICT, error=exc)
        except RequestTimeout as exc:
            LOG.error("timed out updating node %s: %s", self._node_name, exc)
            return _Attempt(Outcome.TIMEOUT, error=exc)
        except Exception as exc:
            LOG.error("failed to update node %s: %s", self._node_name, exc)
            return _Attempt(Outcome.ERROR, error=exc)

        for key in sorted(set(desired) - set(current)):
            LOG.info("added label %s to node %s", key, self._node_name)
        for key in sorted(set(current) - set(desired)):
            LOG.info("removed label %s from node %s", key, self._node_name)
        return _Attempt(Outcome.SUCCESS, labels=desired, changed=True)
