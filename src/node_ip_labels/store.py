"""Abstract contract for the versioned remote node object."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class VersionConflict(Exception):
    """Raised when an update races with another writer of the node."""


class RequestTimeout(Exception):
    """Raised when a store request does not finish within its timeout."""


@dataclass
class RemoteNode:
    """Label set of a remote node plus its optimistic-lock version.

    ``raw`` holds whatever object the store needs to write the node back
    (a ``V1Node`` for Kubernetes). Callers only touch ``labels``.
    """

    name: str
    labels: Dict[str, str]
    version: str
    raw: Any = field(default=None, repr=False)


class NodeStore(ABC):
    """Get/update access to a node with optimistic concurrency."""

    @abstractmethod
    def get(self, name: str, timeout: Optional[float] = None) -> RemoteNode:
        """Fetch the current state of node ``name``."""

    @abstractmethod
    def update(self, node: RemoteNode, timeout: Optional[float] = None) -> None:
        """Write ``node`` back, guarded by ``node.version``.

        Raises :class:`VersionConflict` if the node changed since it was
        fetched and :class:`RequestTimeout` if the request ran out of time.
        Any other failure propagates unchanged.
        """
