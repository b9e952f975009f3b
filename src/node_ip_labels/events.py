"""Address change primitives produced by address sources."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .codec import Address


class EventKind(Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class AddressEvent:
    """A single address appearing on or leaving a host interface.

    Sources report events for every interface on the host; consumers are
    expected to filter on ``interface_index``.
    """

    address: Address
    kind: EventKind
    interface_index: int
