"""Abstract interface for host address sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List

from node_ip_labels.codec import Address
from node_ip_labels.events import AddressEvent


class InterfaceNotFound(LookupError):
    """Raised when the configured interface does not exist on the host."""

    def __init__(self, interface: str) -> None:
        super().__init__(f"interface '{interface}' not found")
        self.interface = interface


class AddressSource(ABC):
    """Snapshot and change feed for the addresses of host interfaces."""

    @abstractmethod
    def link_index(self, interface: str) -> int:
        """Return the kernel index of ``interface``."""

    @abstractmethod
    def list_current(self, interface: str) -> List[Address]:
        """Return the IPv4 addresses currently assigned to ``interface``."""

    @abstractmethod
    def subscribe(self) -> Iterator[AddressEvent]:
        """Yield address changes for every interface on the host.

        The iterator is not restartable; once it ends no more events will be
        delivered from it.
        """

    def close(self) -> None:
        """Release resources held by the source."""
