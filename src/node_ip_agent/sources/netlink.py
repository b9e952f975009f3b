"""Netlink address source backed by pyroute2."""

from __future__ import annotations

import ipaddress
import logging
import socket
from threading import Lock
from typing import Callable, Iterator, List, Optional

from pyroute2 import IPRoute
from pyroute2.netlink.rtnl import RTMGRP_IPV4_IFADDR, RTMGRP_IPV6_IFADDR

from node_ip_labels.codec import Address
from node_ip_labels.events import AddressEvent, EventKind

from .base import AddressSource, InterfaceNotFound

LOG = logging.getLogger(__name__)

EVENT_KINDS = {
    "RTM_NEWADDR": EventKind.ADDED,
    "RTM_DELADDR": EventKind.REMOVED,
}


def address_from_message(msg) -> Optional[Address]:
    """Extract the interface address from an ``ifaddrmsg``.

    IPv4 keeps the local address in IFA_LOCAL (IFA_ADDRESS holds the peer on
    point-to-point links); IPv6 only sets IFA_ADDRESS.
    """

    value = msg.get_attr("IFA_LOCAL") or msg.get_attr("IFA_ADDRESS")
    if not value:
        return None
    return ipaddress.ip_address(value)


def event_from_message(msg) -> Optional[AddressEvent]:
    kind = EVENT_KINDS.get(msg.get("event"))
    if kind is None:
        return None
    address = address_from_message(msg)
    if address is None:
        LOG.debug("ignoring %s without an address", msg.get("event"))
        return None
    return AddressEvent(
        address=address, kind=kind, interface_index=int(msg.get("index"))
    )


class NetlinkAddressSource(AddressSource):
    """Read interface addresses and address events over rtnetlink."""

    def __init__(self, iproute_factory: Callable[[], IPRoute] = IPRoute) -> None:
        self._iproute_factory = iproute_factory
        self._monitor: Optional[IPRoute] = None
        self._lock = Lock()

    @staticmethod
    def _lookup(ipr: IPRoute, interface: str) -> int:
        links = ipr.link_lookup(ifname=interface)
        if not links:
            raise InterfaceNotFound(interface)
        return links[0]

    def link_index(self, interface: str) -> int:
        with self._iproute_factory() as ipr:
            return self._lookup(ipr, interface)

    def list_current(self, interface: str) -> List[Address]:
        with self._iproute_factory() as ipr:
            index = self._lookup(ipr, interface)
            messages = ipr.get_addr(family=socket.AF_INET, index=index)
            addresses = [address_from_message(msg) for msg in messages]
        return [addr for addr in addresses if addr is not None]

    def subscribe(self) -> Iterator[AddressEvent]:
        # Bind before returning so no change between subscribe() and the
        # first read is missed.
        ipr = self._iproute_factory()
        ipr.bind(groups=RTMGRP_IPV4_IFADDR | RTMGRP_IPV6_IFADDR)
        with self._lock:
            self._monitor = ipr
        LOG.info("Subscribed to netlink address events")
        return self._events(ipr)

    def _events(self, ipr: IPRoute) -> Iterator[AddressEvent]:
        try:
            while self._monitor is ipr:
                for msg in ipr.get():
                    event = event_from_message(msg)
                    if event is not None:
                        yield event
        finally:
            with self._lock:
                if self._monitor is ipr:
                    self._monitor = None
            ipr.close()

    def close(self) -> None:
        with self._lock:
            monitor, self._monitor = self._monitor, None
        if monitor is not None:
            monitor.close()
