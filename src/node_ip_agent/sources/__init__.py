"""Address sources used by the node-ip agent."""

from .base import AddressSource, InterfaceNotFound  # noqa: F401
from .netlink import NetlinkAddressSource  # noqa: F401

__all__ = ["AddressSource", "InterfaceNotFound", "NetlinkAddressSource"]
