"""Mapping between interface addresses and node label keys."""

from __future__ import annotations

import ipaddress
import logging
from typing import Union

LOG = logging.getLogger(__name__)

LABEL_PREFIX = "node.ip"
LABEL_VALUE = "present"
UNSUPPORTED_TOKEN = "ipv6-unsupported"

Address = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def parse_address(value: Union[str, Address]) -> Address:
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
        return value
    return ipaddress.ip_address(str(value))


def address_token(address: Union[str, Address]) -> str:
    """Return the label-safe token for ``address``.

    IPv4 addresses are rendered dash-separated (``10.0.0.5`` becomes
    ``10-0-0-5``). Every other family collapses onto a single sentinel
    token, so the label only says that such an address exists.
    """

    ip = parse_address(address)
    if ip.version != 4:
        LOG.warning(
            "address %s is not IPv4, labelling it as %s", ip, UNSUPPORTED_TOKEN
        )
        return UNSUPPORTED_TOKEN
    return str(ip).replace(".", "-")


def label_key(address: Union[str, Address], prefix: str = LABEL_PREFIX) -> str:
    return f"{prefix}/{address_token(address)}"


def is_managed_key(key: str, prefix: str = LABEL_PREFIX) -> bool:
    return key.startswith(f"{prefix}/")
