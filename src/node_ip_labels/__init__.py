"""Keep node labels in step with the addresses of a host interface.

The package holds the reconciliation engine of the node-ip agent:

* :mod:`~node_ip_labels.codec` turns an address into a ``node.ip/<token>``
  label key;
* :mod:`~node_ip_labels.reconciler` applies label changes to the remote node
  with an optimistic fetch/mutate/update loop that retries on version
  conflicts within a fixed time budget;
* :mod:`~node_ip_labels.store` describes the remote node contract, with a
  Kubernetes implementation in :mod:`~node_ip_labels.kube`.

Nothing here talks to netlink; the agent runtime in ``node_ip_agent`` feeds
addresses in.
"""

from .codec import LABEL_PREFIX, LABEL_VALUE, UNSUPPORTED_TOKEN, label_key  # noqa: F401
from .events import AddressEvent, EventKind  # noqa: F401
from .reconciler import Outcome, ReconcileResult, Reconciler  # noqa: F401
from .store import NodeStore, RemoteNode, RequestTimeout, VersionConflict  # noqa: F401

__all__ = [
    "AddressEvent",
    "EventKind",
    "LABEL_PREFIX",
    "LABEL_VALUE",
    "NodeStore",
    "Outcome",
    "ReconcileResult",
    "Reconciler",
    "RemoteNode",
    "RequestTimeout",
    "UNSUPPORTED_TOKEN",
    "VersionConflict",
    "label_key",
]
