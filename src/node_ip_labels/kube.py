"""Kubernetes-backed node store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from urllib3.exceptions import MaxRetryError
from urllib3.exceptions import TimeoutError as Urllib3Timeout

from .store import NodeStore, RemoteNode, RequestTimeout, VersionConflict

LOG = logging.getLogger(__name__)

HTTP_CONFLICT = 409


def build_core_api(kubeconfig: Optional[Path] = None) -> client.CoreV1Api:
    """Create a ``CoreV1Api`` client.

    Without an explicit ``kubeconfig`` the in-cluster service account is
    tried first, then the default kubeconfig (``$KUBECONFIG`` or
    ``~/.kube/config``). Configuration errors propagate to the caller.
    """

    if kubeconfig is None:
        try:
            config.load_incluster_config()
            LOG.info("Loaded in-cluster Kubernetes config")
            return client.CoreV1Api()
        except config.ConfigException:
            LOG.info("in-cluster config not found, falling back to kubeconfig")

    config.load_kube_config(
        config_file=str(kubeconfig) if kubeconfig is not None else None
    )
    LOG.info("Loaded kubeconfig %s", kubeconfig or "(default)")
    return client.CoreV1Api()


def _is_timeout(exc: Exception) -> bool:
    if isinstance(exc, Urllib3Timeout):
        return True
    return isinstance(exc, MaxRetryError) and isinstance(exc.reason, Urllib3Timeout)


class KubernetesNodeStore(NodeStore):
    """Read and replace ``v1/Node`` objects guarded by resourceVersion."""

    def __init__(self, core_api: client.CoreV1Api) -> None:
        self._core = core_api

    @staticmethod
    def _request_kwargs(timeout: Optional[float]) -> Dict[str, Any]:
        if timeout is None:
            return {}
        return {"_request_timeout": max(timeout, 0.001)}

    def get(self, name: str, timeout: Optional[float] = None) -> RemoteNode:
        try:
            node = self._core.read_node(name, **self._request_kwargs(timeout))
        except (Urllib3Timeout, MaxRetryError) as exc:
            if _is_timeout(exc):
                raise RequestTimeout(f"reading node '{name}' timed out") from exc
            raise
        return RemoteNode(
            name=name,
            labels=dict(node.metadata.labels or {}),
            version=node.metadata.resource_version,
            raw=node,
        )

    def update(self, node: RemoteNode, timeout: Optional[float] = None) -> None:
        body = node.raw
        if body is None:
            raise ValueError(f"node '{node.name}' was not fetched from this store")

        body.metadata.labels = dict(node.labels)
        body.metadata.resource_version = node.version
        try:
            self._core.replace_node(node.name, body, **self._request_kwargs(timeout))
        except ApiException as exc:
            if exc.status == HTTP_CONFLICT:
                raise VersionConflict(
                    f"node '{node.name}' changed since version {node.version}"
                ) from exc
            raise
        except (Urllib3Timeout, MaxRetryError) as exc:
            if _is_timeout(exc):
                raise RequestTimeout(
                    f"replacing node '{node.name}' timed out"
                ) from exc
            raise
