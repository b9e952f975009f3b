"""Configuration loader for the node-ip agent.

Settings come from an optional YAML file, then the ``INTERFACE`` and
``NODE_NAME`` environment variables, then explicit overrides (the command
line). Later sources win. ``KUBECONFIG`` is left to the Kubernetes client,
which reads it (colon-separated lists included) when no ``kubeconfig`` is
configured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from node_ip_labels.codec import LABEL_PREFIX
from node_ip_labels.reconciler import DEFAULT_TIMEOUT

from .pump import OverflowPolicy

ENV_KEYS = {
    "INTERFACE": "interface",
    "NODE_NAME": "node_name",
}


@dataclass
class AgentConfig:
    interface: str
    node_name: str
    label_prefix: str = LABEL_PREFIX
    retry_timeout: float = DEFAULT_TIMEOUT
    queue_size: int = 1024
    overflow_policy: OverflowPolicy = OverflowPolicy.BLOCK
    kubeconfig: Optional[Path] = None


def _read_file(path: Path) -> Dict[str, Any]:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")
    return data


def _parse_policy(value: Any) -> OverflowPolicy:
    try:
        return OverflowPolicy(str(value).lower())
    except ValueError:
        choices = ", ".join(p.value for p in OverflowPolicy)
        raise ValueError(
            f"Unsupported overflow_policy '{value}' (expected one of: {choices})"
        ) from None


def _require(data: Mapping[str, Any], key: str, env: str) -> str:
    value = data.get(key)
    if value is None or not str(value).strip():
        raise ValueError(f"{env} env var is not set and config has no '{key}'")
    return str(value).strip()


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> AgentConfig:
    environ = os.environ if environ is None else environ
    data: Dict[str, Any] = _read_file(Path(path)) if path is not None else {}

    for env, key in ENV_KEYS.items():
        if environ.get(env):
            data[key] = environ[env]
    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    prefix = str(data.get("label_prefix", LABEL_PREFIX)).strip().rstrip("/")
    if not prefix:
        raise ValueError("'label_prefix' cannot be empty")

    retry_timeout = float(data.get("retry_timeout", DEFAULT_TIMEOUT))
    if retry_timeout <= 0:
        raise ValueError("'retry_timeout' must be positive")

    queue_size = int(data.get("queue_size", 1024))
    if queue_size < 1:
        raise ValueError("'queue_size' must be at least 1")

    kubeconfig = data.get("kubeconfig")

    return AgentConfig(
        interface=_require(data, "interface", "INTERFACE"),
        node_name=_require(data, "node_name", "NODE_NAME"),
        label_prefix=prefix,
        retry_timeout=retry_timeout,
        queue_size=queue_size,
        overflow_policy=_parse_policy(data.get("overflow_policy", "block")),
        kubeconfig=Path(kubeconfig) if kubeconfig else None,
    )
