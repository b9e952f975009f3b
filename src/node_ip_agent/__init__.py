"""node-ip agent runtime helpers."""

from .config import AgentConfig, load_config  # noqa: F401
from .controller import ControllerState, SyncController  # noqa: F401

__all__ = [
    "AgentConfig",
    "ControllerState",
    "SyncController",
    "load_config",
]
