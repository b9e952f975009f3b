"""Entry point for the node-ip agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from node_ip_labels.kube import KubernetesNodeStore, build_core_api
from node_ip_labels.reconciler import Reconciler

from .config import load_config
from .controller import SyncController
from .sources import InterfaceNotFound, NetlinkAddressSource

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Label a Kubernetes node with the IPv4 addresses of an interface"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional path to the agent configuration file",
    )
    parser.add_argument("--interface", help="Interface to watch (overrides INTERFACE)")
    parser.add_argument("--node-name", help="Node to label (overrides NODE_NAME)")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        config = load_config(
            args.config,
            overrides={"interface": args.interface, "node_name": args.node_name},
        )
    except (OSError, ValueError) as exc:
        LOG.error("invalid configuration: %s", exc)
        return 1

    LOG.info(
        "starting node-ip agent (interface=%s, node=%s, prefix=%s)",
        config.interface,
        config.node_name,
        config.label_prefix,
    )

    source = NetlinkAddressSource()
    try:
        interface_index = source.link_index(config.interface)
    except InterfaceNotFound as exc:
        LOG.error("could not get interface: %s", exc)
        return 1

    try:
        core_api = build_core_api(config.kubeconfig)
    except Exception:
        LOG.exception("failed to create Kubernetes client")
        return 1

    reconciler = Reconciler(
        KubernetesNodeStore(core_api),
        config.node_name,
        prefix=config.label_prefix,
        timeout=config.retry_timeout,
    )

    stop_event = Event()
    controller = SyncController(
        reconciler,
        source,
        config.interface,
        interface_index,
        stop_event=stop_event,
        queue_size=config.queue_size,
        overflow_policy=config.overflow_policy,
    )

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        code = controller.run()
    except InterfaceNotFound as exc:
        LOG.error("could not list addresses: %s", exc)
        return 1
    except OSError:
        LOG.exception("netlink failure while starting the controller")
        return 1
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()
        code = 0

    LOG.info("node-ip agent stopped")
    return code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
