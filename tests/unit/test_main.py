from kubernetes.config import ConfigException

from node_ip_agent import main as agent_main
from node_ip_agent.sources.base import InterfaceNotFound


class MissingInterfaceSource:
    def link_index(self, interface):
        raise InterfaceNotFound(interface)


class PresentInterfaceSource:
    def link_index(self, interface):
        return 2


def test_missing_configuration_exits_with_error(monkeypatch):
    monkeypatch.delenv("INTERFACE", raising=False)
    monkeypatch.delenv("NODE_NAME", raising=False)

    assert agent_main.main([]) == 1


def test_unknown_interface_exits_with_error(monkeypatch):
    monkeypatch.setattr(agent_main, "NetlinkAddressSource", MissingInterfaceSource)

    assert agent_main.main(["--interface", "eth9", "--node-name", "worker-1"]) == 1


def test_client_failure_exits_with_error(monkeypatch):
    def broken_client(kubeconfig=None):
        raise ConfigException("no kubeconfig")

    monkeypatch.setattr(agent_main, "NetlinkAddressSource", PresentInterfaceSource)
    monkeypatch.setattr(agent_main, "build_core_api", broken_client)

    assert agent_main.main(["--interface", "eth0", "--node-name", "worker-1"]) == 1


class SnapshotFailureSource(PresentInterfaceSource):
    def __init__(self):
        self.closed = False

    def list_current(self, interface):
        raise InterfaceNotFound(interface)

    def subscribe(self):
        return iter([])

    def close(self):
        self.closed = True


def test_snapshot_failure_exits_with_error(monkeypatch):
    monkeypatch.setattr(agent_main, "NetlinkAddressSource", SnapshotFailureSource)
    monkeypatch.setattr(agent_main, "build_core_api", lambda kubeconfig=None: object())

    assert agent_main.main(["--interface", "eth0", "--node-name", "worker-1"]) == 1
