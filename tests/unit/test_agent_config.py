from pathlib import Path

import pytest

from node_ip_agent.config import load_config
from node_ip_agent.pump import OverflowPolicy


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "node-ip.yaml"
    config_path.write_text(
        """
interface: eth1
node_name: worker-7
label_prefix: example.com/ip/
retry_timeout: 10
queue_size: 64
overflow_policy: drop-oldest
kubeconfig: /etc/node-ip/kubeconfig
"""
    )

    cfg = load_config(config_path, environ={})

    assert cfg.interface == "eth1"
    assert cfg.node_name == "worker-7"
    assert cfg.label_prefix == "example.com/ip"
    assert cfg.retry_timeout == pytest.approx(10.0)
    assert cfg.queue_size == 64
    assert cfg.overflow_policy is OverflowPolicy.DROP_OLDEST
    assert cfg.kubeconfig == Path("/etc/node-ip/kubeconfig")


def test_environment_only_uses_defaults():
    cfg = load_config(environ={"INTERFACE": "eth0", "NODE_NAME": "worker-1"})

    assert cfg.interface == "eth0"
    assert cfg.node_name == "worker-1"
    assert cfg.label_prefix == "node.ip"
    assert cfg.retry_timeout == pytest.approx(30.0)
    assert cfg.overflow_policy is OverflowPolicy.BLOCK
    assert cfg.kubeconfig is None


def test_precedence_file_env_overrides(tmp_path: Path):
    config_path = tmp_path / "node-ip.yaml"
    config_path.write_text("interface: eth1\nnode_name: from-file\n")

    cfg = load_config(
        config_path,
        environ={"INTERFACE": "eth2", "NODE_NAME": "from-env"},
        overrides={"interface": None, "node_name": "from-cli"},
    )

    assert cfg.interface == "eth2"
    assert cfg.node_name == "from-cli"


@pytest.mark.parametrize(
    "environ",
    [
        {"NODE_NAME": "worker-1"},
        {"INTERFACE": "eth0"},
        {"INTERFACE": "eth0", "NODE_NAME": "  "},
    ],
)
def test_missing_required_settings(environ):
    with pytest.raises(ValueError):
        load_config(environ=environ)


def test_invalid_values_rejected(tmp_path: Path):
    config_path = tmp_path / "node-ip.yaml"
    env = {"INTERFACE": "eth0", "NODE_NAME": "worker-1"}

    config_path.write_text("overflow_policy: drop-newest\n")
    with pytest.raises(ValueError, match="overflow_policy"):
        load_config(config_path, environ=env)

    config_path.write_text("retry_timeout: 0\n")
    with pytest.raises(ValueError):
        load_config(config_path, environ=env)

    config_path.write_text("- not\n- a mapping\n")
    with pytest.raises(ValueError):
        load_config(config_path, environ=env)


def test_kubeconfig_env_left_to_client():
    cfg = load_config(
        environ={
            "INTERFACE": "eth0",
            "NODE_NAME": "worker-1",
            "KUBECONFIG": "/root/.kube/a:/root/.kube/b",
        }
    )

    assert cfg.kubeconfig is None
