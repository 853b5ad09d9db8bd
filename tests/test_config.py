from __future__ import annotations

from pathlib import Path

import pytest

from lsrouter.config import ConfigError, load_topology, parse_address, parse_neighbor_file, parse_topology

TOPOLOGIES = Path(__file__).resolve().parent.parent / "topologies"

YAML_TOPOLOGY = """
router_count: 3
defaults:
  host: 10.0.0.1
  broadcast_interval: 0.5
  route_interval: 3
routers:
  0:
    port: 5000
    neighbors:
      - {router_id: 1, cost: 2, addr: "127.0.0.1:5001"}
  1:
    port: 5001
    neighbors:
      - {router_id: 0, cost: 2, addr: 5000}
      - {router_id: 2, cost: 3, addr: 5002}
  2:
    port: 5002
    neighbors:
      - {router_id: 1, cost: 3, addr: 5001}
"""


def test_load_yaml_topology(tmp_path):
  path = tmp_path / "topo.yaml"
  path.write_text(YAML_TOPOLOGY, encoding="utf-8")

  config = load_topology(path, 1)

  assert config.router_count == 3
  assert config.port == 5001
  assert config.host == "10.0.0.1"
  assert config.broadcast_interval == 0.5
  assert config.route_interval == 3.0
  assert config.dedup_window == 0.0
  assert [(n.router_id, n.cost, n.addr) for n in config.neighbors] == [
      (0, 2, ("10.0.0.1", 5000)),
      (2, 3, ("10.0.0.1", 5002)),
  ]
  assert config.neighbors.direct_costs(1, 3) == [2, 0, 3]


def test_load_legacy_neighbor_file(tmp_path):
  path = tmp_path / "router0.txt"
  path.write_text("3\nB 1 2 5001\nC 2 7 5002\n", encoding="utf-8")

  config = load_topology(path, 0)

  assert config.router_count == 3
  assert config.neighbors.get(2).cost == 7
  assert config.neighbors.get(1).addr == ("127.0.0.1", 5001)
  assert config.neighbors.direct_costs(0, 3) == [0, 2, 7]


def test_sample_topologies_load():
  for rid in range(3):
    config = load_topology(TOPOLOGIES / "line3.yaml", rid)
    assert config.router_count == 3
  square = load_topology(TOPOLOGIES / "square4.yaml", 0)
  assert square.dedup_window == 0.5
  assert len(square.neighbors) == 3
  legacy = load_topology(TOPOLOGIES / "router0.txt", 0)
  assert legacy.neighbors.direct_costs(0, 3) == [0, 2, 999]


def test_single_router_topology():
  config = parse_topology({"router_count": 1, "routers": {0: {"port": 5000}}}, 0)
  assert len(config.neighbors) == 0
  assert config.neighbors.direct_costs(0, 1) == [0]


def test_missing_file(tmp_path):
  with pytest.raises(ConfigError, match="not found"):
    load_topology(tmp_path / "nope.yaml", 0)


def test_invalid_yaml(tmp_path):
  path = tmp_path / "bad.yaml"
  path.write_text("routers: [unclosed", encoding="utf-8")
  with pytest.raises(ConfigError, match="invalid YAML"):
    load_topology(path, 0)


@pytest.mark.parametrize(
    "data, message",
    [
        ([], "mapping at the root"),
        ({"router_count": "x", "routers": {}}, "router_count"),
        ({"router_count": 2}, "routers"),
        ({"router_count": 2, "routers": {1: {}}}, "missing definition"),
        ({"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 1}]}}}, "requires router_id and addr"),
        ({"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 5, "addr": 1}]}}}, "outside"),
        ({"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 0, "addr": 1}]}}}, "itself"),
        ({"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 1, "cost": 0, "addr": 1}]}}}, "cost"),
        ({"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 1, "cost": 999, "addr": 1}]}}}, "cost"),
        (
            {"router_count": 2, "routers": {0: {"neighbors": [{"router_id": 1, "addr": 1}, {"router_id": 1, "addr": 2}]}}},
            "twice",
        ),
        ({"router_count": 0, "routers": {0: {}}}, "at least 1"),
        ({"router_count": 2, "defaults": {"route_interval": 0}, "routers": {0: {}}}, "positive"),
    ],
)
def test_invalid_topologies(data, message):
  with pytest.raises(ConfigError, match=message):
    parse_topology(data, 0)


def test_router_count_must_match_defined_routers(tmp_path):
  path = tmp_path / "short.yaml"
  path.write_text("router_count: 4\nrouters:\n  0: {port: 5000}\n  1: {port: 5001}\n", encoding="utf-8")
  with pytest.raises(ConfigError, match=r"missing \[2, 3\]"):
    load_topology(path, 0)


def test_router_outside_router_count_is_rejected(tmp_path):
  path = tmp_path / "extra.yaml"
  path.write_text(
      "router_count: 2\nrouters:\n  0: {port: 5000}\n  1: {port: 5001}\n  2: {port: 5002}\n",
      encoding="utf-8",
  )
  with pytest.raises(ConfigError, match=r"unexpected \[2\]"):
    load_topology(path, 0)


def test_string_router_keys_are_accepted():
  config = parse_topology({"router_count": 2, "routers": {"0": {"port": 5000}, "1": {"port": 5001}}}, 1)
  assert config.port == 5001


def test_host_override_applies_to_neighbor_file(tmp_path):
  path = tmp_path / "router0.txt"
  path.write_text("2\nB 1 2 5001\n", encoding="utf-8")

  config = load_topology(path, 0, host="10.0.0.9")

  assert config.host == "10.0.0.9"
  assert config.neighbors.get(1).addr == ("10.0.0.9", 5001)


def test_host_override_applies_to_yaml_port_only_neighbors(tmp_path):
  path = tmp_path / "topo.yaml"
  path.write_text(YAML_TOPOLOGY, encoding="utf-8")

  config = load_topology(path, 1, host="10.0.0.9")

  assert config.host == "10.0.0.9"
  assert config.neighbors.get(0).addr == ("10.0.0.9", 5000)
  assert load_topology(path, 0, host="10.0.0.9").neighbors.get(1).addr == ("127.0.0.1", 5001)


def test_legacy_file_errors():
  with pytest.raises(ConfigError, match="empty"):
    parse_neighbor_file("", 0)
  with pytest.raises(ConfigError, match="expected"):
    parse_neighbor_file("2\nB 1 2\n", 0)
  with pytest.raises(ConfigError, match="outside"):
    parse_neighbor_file("2\nB 1 2 5001\n", 3)


def test_parse_address():
  assert parse_address("10.1.1.1:7000", "127.0.0.1") == ("10.1.1.1", 7000)
  assert parse_address(":7000", "127.0.0.1") == ("127.0.0.1", 7000)
  assert parse_address(7000, "127.0.0.1") == ("127.0.0.1", 7000)
  assert parse_address("7000", "h") == ("h", 7000)
  with pytest.raises(ConfigError):
    parse_address("host:port", "h")
