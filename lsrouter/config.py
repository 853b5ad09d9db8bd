"""
Topology loading for the link-state router.

Two formats are understood:

* a YAML topology describing every router of the lab (``.yaml`` / ``.yml``)::

    router_count: 3
    defaults:
      host: 127.0.0.1
      broadcast_interval: 1
      route_interval: 10
    routers:
      0:
        port: 5000
        neighbors:
          - {router_id: 1, cost: 2, addr: 127.0.0.1:5001}

* the per-router text format: the router count on the first line and one
  ``<label> <id> <cost> <port>`` line per neighbour.

Both are validated here so the routing engine can trust its inputs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

import yaml

from . import timers

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"

Address = Tuple[str, int]


class ConfigError(ValueError):
  """Raised for unreadable or inconsistent topology definitions."""


@dataclass(frozen=True)
class NeighborEntry:
  router_id: int
  cost: int
  addr: Address


@dataclass
class NeighborTable:
  entries: List[NeighborEntry] = field(default_factory=list)

  def __iter__(self) -> Iterator[NeighborEntry]:
    return iter(self.entries)

  def __len__(self) -> int:
    return len(self.entries)

  def get(self, router_id: int) -> Optional[NeighborEntry]:
    for entry in self.entries:
      if entry.router_id == router_id:
        return entry
    return None

  def direct_costs(self, router_id: int, router_count: int) -> List[int]:
    """Seed vector: 0 for ``router_id``, direct costs for neighbours, sentinel elsewhere."""
    vector = [timers.INFINITY] * router_count
    vector[router_id] = 0
    for entry in self.entries:
      vector[entry.router_id] = entry.cost
    return vector


@dataclass
class RouterConfig:
  router_id: int
  router_count: int
  neighbors: NeighborTable
  host: str = DEFAULT_HOST
  port: Optional[int] = None
  broadcast_interval: float = timers.BROADCAST_INTERVAL
  route_interval: float = timers.ROUTE_INTERVAL
  dedup_window: float = timers.DEDUP_WINDOW


def load_topology(path: Path, router_id: int, *, host: Optional[str] = None) -> RouterConfig:
  """
  Read ``path`` and build the configuration for ``router_id``.

  ``host`` overrides the topology host: it is the bind address and the host
  used for neighbours given by port only.
  """
  if not path.exists():
    raise ConfigError(f"config file not found: {path}")
  try:
    text = path.read_text(encoding="utf-8")
  except OSError as exc:
    raise ConfigError(f"cannot read {path}: {exc}") from exc

  if path.suffix in {".yaml", ".yml"}:
    try:
      data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
      raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    config = parse_topology(data, router_id, host=host)
  else:
    config = parse_neighbor_file(text, router_id, host or DEFAULT_HOST)

  LOGGER.info(
      "router %s: %d routers, neighbors=%s",
      config.router_id,
      config.router_count,
      [(n.router_id, n.cost) for n in config.neighbors],
  )
  return config


def parse_topology(data: Any, router_id: int, *, host: Optional[str] = None) -> RouterConfig:
  if not isinstance(data, dict):
    raise ConfigError("topology file must contain a mapping at the root")

  router_count = _as_int(data.get("router_count"), "router_count")
  defaults = data.get("defaults") or {}
  if not isinstance(defaults, dict):
    raise ConfigError("'defaults' must be a mapping")
  if host is None:
    host = str(defaults.get("host", DEFAULT_HOST))

  routers_cfg = data.get("routers")
  if not isinstance(routers_cfg, dict):
    raise ConfigError("config missing 'routers' mapping")
  router_cfg = routers_cfg.get(router_id, routers_cfg.get(str(router_id)))
  if not isinstance(router_cfg, dict):
    raise ConfigError(f"config missing definition for router {router_id}")

  neighbors_cfg = router_cfg.get("neighbors") or []
  if not isinstance(neighbors_cfg, list):
    raise ConfigError(f"router {router_id} neighbors must be a list")

  entries: List[NeighborEntry] = []
  for neighbor in neighbors_cfg:
    if not isinstance(neighbor, dict):
      raise ConfigError("neighbor entry must be a mapping")
    if "router_id" not in neighbor or "addr" not in neighbor:
      raise ConfigError("neighbor entry requires router_id and addr")
    entries.append(
        NeighborEntry(
            router_id=_as_int(neighbor["router_id"], "router_id"),
            cost=_as_int(neighbor.get("cost", 1), "cost"),
            addr=parse_address(neighbor["addr"], host),
        )
    )

  port = router_cfg.get("port")
  config = RouterConfig(
      router_id=router_id,
      router_count=router_count,
      neighbors=NeighborTable(entries),
      host=host,
      port=_as_int(port, "port") if port is not None else None,
      broadcast_interval=_as_interval(defaults.get("broadcast_interval", timers.BROADCAST_INTERVAL), "broadcast_interval"),
      route_interval=_as_interval(defaults.get("route_interval", timers.ROUTE_INTERVAL), "route_interval"),
      dedup_window=_as_interval(defaults.get("dedup_window", timers.DEDUP_WINDOW), "dedup_window", allow_zero=True),
  )
  validate(config)
  _check_router_ids(routers_cfg, router_count)
  return config


def parse_neighbor_file(text: str, router_id: int, host: str = DEFAULT_HOST) -> RouterConfig:
  lines = [line.strip() for line in text.splitlines() if line.strip()]
  if not lines:
    raise ConfigError("neighbor file is empty")
  router_count = _as_int(lines[0], "router count")

  entries: List[NeighborEntry] = []
  for lineno, line in enumerate(lines[1:], start=2):
    tokens = line.split()
    if len(tokens) != 4:
      raise ConfigError(f"line {lineno}: expected '<label> <id> <cost> <port>', got {line!r}")
    _, rid, cost, port = tokens
    entries.append(
        NeighborEntry(
            router_id=_as_int(rid, f"line {lineno} id"),
            cost=_as_int(cost, f"line {lineno} cost"),
            addr=(host, _as_int(port, f"line {lineno} port")),
        )
    )

  config = RouterConfig(
      router_id=router_id,
      router_count=router_count,
      neighbors=NeighborTable(entries),
      host=host,
  )
  validate(config)
  return config


def validate(config: RouterConfig) -> None:
  if config.router_count < 1:
    raise ConfigError("router_count must be at least 1")
  if not 0 <= config.router_id < config.router_count:
    raise ConfigError(f"router id {config.router_id} outside [0, {config.router_count})")
  seen: Dict[int, NeighborEntry] = {}
  for entry in config.neighbors:
    if not 0 <= entry.router_id < config.router_count:
      raise ConfigError(f"neighbor id {entry.router_id} outside [0, {config.router_count})")
    if entry.router_id == config.router_id:
      raise ConfigError(f"router {config.router_id} lists itself as a neighbor")
    if entry.router_id in seen:
      raise ConfigError(f"neighbor {entry.router_id} listed twice")
    if not 0 < entry.cost < timers.INFINITY:
      raise ConfigError(f"cost to {entry.router_id} must be in (0, {timers.INFINITY}), got {entry.cost}")
    seen[entry.router_id] = entry


def parse_address(value: Any, default_host: str) -> Address:
  """Accept ``host:port`` strings or a bare port number."""
  if isinstance(value, int):
    return (default_host, value)
  text = str(value).strip()
  host, sep, port = text.rpartition(":")
  if not sep:
    return (default_host, _as_int(text, "addr"))
  return (host or default_host, _as_int(port, "addr port"))


def _check_router_ids(routers_cfg: Dict[Any, Any], router_count: int) -> None:
  defined = {_as_int(key, "routers key") for key in routers_cfg}
  expected = set(range(router_count))
  if defined != expected:
    missing = sorted(expected - defined)
    extra = sorted(defined - expected)
    raise ConfigError(
        f"routers mapping inconsistent with router_count {router_count}: missing {missing}, unexpected {extra}"
    )


# ------------------------------------------------------------------ helpers

def _as_int(value: Any, name: str) -> int:
  if isinstance(value, bool):
    raise ConfigError(f"{name} must be an integer, got {value!r}")
  try:
    return int(value)
  except (TypeError, ValueError) as exc:
    raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _as_interval(value: Any, name: str, *, allow_zero: bool = False) -> float:
  try:
    interval = float(value)
  except (TypeError, ValueError) as exc:
    raise ConfigError(f"{name} must be a number, got {value!r}") from exc
  if interval < 0 or (interval == 0 and not allow_zero):
    raise ConfigError(f"{name} must be positive")
  return interval
