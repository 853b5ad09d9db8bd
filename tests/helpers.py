from __future__ import annotations

import queue
from typing import Dict, List, Optional, Set, Tuple

from lsrouter.config import NeighborEntry, NeighborTable, RouterConfig
from lsrouter.transport import Transport

Address = Tuple[str, int]

LINE3 = {(0, 1): 2, (1, 2): 3}


def addr_of(router_id: int) -> Address:
  return ("127.0.0.1", 6000 + router_id)


class MemoryNetwork:
  """Delivers datagrams between MemoryTransports through per-address queues."""

  def __init__(self) -> None:
    self.queues: Dict[Address, "queue.Queue[Tuple[bytes, Address]]"] = {}
    self.failing: Set[Address] = set()

  def attach(self, addr: Address) -> "MemoryTransport":
    self.queues.setdefault(addr, queue.Queue())
    return MemoryTransport(self, addr)


class MemoryTransport(Transport):
  def __init__(self, network: MemoryNetwork, addr: Address) -> None:
    self.network = network
    self.addr = addr
    self.sent: List[Tuple[Address, bytes]] = []
    self.bound = False
    self.closed = False

  def bind(self) -> None:
    self.bound = True

  def send(self, addr: Address, data: bytes) -> bool:
    if addr in self.network.failing:
      return False
    self.sent.append((addr, data))
    inbox = self.network.queues.get(addr)
    if inbox is not None:
      inbox.put((data, self.addr))
    return True

  def receive(self, timeout: Optional[float] = None) -> Optional[Tuple[bytes, Address]]:
    try:
      return self.network.queues[self.addr].get(timeout=timeout)
    except queue.Empty:
      return None

  def pending(self) -> int:
    return self.network.queues[self.addr].qsize()

  def close(self) -> None:
    self.closed = True


def make_config(router_id: int, router_count: int, links: Dict[Tuple[int, int], int], **kwargs) -> RouterConfig:
  """Build a RouterConfig from an undirected ``{(a, b): cost}`` edge map."""
  entries = []
  for (a, b), cost in sorted(links.items()):
    if a == router_id:
      entries.append(NeighborEntry(router_id=b, cost=cost, addr=addr_of(b)))
    elif b == router_id:
      entries.append(NeighborEntry(router_id=a, cost=cost, addr=addr_of(a)))
  return RouterConfig(
      router_id=router_id,
      router_count=router_count,
      neighbors=NeighborTable(entries),
      port=addr_of(router_id)[1],
      **kwargs,
  )
