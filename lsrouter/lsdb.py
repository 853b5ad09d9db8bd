"""
Link-state storage for a single router.

``LinkStateStore`` keeps the latest vector advertised by every router of the
topology.  ``RoutingState`` bundles the store with the local distance and
predecessor vectors behind one lock: every update, broadcast read and route
computation has to hold it for its whole duration.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

Vector = Tuple[int, ...]


class LinkStateStore:
  """
  Last-write-wins table of link-state vectors indexed by router id.

  No sequence numbers are carried on the wire, so a late datagram holding an
  older vector replaces a newer one.
  """

  def __init__(self, router_id: int, router_count: int, local_vector: Sequence[int]) -> None:
    if len(local_vector) != router_count:
      raise ValueError(f"local vector has {len(local_vector)} entries, expected {router_count}")
    self.router_id = router_id
    self.router_count = router_count
    self._vectors: List[Optional[Vector]] = [None] * router_count
    self._vectors[router_id] = tuple(local_vector)
    self.dirty = True

  def update(self, source_id: int, vector: Sequence[int]) -> None:
    if not 0 <= source_id < self.router_count:
      raise ValueError(f"source_id {source_id} outside [0, {self.router_count})")
    if len(vector) != self.router_count:
      raise ValueError(f"vector has {len(vector)} entries, expected {self.router_count}")
    self._vectors[source_id] = tuple(vector)
    self.dirty = True

  def vector(self, router_id: int) -> Optional[Vector]:
    return self._vectors[router_id]

  def is_complete(self) -> bool:
    return all(vector is not None for vector in self._vectors)

  def missing(self) -> List[int]:
    return [rid for rid, vector in enumerate(self._vectors) if vector is None]

  def clear_dirty(self) -> None:
    self.dirty = False

  def snapshot(self) -> Dict[int, Vector]:
    """
    Return the present entries.  Vectors are tuples, so the copy is safe to
    hand out; the mapping itself must still be read under the routing lock.
    """
    return {rid: vector for rid, vector in enumerate(self._vectors) if vector is not None}


@dataclass
class RoutingState:
  router_id: int
  router_count: int
  direct_costs: List[int]
  store: LinkStateStore = field(init=False)
  distance: List[int] = field(init=False)
  predecessor: List[int] = field(init=False)
  computed: bool = False
  lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

  def __post_init__(self) -> None:
    self.distance = list(self.direct_costs)
    self.predecessor = [self.router_id] * self.router_count
    self.store = LinkStateStore(self.router_id, self.router_count, self.distance)

  def routing_table(self) -> Optional[List[Tuple[int, int, int]]]:
    """Rows of ``(destination, distance, predecessor)``; ``None`` before the first computation."""
    with self.lock:
      if not self.computed:
        return None
      return list(zip(range(self.router_count), self.distance, self.predecessor))
