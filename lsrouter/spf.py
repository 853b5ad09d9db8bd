"""
基于链路状态矩阵的 Dijkstra 路由计算。

矩阵的每一行是对应路由器通告的向量，``M[w][i]`` 即 ``w`` 到 ``i`` 的代价。
距离从本地直连代价出发，依次经每个已确定节点松弛。目的地的前驱是在它之前
刚被确定的节点，多跳路径下不一定是直连邻居。
"""

from __future__ import annotations

import logging
from typing import List, Mapping, Optional, Sequence, Set, Tuple

from . import timers
from .lsdb import RoutingState, Vector

LOGGER = logging.getLogger(__name__)


def is_reachable(cost: int) -> bool:
  return cost < timers.INFINITY


def dijkstra(
    router_id: int,
    direct_costs: Sequence[int],
    matrix: Mapping[int, Vector],
) -> Tuple[List[int], List[int]]:
  """
  Return ``(distance, predecessor)`` for ``router_id``.

  ``matrix`` must hold a vector for every router.  When several unsettled
  nodes share the minimum distance the lowest router id is settled first.
  """
  count = len(direct_costs)
  distance = list(direct_costs)
  distance[router_id] = 0
  predecessor = [router_id] * count
  settled: Set[int] = {router_id}

  while len(settled) < count:
    w = _closest_unsettled(distance, settled)
    if w is None:
      # Everything left is unreachable.
      break
    settled.add(w)
    row = matrix[w]
    for i in range(count):
      if i in settled or not is_reachable(row[i]):
        continue
      candidate = distance[w] + row[i]
      if candidate < distance[i]:
        distance[i] = candidate
        predecessor[i] = w

  return distance, predecessor


def _closest_unsettled(distance: Sequence[int], settled: Set[int]) -> Optional[int]:
  best: Optional[int] = None
  for node, cost in enumerate(distance):
    if node in settled or not is_reachable(cost):
      continue
    if best is None or cost < distance[best]:
      best = node
  return best


class RouteComputer:
  """
  Runs :func:`dijkstra` against a :class:`RoutingState` once every router's
  vector has been received, and publishes the result back into the state.
  """

  def __init__(self, state: RoutingState) -> None:
    self.state = state
    self.runs = 0
    self.skipped = 0

  def recompute(self) -> bool:
    """
    Recompute distances under the routing lock.  Returns ``False`` when the
    store is still incomplete and the computation was skipped.
    """
    state = self.state
    with state.lock:
      store = state.store
      if not store.is_complete():
        self.skipped += 1
        LOGGER.info("routing info incomplete, still waiting for routers %s", store.missing())
        return False
      if not store.dirty:
        LOGGER.debug("no new link-state input since run %d", self.runs)

      distance, predecessor = dijkstra(state.router_id, state.direct_costs, store.snapshot())
      state.distance[:] = distance
      state.predecessor[:] = predecessor
      state.computed = True
      # The freshly computed distances are what this router advertises next.
      store.update(state.router_id, distance)
      store.clear_dirty()
      self.runs += 1
    LOGGER.debug("dijkstra run %d finished for router %s", self.runs, state.router_id)
    return True
