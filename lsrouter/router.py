"""
链路状态路由进程的主体实现。

该实现负责：
1. 以拓扑中的直连代价初始化本地链路状态库；
2. 定时向所有邻居广播本地向量；
3. 安装并泛洪从其他路由器收到的向量；
4. 在收齐所有路由器的向量后周期性运行 Dijkstra。

定时任务运行在 :class:`EventLoop` 线程，接收循环运行在独立线程，
二者都经由 :class:`RoutingState` 持有的同一把锁访问路由状态。
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .config import RouterConfig
from .events import EventLoop, ScheduledTask
from .flooding import FloodingProtocol, ForwardFilter, RecentlySeenFilter
from .lsdb import RoutingState
from .message import build_state
from .spf import RouteComputer
from .transport import Transport, UdpTransport
from . import timers

LOGGER = logging.getLogger(__name__)


class RouterState(str, Enum):
  INITIALIZING = "initializing"
  RUNNING = "running"
  STOPPED = "stopped"


class Router:
  def __init__(
      self,
      config: RouterConfig,
      event_loop: EventLoop,
      *,
      transport: Optional[Transport] = None,
      receive_poll: float = timers.RECEIVE_POLL,
  ) -> None:
    self.config = config
    self.router_id = config.router_id
    self.loop = event_loop
    self.receive_poll = receive_poll
    self.state = RouterState.INITIALIZING

    self.routing = RoutingState(
        router_id=config.router_id,
        router_count=config.router_count,
        direct_costs=config.neighbors.direct_costs(config.router_id, config.router_count),
    )
    self.computer = RouteComputer(self.routing)

    if transport is None:
      if config.port is None:
        raise ValueError(f"router {self.router_id} has no local port configured")
      transport = UdpTransport(config.host, config.port)
    self.transport = transport

    forward_filter: Optional[ForwardFilter] = None
    if config.dedup_window > 0:
      forward_filter = RecentlySeenFilter(self.router_id, config.dedup_window)
    self.flooding = FloodingProtocol(
        self.routing,
        config.neighbors,
        self.transport,
        forward_filter=forward_filter,
    )

    self._tasks: List[ScheduledTask] = []
    self._stop = threading.Event()
    self._receiver: Optional[threading.Thread] = None

  # ---------------------------------------------------------------- lifecycle
  def bootstrap(self) -> None:
    """
    绑定传输层，启动定时任务与接收线程。传输层异常直接抛出，进程随之退出。
    """
    LOGGER.debug("bootstrapping router %s", self.router_id)
    self.transport.bind()

    self._tasks.append(
        self.loop.schedule(self.config.broadcast_interval, self.send_state, repeat=True, name="broadcast")
    )
    self._tasks.append(
        self.loop.schedule(self.config.route_interval, self.update_routes, repeat=True, name="routes")
    )
    self._receiver = threading.Thread(target=self.receive_loop, name=f"recv-{self.router_id}", daemon=True)
    self.state = RouterState.RUNNING
    self._receiver.start()
    self.update_routes()
    LOGGER.info(
        "router %s running: broadcast every %.1fs, routes every %.1fs",
        self.router_id,
        self.config.broadcast_interval,
        self.config.route_interval,
    )

  def shutdown(self) -> None:
    """停止定时任务与接收线程并关闭套接字，可重复调用。"""
    if self.state == RouterState.STOPPED:
      return
    LOGGER.debug("shutting down router %s", self.router_id)
    self.state = RouterState.STOPPED
    self._stop.set()
    for task in self._tasks:
      self.loop.cancel(task)
    self._tasks.clear()
    if self._receiver is not None and self._receiver is not threading.current_thread():
      self._receiver.join(timeout=self.receive_poll * 4)
    self._receiver = None
    self.transport.close()

  # ------------------------------------------------------------------ timers
  def send_state(self) -> int:
    """
    Send the current local vector to every neighbour.  A failed send is
    logged and the remaining neighbours are still served.
    """
    with self.routing.lock:
      data = build_state(self.router_id, self.routing.distance).dumps()
      sent = 0
      for neighbor in self.config.neighbors:
        if self.transport.send(neighbor.addr, data):
          sent += 1
    LOGGER.debug("sent node state to %d/%d neighbors", sent, len(self.config.neighbors))
    return sent

  def update_routes(self) -> bool:
    if not self.computer.recompute():
      return False
    self.log_routing_table()
    return True

  # --------------------------------------------------------------- receiving
  def receive_loop(self) -> None:
    """持续接收报文并交给泛洪协议处理，直到 :meth:`shutdown`。"""
    while not self._stop.is_set():
      try:
        received = self.transport.receive(self.receive_poll)
      except OSError as exc:
        if self._stop.is_set():
          break
        LOGGER.error("socket receive error: %s", exc)
        continue
      if received is None:
        continue
      data, src = received
      try:
        self.flooding.on_receive(data, src)
      except Exception:
        LOGGER.exception("failed to process datagram from %s", src)

  # --------------------------------------------------------------- utilities
  def routing_table(self) -> Optional[List[Tuple[int, int, int]]]:
    return self.routing.routing_table()

  def log_routing_table(self) -> None:
    rows = self.routing_table()
    if rows is None:
      LOGGER.info("routing table not available yet")
      return
    LOGGER.info("routing info for router %s (dest, distance, prev)", self.router_id)
    for dest, distance, prev in rows:
      LOGGER.info("  %d\t%d\t%d", dest, distance, prev)

  def lsdb_view(self) -> Dict[int, Optional[Tuple[int, ...]]]:
    with self.routing.lock:
      store = self.routing.store
      return {rid: store.vector(rid) for rid in range(self.routing.router_count)}

  def neighbors(self) -> List[Dict[str, object]]:
    return [
        {"router_id": n.router_id, "cost": n.cost, "addr": f"{n.addr[0]}:{n.addr[1]}"}
        for n in self.config.neighbors
    ]
