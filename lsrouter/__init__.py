"""
链路状态路由模拟器：每个进程代表一台路由器。

暴露的主要组件：
- `Router`：持有定时器、接收循环与路由状态；
- `FloodingProtocol`：安装收到的向量并继续泛洪；
- `RouteComputer`：基于收集到的链路状态向量运行 Dijkstra；
- `EventLoop`：驱动周期广播与重算任务的定时器循环。
"""

from .config import ConfigError, NeighborEntry, NeighborTable, RouterConfig, load_topology
from .events import EventLoop
from .flooding import FloodingProtocol, OriginSuppression, RecentlySeenFilter
from .lsdb import LinkStateStore, RoutingState
from .router import Router, RouterState
from .spf import RouteComputer, dijkstra

__all__ = [
    "ConfigError",
    "EventLoop",
    "FloodingProtocol",
    "LinkStateStore",
    "NeighborEntry",
    "NeighborTable",
    "OriginSuppression",
    "RecentlySeenFilter",
    "RouteComputer",
    "Router",
    "RouterConfig",
    "RouterState",
    "RoutingState",
    "dijkstra",
    "load_topology",
]
