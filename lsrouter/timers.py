"""
链路状态路由器使用的默认定时器与协议常量。

这些取值让三四台路由器的实验拓扑在笔记本上几秒内即可收敛。
拓扑文件可以通过 defaults 覆盖各个间隔。
"""

BROADCAST_INTERVAL = 1.0   # seconds between link-state vector broadcasts
ROUTE_INTERVAL = 10.0      # seconds between Dijkstra runs
RECEIVE_POLL = 0.5         # receive timeout so shutdown can interrupt the loop
DEDUP_WINDOW = 0.0         # 0 disables duplicate suppression when flooding

INFINITY = 999             # sentinel cost for "no known path"
