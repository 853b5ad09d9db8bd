"""
Flooding of link-state datagrams.

A received vector is installed in the store and the untouched datagram is
re-sent to every neighbour.  The only loop protection by default is that a
router never re-forwards its own vectors; ``RecentlySeenFilter`` can be plugged
in to suppress repeats of identical vectors inside a time window.
"""

from __future__ import annotations

import logging
import threading
import time
import zlib
from typing import Callable, Dict, Optional, Tuple

from .config import NeighborTable
from .lsdb import RoutingState
from .message import LinkStateMessage, MessageDecodeError
from .transport import Transport

LOGGER = logging.getLogger(__name__)


class ForwardFilter:
  """
  Decides whether a received datagram is re-sent to the neighbours.
  """

  def should_forward(self, msg: LinkStateMessage, data: bytes) -> bool:
    raise NotImplementedError


class OriginSuppression(ForwardFilter):
  """Forward everything except vectors this router originated."""

  def __init__(self, local_id: int) -> None:
    self.local_id = local_id

  def should_forward(self, msg: LinkStateMessage, data: bytes) -> bool:
    return msg.source_id != self.local_id


class RecentlySeenFilter(OriginSuppression):
  """
  Origin suppression plus a time-bounded memory of ``(source_id, crc32)``
  pairs.  A vector identical to one forwarded less than ``window`` seconds ago
  is installed but not re-sent.
  """

  def __init__(
      self,
      local_id: int,
      window: float,
      *,
      clock: Callable[[], float] = time.monotonic,
  ) -> None:
    super().__init__(local_id)
    if window <= 0:
      raise ValueError("window must be positive")
    self.window = window
    self._clock = clock
    self._seen: Dict[Tuple[int, int], float] = {}
    self._lock = threading.Lock()

  def should_forward(self, msg: LinkStateMessage, data: bytes) -> bool:
    if not super().should_forward(msg, data):
      return False
    key = (msg.source_id, zlib.crc32(data) & 0xFFFFFFFF)
    now = self._clock()
    with self._lock:
      for stale in [k for k, seen_at in self._seen.items() if now - seen_at >= self.window]:
        del self._seen[stale]
      if key in self._seen:
        return False
      self._seen[key] = now
    return True


class FloodingProtocol:
  def __init__(
      self,
      state: RoutingState,
      neighbors: NeighborTable,
      transport: Transport,
      *,
      forward_filter: Optional[ForwardFilter] = None,
  ) -> None:
    self.state = state
    self.neighbors = neighbors
    self.transport = transport
    self.forward_filter = forward_filter or OriginSuppression(state.router_id)
    self.received = 0
    self.dropped = 0
    self.forwarded = 0

  def on_receive(self, data: bytes, src: Optional[Tuple[str, int]] = None) -> Optional[LinkStateMessage]:
    """
    Install the vector carried by ``data`` and flood it onwards.

    Malformed datagrams are logged and dropped; ``None`` is returned for them.
    """
    try:
      msg = LinkStateMessage.loads(data, self.state.router_count)
    except MessageDecodeError as exc:
      self.dropped += 1
      LOGGER.warning("dropping malformed datagram from %s: %s", src, exc)
      return None

    with self.state.lock:
      self.state.store.update(msg.source_id, msg.vector)
    self.received += 1
    LOGGER.debug("vector from router %s via %s: %s", msg.source_id, src, msg.vector)

    if self.forward_filter.should_forward(msg, bytes(data)):
      self.forward(bytes(data))
    return msg

  def forward(self, data: bytes) -> None:
    for neighbor in self.neighbors:
      if self.transport.send(neighbor.addr, data):
        self.forwarded += 1
