"""
UDP transport used by the router process.

The engine only needs ``send`` and a blocking ``receive``; ``Transport`` spells
that contract out so tests can swap in an in-memory implementation.
"""

from __future__ import annotations

import logging
import socket
import threading
from typing import Optional, Tuple

LOGGER = logging.getLogger(__name__)

Address = Tuple[str, int]

MAX_DATAGRAM = 65535


class TransportError(OSError):
  """Raised when the transport cannot be set up."""


class Transport:
  def bind(self) -> None:
    pass

  def send(self, addr: Address, data: bytes) -> bool:
    """Fire-and-forget send; returns ``False`` when the send failed."""
    raise NotImplementedError

  def receive(self, timeout: Optional[float] = None) -> Optional[Tuple[bytes, Address]]:
    """Block for the next datagram; ``None`` when ``timeout`` expired."""
    raise NotImplementedError

  def close(self) -> None:
    pass


class UdpTransport(Transport):
  def __init__(self, host: str, port: int) -> None:
    self.host = host
    self.port = port
    self._socket: Optional[socket.socket] = None
    self._send_lock = threading.Lock()

  @property
  def address(self) -> Address:
    if self._socket is None:
      return (self.host, self.port)
    return self._socket.getsockname()[:2]

  def bind(self) -> None:
    if self._socket is not None:
      return
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
      sock.bind((self.host, self.port))
    except OSError as exc:
      sock.close()
      raise TransportError(f"cannot bind {self.host}:{self.port}: {exc}") from exc
    self._socket = sock
    LOGGER.info("listening on %s:%s", *self.address)

  def send(self, addr: Address, data: bytes) -> bool:
    if self._socket is None:
      LOGGER.warning("socket not bound, cannot send to %s:%s", *addr)
      return False
    with self._send_lock:
      try:
        self._socket.sendto(data, addr)
      except OSError as exc:
        LOGGER.error("send to %s:%s failed: %s", addr[0], addr[1], exc)
        return False
    return True

  def receive(self, timeout: Optional[float] = None) -> Optional[Tuple[bytes, Address]]:
    sock = self._socket
    if sock is None:
      raise TransportError("socket not bound")
    sock.settimeout(timeout)
    try:
      data, addr = sock.recvfrom(MAX_DATAGRAM)
    except socket.timeout:
      return None
    return data, (addr[0], addr[1])

  def close(self) -> None:
    if self._socket is not None:
      try:
        self._socket.close()
      except OSError:
        LOGGER.exception("failed to close socket")
      self._socket = None
