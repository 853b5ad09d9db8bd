"""
链路状态向量报文的编解码工具。

每个报文依次携带源路由器 ID 与到各目的地的代价，均为 4 字节大端有符号整数。
实验期间路由器总数固定，因此报文长度也固定，接收方拒绝任何其他长度。
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Sequence, Tuple

INT_WIDTH = 4


class MessageError(ValueError):
  """Base class for link-state datagram errors."""


class MessageValidationError(MessageError):
  """Raised when a message cannot be encoded because a field is out of range."""


class MessageDecodeError(MessageError):
  """Raised when incoming bytes cannot be decoded into a LinkStateMessage."""


def datagram_size(router_count: int) -> int:
  """Exact byte length of a datagram for a topology of ``router_count`` routers."""
  return INT_WIDTH * (router_count + 1)


def _codec(router_count: int) -> struct.Struct:
  return struct.Struct(f"!{router_count + 1}i")


@dataclass(frozen=True)
class LinkStateMessage:
  source_id: int
  vector: Tuple[int, ...]

  @property
  def router_count(self) -> int:
    return len(self.vector)

  def dumps(self) -> bytes:
    """
    Pack the message into its fixed-size wire form.
    """
    count = len(self.vector)
    if count < 1:
      raise MessageValidationError("vector must contain at least one entry")
    if not 0 <= self.source_id < count:
      raise MessageValidationError(f"source_id {self.source_id} outside [0, {count})")
    _check_vector(self.source_id, self.vector, MessageValidationError)
    try:
      return _codec(count).pack(self.source_id, *self.vector)
    except struct.error as exc:
      raise MessageValidationError(f"failed to encode message: {exc}") from exc

  @classmethod
  def loads(cls, data: bytes, router_count: int) -> "LinkStateMessage":
    """
    Decode a datagram received from the network, enforcing the fixed size.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
      raise MessageDecodeError("data must be bytes-like")
    expected = datagram_size(router_count)
    if len(data) != expected:
      raise MessageDecodeError(f"datagram has {len(data)} bytes, expected {expected}")

    source_id, *vector = _codec(router_count).unpack(bytes(data))
    if not 0 <= source_id < router_count:
      raise MessageDecodeError(f"source_id {source_id} outside [0, {router_count})")
    _check_vector(source_id, vector, MessageDecodeError)
    return cls(source_id=source_id, vector=tuple(vector))


def build_state(source_id: int, vector: Sequence[int]) -> LinkStateMessage:
  """
  Snapshot ``vector`` into an immutable message originated by ``source_id``.
  """
  return LinkStateMessage(source_id=source_id, vector=tuple(int(cost) for cost in vector))


# ------------------------------------------------------------------ helpers

def _check_vector(source_id: int, vector: Sequence[int], error_cls: type[MessageError]) -> None:
  for idx, cost in enumerate(vector):
    if cost < 0:
      raise error_cls(f"vector[{idx}] is negative: {cost}")
  if vector[source_id] != 0:
    raise error_cls(f"vector[{source_id}] must be 0 for its own source, got {vector[source_id]}")
