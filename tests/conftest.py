from __future__ import annotations

import pytest

from helpers import MemoryNetwork


@pytest.fixture
def network() -> MemoryNetwork:
  return MemoryNetwork()
