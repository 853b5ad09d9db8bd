from __future__ import annotations

import pytest

from lsrouter.lsdb import LinkStateStore, RoutingState


def test_local_entry_present_from_start():
  store = LinkStateStore(1, 3, [2, 0, 3])
  assert store.vector(1) == (2, 0, 3)
  assert store.vector(0) is None
  assert store.missing() == [0, 2]
  assert not store.is_complete()


def test_complete_once_every_router_reported():
  store = LinkStateStore(0, 3, [0, 2, 999])
  store.update(1, [2, 0, 3])
  assert not store.is_complete()
  store.update(2, [999, 3, 0])
  assert store.is_complete()
  assert store.missing() == []


def test_single_router_is_complete_immediately():
  store = LinkStateStore(0, 1, [0])
  assert store.is_complete()
  assert store.snapshot() == {0: (0,)}


def test_update_is_last_write_wins():
  store = LinkStateStore(0, 2, [0, 4])
  store.update(1, [4, 0])
  store.update(1, [7, 0])
  assert store.vector(1) == (7, 0)


def test_update_marks_dirty():
  store = LinkStateStore(0, 2, [0, 4])
  store.clear_dirty()
  assert not store.dirty
  store.update(1, [4, 0])
  assert store.dirty


def test_update_rejects_bad_input():
  store = LinkStateStore(0, 2, [0, 4])
  with pytest.raises(ValueError):
    store.update(2, [0, 0])
  with pytest.raises(ValueError):
    store.update(1, [0])


def test_snapshot_is_detached_from_store():
  store = LinkStateStore(0, 2, [0, 4])
  snap = store.snapshot()
  store.update(1, [4, 0])
  assert 1 not in snap


def test_routing_state_seeds_vectors():
  state = RoutingState(router_id=0, router_count=3, direct_costs=[0, 2, 999])
  assert state.distance == [0, 2, 999]
  assert state.predecessor == [0, 0, 0]
  assert state.store.vector(0) == (0, 2, 999)
  assert state.routing_table() is None
