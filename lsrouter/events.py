"""
驱动路由器周期任务的定时器循环。

仅实现路由进程所需的最核心能力：
- ``schedule``：注册一次性/周期性定时任务；
- ``cancel``：取消已注册的任务；
- ``run`` / ``stop``：驱动与终止主循环。

回调在调用 ``run`` 的线程中执行。周期任务以实际触发时刻为基准重新计时，
回调较慢时会产生少量漂移，而不会连续补发。
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
  deadline: float
  priority: int
  callback: Callable[[], None] = field(compare=False)
  interval: Optional[float] = field(default=None, compare=False)
  name: str = field(default="task", compare=False)
  cancelled: bool = field(default=False, compare=False)
  runs: int = field(default=0, compare=False)


class EventLoop:
  """
  Single-threaded scheduler for the broadcast and route computation timers.
  """

  def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
    self._clock = clock
    self._tasks: list[ScheduledTask] = []
    self._task_seq = 0
    self._running = False
    self._wakeup = threading.Condition()

  @property
  def running(self) -> bool:
    return self._running

  # ------------------------------------------------------------------ timers
  def schedule(
      self,
      delay: float,
      callback: Callable[[], None],
      *,
      repeat: bool = False,
      name: str = "task",
  ) -> ScheduledTask:
    """
    Schedule ``callback`` to be executed after ``delay`` seconds.

    When ``repeat`` is true the callback is rescheduled using the same interval
    until :meth:`cancel` is invoked.
    """
    if delay < 0:
      raise ValueError("delay must be non-negative")
    if repeat and delay == 0:
      raise ValueError("repeating tasks need a positive interval")
    if not callable(callback):
      raise TypeError("callback must be callable")

    with self._wakeup:
      self._task_seq += 1
      task = ScheduledTask(
          deadline=self._clock() + delay,
          priority=self._task_seq,
          callback=callback,
          interval=delay if repeat else None,
          name=name,
      )
      heapq.heappush(self._tasks, task)
      self._wakeup.notify()
    return task

  def cancel(self, task: ScheduledTask) -> None:
    """
    Mark a scheduled task as cancelled.  The callback will no longer run.
    """
    with self._wakeup:
      task.cancelled = True
      self._wakeup.notify()

  def pending(self) -> int:
    with self._wakeup:
      return sum(1 for task in self._tasks if not task.cancelled)

  # ------------------------------------------------------------------- loop
  def run(self) -> None:
    """
    Run the event loop until :meth:`stop` is called.
    """
    self._running = True
    while self._running:
      self.run_once()

  def stop(self) -> None:
    """
    Request loop termination.  The loop exits after the current iteration.
    """
    with self._wakeup:
      self._running = False
      self._wakeup.notify_all()

  def run_once(self, max_wait: Optional[float] = None) -> int:
    """
    Fire every due task, then wait for the next deadline (at most
    ``max_wait`` seconds).  Returns the number of callbacks executed.
    """
    fired = 0
    now = self._clock()
    while True:
      with self._wakeup:
        if not self._tasks or self._tasks[0].deadline > now:
          break
        task = heapq.heappop(self._tasks)
      if task.cancelled:
        continue
      try:
        task.callback()
      except Exception:
        LOGGER.exception("scheduled task %s failed", task.name)
      task.runs += 1
      fired += 1
      if task.interval and not task.cancelled:
        task.deadline = self._clock() + task.interval
        with self._wakeup:
          heapq.heappush(self._tasks, task)

    with self._wakeup:
      if not self._running and max_wait is None:
        return fired
      timeout = max_wait
      if self._tasks:
        until_next = max(0.0, self._tasks[0].deadline - self._clock())
        timeout = until_next if timeout is None else min(timeout, until_next)
      if timeout is None or timeout > 0:
        self._wakeup.wait(timeout)
    return fired
