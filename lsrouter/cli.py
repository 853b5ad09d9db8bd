"""
Simple interactive shell used to inspect a running router.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Optional, TextIO

if TYPE_CHECKING:
  from .router import Router

LOGGER = logging.getLogger(__name__)


class CliShell:
  def __init__(self, router: "Router", *, stream: Optional[TextIO] = None) -> None:
    self.router = router
    self._stream = stream
    self._running = threading.Event()
    self._running.set()
    self._commands: Dict[str, Callable[[Iterable[str]], None]] = {
        "show": self._cmd_show,
        "send": self._cmd_send,
        "compute": self._cmd_compute,
        "quit": self._cmd_quit,
        "exit": self._cmd_quit,
        "help": self._cmd_help,
    }

  @property
  def running(self) -> bool:
    return self._running.is_set()

  def run(self) -> None:
    while self._running.is_set():
      try:
        line = self._readline()
      except EOFError:
        break
      self.execute(line)

  def execute(self, line: str) -> None:
    tokens = line.strip().split()
    if not tokens:
      return
    handler = self._commands.get(tokens[0])
    if handler is None:
      LOGGER.warning("unknown command: %s", tokens[0])
      return
    try:
      handler(tokens[1:])
    except Exception:  # pragma: no cover - interactive diagnostics
      LOGGER.exception("command failed")

  def stop(self) -> None:
    self._running.clear()

  def _readline(self) -> str:
    if self._stream is None:
      return input("> ")
    line = self._stream.readline()
    if not line:
      raise EOFError
    return line

  # ----------------------------------------------------------------- commands
  def _cmd_show(self, args: Iterable[str]) -> None:
    sub = list(args)
    if not sub:
      LOGGER.info("usage: show <neighbors|lsdb|routes>")
      return
    topic = sub[0]
    if topic == "neighbors":
      self._show_neighbors()
    elif topic == "lsdb":
      self._show_lsdb()
    elif topic == "routes":
      self.router.log_routing_table()
    else:
      LOGGER.warning("unsupported show topic: %s", topic)

  def _cmd_send(self, args: Iterable[str]) -> None:
    if list(args) != ["state"]:
      LOGGER.info("usage: send state")
      return
    sent = self.router.send_state()
    LOGGER.info("node state sent to %d neighbors", sent)

  def _cmd_compute(self, _: Iterable[str]) -> None:
    self.router.update_routes()

  def _cmd_quit(self, _: Iterable[str]) -> None:
    LOGGER.info("exiting CLI")
    self.stop()

  def _cmd_help(self, _: Iterable[str]) -> None:
    LOGGER.info("commands: show neighbors|lsdb|routes, send state, compute, quit/exit")

  # ------------------------------------------------------------------- views
  def _show_neighbors(self) -> None:
    neighbors = self.router.neighbors()
    if not neighbors:
      LOGGER.info("no neighbors configured")
      return
    for entry in neighbors:
      LOGGER.info("neighbor=%s cost=%s addr=%s", entry["router_id"], entry["cost"], entry["addr"])

  def _show_lsdb(self) -> None:
    for rid, vector in sorted(self.router.lsdb_view().items()):
      LOGGER.info("%d: %s", rid, "-" if vector is None else " ".join(str(c) for c in vector))
