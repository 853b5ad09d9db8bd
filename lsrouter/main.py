#!/usr/bin/env python3
"""
Entry point for one link-state router process.

    lsrouter <router_id> <port> <config>

Start one process per router of the topology; they find each other through
the addresses listed in the configuration.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from .cli import CliShell
from .config import ConfigError, load_topology
from .events import EventLoop
from .router import Router
from .transport import TransportError

TRACE = 5


def parse_args(argv: list[str]) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
      description="Link-state routing process: floods link costs and runs Dijkstra.",
  )
  parser.add_argument("router_id", type=int, help="Router id in [0, N)")
  parser.add_argument("port", type=int, help="Local UDP port")
  parser.add_argument("config", type=Path, help="Topology file (YAML) or per-router neighbor file")
  parser.add_argument("--host", help="Address to bind and host of neighbors given by port only; defaults to the topology host")
  parser.add_argument("--log-level", default="info", choices=["trace", "debug", "info", "warning", "error"])
  parser.add_argument("--broadcast-interval", type=float, help="Seconds between link-state broadcasts")
  parser.add_argument("--route-interval", type=float, help="Seconds between route computations")
  parser.add_argument("--dedup-window", type=float, help="Suppress re-flooding identical vectors within this window")
  parser.add_argument("--no-shell", action="store_true", help="Do not start the interactive shell")
  return parser.parse_args(argv)


def setup_logging(level_name: str) -> None:
  logging.addLevelName(TRACE, "TRACE")
  level = logging.getLevelName(level_name.upper())
  if isinstance(level, str):
    level = logging.INFO

  logging.basicConfig(
      level=level,
      format="%(asctime)s %(levelname)-5s [%(threadName)s] %(name)s: %(message)s",
  )


def main(argv: Optional[list[str]] = None) -> int:
  args = parse_args(sys.argv[1:] if argv is None else argv)
  setup_logging(args.log_level)

  try:
    config = load_topology(args.config, args.router_id, host=args.host)
  except ConfigError as exc:
    logging.error("invalid configuration: %s", exc)
    return 2

  config.port = args.port
  for name in ("broadcast_interval", "route_interval", "dedup_window"):
    value = getattr(args, name)
    if value is not None:
      if value < 0 or (value == 0 and name != "dedup_window"):
        logging.error("--%s must be positive", name.replace("_", "-"))
        return 2
      setattr(config, name, value)

  loop = EventLoop()
  router = Router(config, loop)

  logging.info("starting router %s on port %s", config.router_id, config.port)
  try:
    router.bootstrap()
  except TransportError as exc:
    logging.error("%s", exc)
    return 1

  cli: Optional[CliShell] = None
  cli_thread: Optional[threading.Thread] = None
  if not args.no_shell:
    # The shell runs on its own thread so it never blocks the timers.
    cli = CliShell(router=router)
    cli_thread = threading.Thread(target=cli.run, name="cli", daemon=True)
    cli_thread.start()

  try:
    loop.run()
  except KeyboardInterrupt:
    logging.warning("interrupt received, shutting down")
  finally:
    with contextlib.suppress(Exception):
      loop.stop()
    router.shutdown()
    if cli is not None and cli_thread is not None:
      cli.stop()
      cli_thread.join(timeout=1)

  return 0


def run() -> None:
  sys.exit(main())


if __name__ == "__main__":
  run()
