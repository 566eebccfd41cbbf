#!/usr/bin/env python3
"""Stream simulated heart-rate samples to the configured server.

Drives a :class:`heartwatch.MonitoringController` with the simulated sensor
source and prints the monitoring screen whenever it changes. Sink settings
come from ``HEARTWATCH_*`` environment variables; command-line flags
override them.

Runs until Ctrl+C, until ``--duration`` elapses, or until the session ends
on its own (lease expiry or a dropped socket connection).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from heartwatch import (  # noqa: E402
    ConsoleDisplay,
    HeartwatchConfig,
    HeartwatchConfigError,
    MonitoringController,
    MonitorSnapshot,
    SimulatedHeartRateSource,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Stream simulated heart-rate samples over HTTP or Socket.IO.",
    )
    parser.add_argument(
        "--sink",
        choices=("http", "socket"),
        default=None,
        help="Sink variant (default: HEARTWATCH_SINK or http).",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override the HTTP endpoint or Socket.IO server URL for the chosen sink.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=1.0,
        help="Seconds between simulated samples.",
    )
    parser.add_argument(
        "--baseline",
        type=float,
        default=72.0,
        help="Resting heart rate the simulation wanders around.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for a reproducible sample sequence.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _build_config(args: argparse.Namespace) -> HeartwatchConfig:
    overrides: dict[str, Any] = {}
    if args.sink is not None:
        overrides["sink"] = args.sink
    sink = args.sink or HeartwatchConfig.from_env().sink
    if args.url is not None:
        overrides["socket_url" if sink == "socket" else "http_url"] = args.url
    return HeartwatchConfig.from_env(**overrides)


async def _run(config: HeartwatchConfig, args: argparse.Namespace) -> int:
    source = SimulatedHeartRateSource(baseline=args.baseline, interval=args.interval, seed=args.seed)
    done = asyncio.Event()

    def _on_snapshot(snapshot: MonitorSnapshot) -> None:
        if not snapshot.is_monitoring:
            done.set()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, done.set)

    async with MonitoringController.from_config(config, source) as controller:
        controller.add_listener(ConsoleDisplay())
        if not await controller.start():
            print("[stream] Monitoring failed to start", file=sys.stderr)
            return 1
        controller.add_listener(_on_snapshot)
        try:
            if args.duration > 0:
                await asyncio.wait_for(done.wait(), args.duration)
            else:
                await done.wait()
        except TimeoutError:
            pass
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _build_config(args)
    except HeartwatchConfigError as exc:
        print(f"[stream] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    return asyncio.run(_run(config, args))


if __name__ == "__main__":
    raise SystemExit(_main())
