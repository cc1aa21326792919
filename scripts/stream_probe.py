#!/usr/bin/env python3
"""Passive event stream probe for the farm-connect driver API.

This script reuses pyfarmconnect to:
1) log in (or use FARMCONNECT_STAFF_ID),
2) run one pending-task sync,
3) open the logistics and fuel request streams,
4) print accepted messages and collection changes.

Use this to check which events reach a given driver and how they merge.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import getpass
import json
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfarmconnect import (  # noqa: E402
    FarmConnectClient,
    FarmConnectConfig,
    FarmConnectError,
    RequestNotification,
    SnapshotScope,
)
from pyfarmconnect.state.merge import RequestCollection  # noqa: E402

_LOG = logging.getLogger("stream_probe")


@dataclass
class ProbeStats:
    started_at: float
    changes: int = 0
    notifications: int = 0
    last_change_at: float | None = None


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Passive probe for the farm-connect request streams.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--user",
        default=os.environ.get("FARMCONNECT_USER_NAME", ""),
        help="Driver login name (skip login when empty and a staff id is configured).",
    )
    parser.add_argument(
        "--scope",
        choices=[scope.value for scope in SnapshotScope],
        default=SnapshotScope.LOGISTICS.value,
        help="Which pending tasks the initial sync keeps.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Pretty-print request records.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s     : {runtime:.1f}")
    print(f"[probe]   changes       : {stats.changes}")
    print(f"[probe]   notifications : {stats.notifications}")
    if stats.last_change_at is not None:
        last_change = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(stats.last_change_at))
        print(f"[probe]   last_change   : {last_change}")


async def _run(args: argparse.Namespace, config: FarmConnectConfig, stats: ProbeStats) -> int:
    def on_change(collection: RequestCollection) -> None:
        stats.changes += 1
        stats.last_change_at = time.time()
        print(f"[probe] collection now holds {len(collection)} request(s)")

    def on_notification(notification: RequestNotification) -> None:
        stats.notifications += 1
        request = notification.request
        if args.json:
            body = json.dumps(request.model_dump(mode="json", exclude_none=True), indent=2)
        else:
            body = f"id={request.id} status={request.status}"
        print(f"[probe] {notification.kind}: {body}")

    async with FarmConnectClient(config, on_change=on_change, on_notification=on_notification) as client:
        if args.user:
            password = os.environ.get("FARMCONNECT_PASSWORD") or getpass.getpass("Password: ")
            session = await client.login(args.user, password)
            print(f"[probe] Logged in as staff_id={session.staff_id}")

        staff_id = client.resolve_staff_id()
        if not staff_id:
            print("[probe] No staff id: pass --user or set FARMCONNECT_STAFF_ID", file=sys.stderr)
            return 2

        result = await client.sync(SnapshotScope(args.scope))
        if result.error is not None:
            print(f"[probe] Initial sync failed: {result.error}", file=sys.stderr)
        else:
            print(f"[probe] Initial sync returned {len(result.requests)} request(s)")

        if not client.start_streams():
            print("[probe] Streams could not be started", file=sys.stderr)
            return 2
        for stream in client.streams:
            print(f"[probe] Listening on {stream.name}: {stream.url}")

        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signum, stop.set)

        timeout = args.duration if args.duration > 0 else None
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=timeout)
    return 0


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = FarmConnectConfig.from_env(stream_enabled=True)
    except FarmConnectError as exc:
        print(f"[probe] Invalid configuration: {exc}", file=sys.stderr)
        return 2

    stats = ProbeStats(started_at=time.time())
    try:
        return asyncio.run(_run(args, config, stats))
    except FarmConnectError as exc:  # pragma: no cover - network/system interaction
        _LOG.debug("Probe failed", exc_info=True)
        print(f"[probe] Failed: {exc}", file=sys.stderr)
        return 2
    finally:
        _print_summary(stats)


if __name__ == "__main__":
    raise SystemExit(_main())
