#!/usr/bin/env python3
"""Passive websocket probe for the race telemetry feed.

Connects to the feed, decodes every frame and prints a compact line per
message plus a periodic leaderboard. Use this to check message cadence
and spot frames the decoder rejects.

Configuration comes from ``RACEFEED_*`` environment variables; command
line flags override them.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from racefeed import DriverStateStore, FeedClient, FeedConfig, RaceFeedError  # noqa: E402
from racefeed.ingestion.decode import Decoded, DecodeResult  # noqa: E402
from racefeed.state.snapshot import RaceSnapshot  # noqa: E402
from racefeed.views import build_leaderboard  # noqa: E402

_LOG = logging.getLogger("feed_probe")


@dataclass
class ProbeStats:
    started_at: float
    total_frames: int = 0
    rejected: int = 0
    by_type: Counter[str] = field(default_factory=Counter)
    last_frame_at: float | None = None

    def on_result(self, result: DecodeResult, now: float) -> float | None:
        previous = self.last_frame_at
        self.total_frames += 1
        self.last_frame_at = now
        if isinstance(result, Decoded):
            self.by_type[result.message.type] += 1
        else:
            self.rejected += 1
        return None if previous is None else now - previous


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Passive probe for the race telemetry websocket.")
    parser.add_argument("--url", help="Websocket URL (default: RACEFEED_WS_URL or ws://localhost:8765).")
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until the feed closes or Ctrl+C).",
    )
    parser.add_argument(
        "--board-every",
        type=float,
        default=5.0,
        help="Print the leaderboard every N seconds (0 = never).",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print one line per frame.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _print_leaderboard(snapshot: RaceSnapshot) -> None:
    rows = build_leaderboard(snapshot)
    print(f"[probe] Leaderboard ({len(rows)} drivers)")
    for row in rows:
        driver = snapshot.driver(row.code)
        speed = "-" if driver is None or driver.speed_kmh is None else f"{driver.speed_kmh:.0f} km/h"
        km = 0.0 if driver is None else driver.km
        print(f"[probe]   P{row.position:<3} {row.code:<4} {km:8.2f} km  {speed}")


def _print_summary(stats: ProbeStats) -> None:
    runtime = time.time() - stats.started_at
    print("[probe] Summary")
    print(f"[probe]   runtime_s    : {runtime:.1f}")
    print(f"[probe]   total_frames : {stats.total_frames}")
    print(f"[probe]   rejected     : {stats.rejected}")
    print(f"[probe]   by_type      : {json.dumps(dict(stats.by_type), sort_keys=True)}")


async def _probe(args: argparse.Namespace, config: FeedConfig, stats: ProbeStats) -> None:
    store = DriverStateStore()
    last_board = stats.started_at

    async with FeedClient(config.ws_url, heartbeat=config.heartbeat) as feed:
        print(f"[probe] Connected to {feed.url}")
        async for result in feed.results():
            now = time.time()
            delta = stats.on_result(result, now)
            store.apply_result(result)

            if not args.quiet:
                gap_text = "first" if delta is None else f"{delta:.2f}s"
                if isinstance(result, Decoded):
                    print(f"[probe] #{stats.total_frames} gap={gap_text} type={result.message.type}")
                else:
                    print(f"[probe] #{stats.total_frames} gap={gap_text} rejected: {result.reason}")

            if args.board_every > 0 and now - last_board >= args.board_every:
                _print_leaderboard(store.snapshot)
                last_board = now

            if args.duration > 0 and now - stats.started_at >= args.duration:
                print(f"[probe] Reached --duration={args.duration}s, stopping.")
                break

        if feed.error:
            print(f"[probe] Last error: {feed.error}")

    _print_leaderboard(store.snapshot)


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {}
    if args.url:
        overrides["ws_url"] = args.url
    config = FeedConfig.from_env(**overrides)
    _LOG.debug("Probe config: %s", config)
    print(f"[probe] Connecting to {config.ws_url}")

    stats = ProbeStats(started_at=time.time())
    try:
        asyncio.run(_probe(args, config, stats))
    except RaceFeedError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] Feed failed: {exc}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        pass

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
