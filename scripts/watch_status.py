#!/usr/bin/env python3
"""Log in to the alarm portal and print every refreshed status.

Credentials come from ``ADT_USERNAME``, ``ADT_PASSWORD`` and ``ADT_DOMAIN``
(see :meth:`pyadtsync.AdtConfig.from_env`); command-line flags override them.

Examples::

    ADT_USERNAME=me ADT_PASSWORD=... ADT_DOMAIN=portal.example.com \\
        python scripts/watch_status.py --ttl 30

    python scripts/watch_status.py --set-target 1 --once
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyadtsync import (  # noqa: E402
    AdtConfig,
    AdtConfigError,
    AdtPolicyRejection,
    HttpDeviceClient,
    StateSyncEngine,
    StatusSnapshot,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--username", help="Portal username (default: $ADT_USERNAME)")
    parser.add_argument("--password", help="Portal password (default: $ADT_PASSWORD)")
    parser.add_argument("--domain", help="Portal host (default: $ADT_DOMAIN)")
    parser.add_argument("--base-url", help="Explicit portal base URL")
    parser.add_argument("--ttl", type=float, help="Cache TTL / poll interval in seconds")
    parser.add_argument("--set-target", type=int, choices=(0, 1, 3), help="Request a target state after login")
    parser.add_argument("--once", action="store_true", help="Print the first status and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


def _snapshot_to_dict(snapshot: StatusSnapshot) -> dict[str, Any]:
    return {
        "arming_state": snapshot.arming_state.name,
        "target_state": snapshot.target_state.name,
        "fault_status": snapshot.fault_status.name,
        "battery_level": snapshot.battery_level,
        "low_battery_status": snapshot.low_battery_status.name,
    }


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    for field_name in ("username", "password", "domain", "base_url"):
        value = getattr(args, field_name)
        if value:
            overrides[field_name] = value
    if args.ttl is not None:
        overrides["cache_ttl"] = args.ttl

    try:
        config = AdtConfig.from_env(**overrides)
    except AdtConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    async with HttpDeviceClient(config) as device:
        engine = StateSyncEngine(config, device)
        engine.on_state_changed(lambda snapshot: print(json.dumps(_snapshot_to_dict(snapshot)), flush=True))
        if not await engine.init():
            print("Login or initial status fetch failed; see log output.", file=sys.stderr)
            return 1

        if args.set_target is not None:
            try:
                engine.request_target_state(args.set_target)
            except AdtPolicyRejection as exc:
                print(f"Rejected: {exc}", file=sys.stderr)
                await engine.close()
                return 1

        try:
            if args.once:
                await engine.drain()
            else:
                await asyncio.Event().wait()
        finally:
            await engine.close()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
