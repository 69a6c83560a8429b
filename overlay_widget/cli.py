from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Optional, Sequence

import uvicorn

from .config import get_settings, update_runtime_overrides
from .log import setup_logging
from .widget.client import NetworkClient
from .widget.embed import EmbedConfig
from .widget.health import HealthMonitor, HealthState, HealthStatus


def _status_payload(status: HealthStatus) -> dict:
    return {
        "status": status.status.value,
        "code": status.code,
        "last_checked": status.last_checked.isoformat() if status.last_checked else None,
    }


async def _probe_once(config: EmbedConfig, timeout: Optional[float]) -> HealthStatus:
    client = NetworkClient(config)
    monitor = HealthMonitor(client, timeout_seconds=timeout)
    try:
        await monitor.trigger("cli")
        return monitor.status
    finally:
        await monitor.aclose()
        await client.aclose()


def cmd_serve(args: argparse.Namespace) -> int:
    update_runtime_overrides({"host": args.host, "port": args.port})
    settings = get_settings()
    uvicorn.run(
        "overlay_widget.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=bool(args.reload or settings.reload),
        log_config=None,
    )
    return 0


def cmd_probe(args: argparse.Namespace) -> int:
    config = EmbedConfig.from_attributes(
        {
            "data-merchant-id": args.merchant_id,
            "data-api-key": args.api_key,
            "data-api-base": args.api_base,
        },
        page_origin=args.api_base,
    )
    status = asyncio.run(_probe_once(config, args.timeout))
    print(json.dumps(_status_payload(status), indent=2))
    return 0 if status.status is HealthState.OK else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Overlay widget relay and connectivity tools")
    sub = parser.add_subparsers(required=True)

    serve = sub.add_parser("serve", help="Run the asset and BFF relay service")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    probe = sub.add_parser("probe", help="Run one health probe against a BFF origin")
    probe.add_argument("--api-base", required=True)
    probe.add_argument("--merchant-id", default="")
    probe.add_argument("--api-key", default="")
    probe.add_argument("--timeout", type=float, help="Probe deadline in seconds")
    probe.set_defaults(func=cmd_probe)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(Path(settings.log_dir) if settings.log_dir else None, settings.log_level)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
