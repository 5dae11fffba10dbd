"""Runs the Soly client runtime from a source checkout."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Soly client with connection resilience enabled.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML/JSON client config file (sets SOLY_CLIENT_CONFIG_FILE).",
    )
    parser.add_argument(
        "--log-level",
        choices=["critical", "error", "warning", "info", "debug"],
        default=None,
        help="Log level for client output (overrides settings/env).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
    if args.config is not None:
        os.environ["SOLY_CLIENT_CONFIG_FILE"] = str(args.config.expanduser().resolve())

    from soly_client.bootstrap import serve_forever  # type: ignore
    from soly_client.config import ClientSettings  # type: ignore

    try:
        settings = ClientSettings()
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        print(f"Soly client failed to start: {exc}", file=sys.stderr)
        return 2
    if args.log_level:
        settings.log_level = args.log_level.upper()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO), format=LOG_FORMAT)

    try:
        asyncio.run(serve_forever(settings))
    except KeyboardInterrupt:
        logging.getLogger("soly_client").info("Interrupted; client stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
