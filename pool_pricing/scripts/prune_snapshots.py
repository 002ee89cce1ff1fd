from __future__ import annotations

import argparse
import logging
import sys
import time

from pool_pricing.domain.exceptions import ConfigurationError
from pool_pricing.infrastructure.runtime import build_runtime
from pool_pricing.shared.config import get_settings

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Delete price snapshots past their tier retention.")
    parser.add_argument(
        "--now",
        type=int,
        default=None,
        help="Unix timestamp to prune relative to (default: current time).",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    args = parse_args(argv)
    try:
        runtime = build_runtime(get_settings())
    except ConfigurationError as exc:
        logger.error("prune_snapshots: invalid configuration error=%s", exc)
        return 2
    now = args.now if args.now is not None else int(time.time())
    removed = runtime.pipeline.snapshot_recorder.prune_expired(now)
    for tier, count in sorted(removed.items()):
        print(f"{tier}: {count} removed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
