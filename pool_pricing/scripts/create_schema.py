from __future__ import annotations

import logging
import sys

from pool_pricing.infrastructure.db.engine import create_schema, get_engine
from pool_pricing.shared.config import get_settings

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    settings = get_settings()
    if not settings.postgres_dsn:
        logger.error("create_schema: POSTGRES_DSN is required")
        return 1
    create_schema(get_engine(settings.postgres_dsn))
    logger.info("create_schema: done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
