#!/usr/bin/env python3
"""Create the invoices, clients and expenses tables.

Existing tables are left alone unless --drop is given.

Usage:
    python scripts/init_db.py [--drop]

Requirements:
    - DATABASE_URL (or NETLIFY_DATABASE_URL) environment variable set
"""

import logging

from services.db.engine import get_engine
from services.db.tables import metadata
from services.shared.logging_config import configure_logging

logger = logging.getLogger(__name__)


def init_db(drop: bool = False) -> None:
    engine = get_engine()
    if drop:
        logger.warning("Dropping existing tables")
        metadata.drop_all(engine)
    metadata.create_all(engine)
    logger.info(f"Schema ready: {', '.join(sorted(metadata.tables))}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Create database tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    configure_logging()
    init_db(drop=args.drop)
