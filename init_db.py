#!/usr/bin/env python
"""
Initialize database tables from SQLAlchemy models.
Run this once to create the department layout tables.
"""

import asyncio
from pathlib import Path
from dotenv import load_dotenv

# Load .env file explicitly (override any existing env vars)
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path, override=True)

from app.core.config import settings  # noqa: E402
from app.core.db import close_db, init_db  # noqa: E402
from app.core.logging import configure_logging, get_logger  # noqa: E402
import app.models  # noqa: E402,F401  registers every table on Base.metadata

logger = get_logger(__name__)


async def main() -> bool:
    """Create all tables defined in models."""
    configure_logging()
    logger.info("database_init_start", database_url=settings.async_database_url.split("@")[-1])
    try:
        await init_db()
        logger.info("database_init_complete")
        return True
    except Exception as exc:  # noqa: BLE001
        logger.error("database_init_failed", error=str(exc))
        return False
    finally:
        await close_db()


if __name__ == "__main__":
    success = asyncio.run(main())
    raise SystemExit(0 if success else 1)
