"""Seed (or re-seed) the default configuration documents.

Usage:
    python -m crm_overlay.scripts.seed            # only missing documents
    python -m crm_overlay.scripts.seed --reset    # overwrite both documents
"""

import argparse
import asyncio
import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from crm_overlay.core.config import settings
from crm_overlay.core.constants import PRIORITY_SCORING_KEY, RISK_RULES_KEY
from crm_overlay.core.default_config import DEFAULT_PRIORITY_SCORING, DEFAULT_RISK_RULES
from crm_overlay.repositories.config_repository import ConfigRepository

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENTS = {
    RISK_RULES_KEY: DEFAULT_RISK_RULES,
    PRIORITY_SCORING_KEY: DEFAULT_PRIORITY_SCORING,
}


async def seed(reset: bool = False) -> None:
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        repo = ConfigRepository(session)
        for key, default in DEFAULT_DOCUMENTS.items():
            if reset:
                await repo.upsert(key, default, modified_by="seed")
                logger.info("Reset %s to defaults", key)
            else:
                await repo.seed_if_missing(key, default)
        await repo.commit()

    await engine.dispose()
    logger.info("Configuration seeding complete")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--reset",
        action="store_true",
        help="overwrite existing documents with the defaults",
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(seed(reset=args.reset))


if __name__ == "__main__":
    main()
