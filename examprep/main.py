"""Bootstrap entrypoint: configure logging, create the schema, seed plans."""

from __future__ import annotations

import asyncio

from examprep.config import get_settings
from examprep.db.session import Database
from examprep.logging import configure_logging, logger
from examprep.services.seeds import ensure_subscription_plans


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    settings.llm.apply_environment()

    database = Database(settings=settings)
    try:
        await database.create_schema()
        async with database.session() as session:
            await ensure_subscription_plans(session)
        logger.info("bootstrap_complete", environment=settings.environment)
    finally:
        await database.dispose()


if __name__ == "__main__":
    asyncio.run(main())
