"""Create the meetings, action_items and meeting_shares tables"""
import asyncio

from meeting_notes.database import engine as default_engine, Base
from meeting_notes.models import *  # noqa: F401,F403 - Import all models to register them
from meeting_notes.utils.logger import get_logger

logger = get_logger("init_db")


async def init(engine=None):
    engine = engine or default_engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables created: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    asyncio.run(init())
