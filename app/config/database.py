from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from app.config.logger import get_logger
from app.config.settings import settings

logger = get_logger(__name__, tag="DB")


def build_engine(url: str = None) -> AsyncEngine:
    return create_async_engine(url or settings.DATABASE_URL, echo=False, future=True)


def build_session_factory(engine: AsyncEngine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


# Initialize database: create the id_card_templates table when missing
async def init_db(engine: AsyncEngine) -> bool:
    from app.infrastructure.database.models import Base
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
