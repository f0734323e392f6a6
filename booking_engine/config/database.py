"""Database configuration and connection setup"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from booking_engine.config.settings import get_settings

settings = get_settings()

# Pool arguments only apply to server databases (SQLite uses its own pool)
_pool_kwargs = {}
if not settings.DATABASE_URL.startswith("sqlite"):
    _pool_kwargs = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }

# Create database engine with connection pooling
engine = create_async_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    **_pool_kwargs,
)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """Database dependency for FastAPI"""
    async with SessionLocal() as db:
        yield db


async def create_tables():
    """Create all appointment tables that do not exist yet"""
    from booking_engine.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("✅ Database tables created successfully!")


if __name__ == "__main__":
    import asyncio

    asyncio.run(create_tables())
