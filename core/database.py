"""
Database Models for the assistant bot

Uses SQLAlchemy with async support (PostgreSQL in production, SQLite locally).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, BigInteger, DateTime, Text, select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker


Base = declarative_base()


class GuildConfig(Base):
    """
    Per-guild bot configuration
    """
    __tablename__ = 'guild_configs'

    guild_id = Column(BigInteger, primary_key=True, autoincrement=False)
    context_prompt = Column(Text, nullable=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


def normalize_database_url(database_url: str) -> str:
    """Pick the async driver for a plain database URL"""
    # Convert postgres:// to postgresql+asyncpg://
    if database_url.startswith('postgres://'):
        return database_url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if database_url.startswith('postgresql://'):
        return database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    if database_url.startswith('sqlite://'):
        return database_url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
    return database_url


# Database connection management

class Database:
    """
    Async database connection manager
    """

    def __init__(self, database_url: str):
        database_url = normalize_database_url(database_url)

        engine_options = {'echo': False, 'pool_pre_ping': True}
        if database_url.startswith('postgresql+asyncpg://'):
            engine_options.update(pool_size=5, max_overflow=10)

        self.engine = create_async_engine(database_url, **engine_options)

        self.async_session = sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self):
        """Create all tables"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    def session(self) -> AsyncSession:
        """Get a new session"""
        return self.async_session()

    async def close(self):
        """Close the engine"""
        await self.engine.dispose()


# Repository functions for common operations

async def get_guild_config(session: AsyncSession, guild_id: int) -> Optional[GuildConfig]:
    """Get the stored configuration for a guild"""
    result = await session.execute(
        select(GuildConfig).where(GuildConfig.guild_id == guild_id)
    )
    return result.scalar_one_or_none()


async def get_all_guild_configs(session: AsyncSession) -> list[GuildConfig]:
    """Get every stored guild configuration"""
    result = await session.execute(select(GuildConfig))
    return list(result.scalars().all())


async def save_guild_context(
    session: AsyncSession,
    guild_id: int,
    context_prompt: str,
    updated_at: datetime,
) -> GuildConfig:
    """Insert or update a guild's AI context prompt"""
    config = await get_guild_config(session, guild_id)

    if config is None:
        config = GuildConfig(guild_id=guild_id)
        session.add(config)

    config.context_prompt = context_prompt
    config.updated_at = updated_at

    await session.commit()
    return config
