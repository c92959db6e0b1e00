import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .models import Base


logger = logging.getLogger(__name__)


class Database:
    """Async engine with an explicit connect/disconnect lifecycle.

    Created at application startup, disposed at shutdown, and handed to the
    components that need it.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs: Any):
        self.url = url
        self.echo = echo
        self.engine_kwargs = engine_kwargs
        self.engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def connected(self) -> bool:
        return self.engine is not None

    async def connect(self) -> None:
        if self.engine is not None:
            return
        self.engine = create_async_engine(self.url, echo=self.echo, **self.engine_kwargs)
        self._sessionmaker = async_sessionmaker(self.engine, expire_on_commit=False, class_=AsyncSession)
        logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    async def disconnect(self) -> None:
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self._sessionmaker = None
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected; call connect() first")
        async with self._sessionmaker() as session:
            yield session

    async def create_all(self) -> None:
        """Create tables directly (tests and local development; production uses Alembic)."""
        if self.engine is None:
            raise RuntimeError("Database is not connected; call connect() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_health(self) -> tuple[bool, float, str | None]:
        """Check database connection health.

        Returns:
            Tuple of (is_healthy, latency_ms, error_message)
            - is_healthy: True if connection succeeded
            - latency_ms: Round-trip time in milliseconds
            - error_message: Error description if unhealthy, None otherwise
        """
        start = time.time()
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
                latency_ms = (time.time() - start) * 1000
                return (True, latency_ms, None)
        except Exception as e:
            latency_ms = (time.time() - start) * 1000
            return (False, latency_ms, str(e))
