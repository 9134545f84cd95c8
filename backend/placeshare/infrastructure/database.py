"""Database Session Manager: async connection pool, automatic rollback, atomic scopes.

Invariants:
    - Every session auto-rolls-back on exception (no partial commits leak)
    - Connection pool uses pool_pre_ping for stale connection detection
    - SQLAlchemy exceptions escaping a session are mapped to StorageError
    - atomic_scope either commits every write made inside it or none of them;
      any failure inside becomes ConsistencyError, cancellation still rolls back

Design Decisions:
    - Singleton db_manager initialized on startup: FastAPI lifespan manages lifecycle
    - expire_on_commit=False: ORM objects stay readable after commit in async code
    - Rollback on cancellation is shielded so a second cancel cannot interrupt it
"""

import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncGenerator, Iterator

from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy import text

from placeshare.core.domain_types import OperationState
from placeshare.core.errors import ConsistencyError, PlaceShareError, StorageError
from placeshare.db.base import Base

logger = logging.getLogger(__name__)


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"DB integrity error: {e}")
            raise StorageError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"DB operational error: {e}")
            raise StorageError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"DB driver error: {e}")
            raise StorageError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageError("Database operation failed", "unknown")
        except BaseException:
            await asyncio.shield(session.rollback())
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False

    async def dispose(self) -> None:
        await self.engine.dispose()


class AtomicScope:
    """Handle yielded by atomic_scope; records how the scope ended."""

    def __init__(self, db: AsyncSession, operation: str):
        self.db = db
        self.operation = operation
        self.state = OperationState.VALIDATED


@asynccontextmanager
async def atomic_scope(
    db: AsyncSession, operation: str,
) -> AsyncGenerator[AtomicScope, None]:
    """Run the enclosed writes as one transaction.

    On success the transaction is committed and scope.state is COMMITTED.
    On any exception (including a failed commit) the transaction is rolled
    back, scope.state is ROLLED_BACK, and ConsistencyError is raised.
    Cancellation rolls back and re-raises the CancelledError unchanged.
    """
    scope = AtomicScope(db, operation)
    try:
        yield scope
        await db.commit()
    except Exception as e:
        await _rollback(db, operation)
        scope.state = OperationState.ROLLED_BACK
        logger.error(
            f"Atomic scope rolled back: {type(e).__name__}: {e}",
            extra={
                "operation": operation,
                "state": scope.state.value,
                "error_code": e.code if isinstance(e, PlaceShareError) else None,
            },
        )
        raise ConsistencyError(operation) from e
    except BaseException:
        await asyncio.shield(_rollback(db, operation))
        scope.state = OperationState.ROLLED_BACK
        logger.warning(
            "Atomic scope cancelled and rolled back",
            extra={"operation": operation, "state": scope.state.value},
        )
        raise
    scope.state = OperationState.COMMITTED


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Map SQLAlchemy failures raised in the block to StorageError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(
            f"Storage {operation} failed: {type(e).__name__}: {e}",
            extra={"operation": operation},
        )
        raise StorageError(str(e), operation) from e


async def _rollback(db: AsyncSession, operation: str) -> None:
    try:
        await db.rollback()
    except SQLAlchemyError as e:
        # The connection is discarded by the pool; the transaction never committed.
        logger.error(
            f"Rollback failed: {e}", extra={"operation": operation},
        )


# Singleton (initialized on startup)
db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
