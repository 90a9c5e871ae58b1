# storefront/database.py
import logging
from typing import AsyncGenerator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from .config import DATABASE_URL, SQL_ECHO
from .errors import ConflictError, PersistenceError

logger = logging.getLogger("storefront.database")

# Create engine
engine = create_async_engine(DATABASE_URL, echo=SQL_ECHO, future=True)

# Create session factory
async_session_maker = sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

# Base declarative
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session


async def commit_or_raise(session: AsyncSession) -> None:
    """Commit the unit of work; on failure roll back so nothing partial is persisted."""
    try:
        await session.commit()
    except StaleDataError as exc:
        await session.rollback()
        logger.warning("Concurrent write rejected: %s", exc)
        raise ConflictError("Cart was modified concurrently, retry", error=str(exc))
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("Integrity violation on commit: %s", exc.orig)
        raise ConflictError("Conflicting record already exists", error=str(exc.orig))
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Database write failed")
        raise PersistenceError("Database error", error=str(exc))


async def create_tables() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
