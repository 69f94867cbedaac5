from uuid import uuid4

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import pool
from common.core.config import settings
from common.core.telemetry import get_logger

logger = get_logger(__name__)

# Replace postgresql:// with postgresql+asyncpg:// for async support
ASYNC_DATABASE_URL = settings.database_url.replace(
    "postgresql://", "postgresql+asyncpg://"
)

# Configure engine based on pool type
# NullPool (db_use_nullpool=True): No pooling, new connection per operation (for workers)
# Default pool: Connection pooling (for long-running services)
engine_kwargs = {
    "echo": settings.debug,
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "connect_args": {
        "prepared_statement_name_func": lambda: f"__asyncpg_{uuid4()}__",
    },
}

if settings.db_use_nullpool:
    logger.info("Using NullPool - no connection pooling (worker mode)")
    engine_kwargs["poolclass"] = pool.NullPool
else:
    logger.info(
        f"Using connection pooling - pool_size={settings.db_pool_size}, max_overflow={settings.db_pool_overflow}"
    )
    engine_kwargs["pool_size"] = settings.db_pool_size
    engine_kwargs["max_overflow"] = settings.db_pool_overflow

engine = create_async_engine(ASYNC_DATABASE_URL, **engine_kwargs)
AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Same engine for now; point at a replica here when one exists
AsyncSessionLocalReadonly = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)
