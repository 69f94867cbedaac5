"""
Operation-scoped database sessions.

Provides lazy session acquisition that releases connections immediately
after each operation.

Usage:
    # Single operation - acquires and releases immediately
    async with get_session() as session:
        result = await session.get(Model, id)
    # Connection released here

    # Multiple operations in a transaction - share one session
    async with transaction():
        await repo.save(thing1)
        await repo.save(thing2)
    # Commits together, runs after_commit callbacks, then releases

    # Nested transaction() calls join the outermost one
    async with transaction():
        async with transaction():
            ...  # same session, outer block commits

See also:
    - common/db/context.py: Decorators (@readonly, @transactional) and after_commit
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import get_logger
from common.db.session import AsyncSessionLocal, AsyncSessionLocalReadonly
from common.db.context import (
    get_current_session,
    get_write_session,
    set_current_session,
    reset_current_session,
    is_readonly_forced,
    run_after_commit,
    discard_after_commit,
)

logger = get_logger(__name__)


@asynccontextmanager
async def transaction(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Explicit transaction boundary.

    All DB operations inside share one session/connection.
    Commits on success (unless readonly), rolls back on exception.
    If a transaction of the same kind is already open in this context the
    existing session is reused and the outer block owns commit/rollback.

    Args:
        readonly: If True, uses readonly session and skips commit.
                  Also respects @readonly decorator if applied to caller.

    Yields:
        The session for this transaction

    Raises:
        Exception: Re-raises any exception after rollback
    """
    effective_readonly = readonly or is_readonly_forced()

    existing = get_current_session(readonly=effective_readonly)
    if existing is not None:
        logger.debug("Joining existing transaction session")
        yield existing
        return

    session_factory = (
        AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
    )

    start = time.perf_counter()
    async with session_factory() as session:
        acquire_time = time.perf_counter() - start
        logger.debug(
            f"Transaction session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
        )

        token = set_current_session(session, readonly=effective_readonly)
        try:
            yield session
            if not effective_readonly:
                commit_start = time.perf_counter()
                await session.commit()
                commit_time = time.perf_counter() - commit_start
                logger.debug(f"Transaction commit: {commit_time * 1000:.2f}ms")
        except Exception as e:
            logger.error(f"Transaction rollback due to: {e}")
            discard_after_commit(session)
            await session.rollback()
            raise
        finally:
            reset_current_session(token, readonly=effective_readonly)

        if not effective_readonly:
            await run_after_commit(session)


@asynccontextmanager
async def get_session(readonly: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    Get a session for a single DB operation.

    This is the primary interface for repositories:
    - Reuses session if inside a transaction() block
    - Otherwise acquires a new session, auto-commits, and releases immediately

    Args:
        readonly: If True, uses readonly session (for read replicas).
                  Also respects @readonly decorator if applied to caller.

    Yields:
        A session for the operation
    """
    effective_readonly = readonly or is_readonly_forced()
    existing = get_current_session(readonly=effective_readonly)
    if existing is None and effective_readonly:
        # Reads inside a write transaction must see its uncommitted rows
        existing = get_write_session()

    if existing:
        # Inside a transaction - reuse session, don't commit (transaction handles it)
        yield existing
    else:
        # Standalone operation - acquire, commit, release
        session_factory = (
            AsyncSessionLocalReadonly if effective_readonly else AsyncSessionLocal
        )

        start = time.perf_counter()
        async with session_factory() as session:
            acquire_time = time.perf_counter() - start
            logger.debug(
                f"Operation session acquire: {acquire_time * 1000:.2f}ms, readonly={effective_readonly}"
            )

            try:
                yield session
                if not effective_readonly:
                    commit_start = time.perf_counter()
                    await session.commit()
                    commit_time = time.perf_counter() - commit_start
                    logger.debug(f"Operation commit: {commit_time * 1000:.2f}ms")
            except Exception as e:
                logger.error(f"Operation rollback due to: {e}")
                await session.rollback()
                raise
            # Connection released here when context manager exits
