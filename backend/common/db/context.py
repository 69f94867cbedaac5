"""
Database session context management.

Provides lazy session acquisition that:
- Reuses sessions within explicit transactions
- Auto-acquires/releases for one-off operations
- Supports reader/writer separation
- Defers side effects (queue publishes) until the outermost commit

Usage:
    # In repositories - auto-manages sessions
    async with get_session() as session:
        result = await session.execute(query)

    # Explicit transaction - multiple ops share one session
    async with transaction():
        await repo.save(thing1)
        await repo.save(thing2)  # Same session, commits together

    # Run something only once the surrounding transaction has committed
    after_commit(lambda: notifier.publish(...))
"""

from contextvars import ContextVar
from functools import wraps
from typing import Awaitable, Optional, Callable, TypeVar, ParamSpec

from sqlalchemy.ext.asyncio import AsyncSession

from common.core.telemetry import get_logger

logger = get_logger(__name__)

AFTER_COMMIT_KEY = "after_commit_callbacks"

AfterCommitCallback = Callable[[], Awaitable[None]]


# =============================================================================
# Context Variables
# =============================================================================

# Holds the current write session (if inside a write transaction)
_write_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_write_session", default=None
)

# Holds the current read session (if inside a read transaction)
_read_session: ContextVar[Optional[AsyncSession]] = ContextVar(
    "db_read_session", default=None
)

# Forces all operations in this context to use readonly
_force_readonly: ContextVar[bool] = ContextVar("db_force_readonly", default=False)


# =============================================================================
# Context Accessors
# =============================================================================


def is_readonly_forced() -> bool:
    """Check if current context is forced to readonly."""
    return _force_readonly.get()


def get_current_session(readonly: bool = False) -> Optional[AsyncSession]:
    """
    Get the current session from context, if any.

    Args:
        readonly: If True, get read session. If False, get write session.
                  Note: if readonly is forced via decorator, always returns read session.

    Returns:
        The current session if inside a transaction, None otherwise.
    """
    effective_readonly = readonly or is_readonly_forced()
    if effective_readonly:
        return _read_session.get()
    return _write_session.get()


def get_write_session() -> Optional[AsyncSession]:
    """The open write session, even when readonly is forced."""
    return _write_session.get()


def set_current_session(session: AsyncSession, readonly: bool = False) -> object:
    """Set session in context and return the token for resetting it."""
    if readonly:
        return _read_session.set(session)
    return _write_session.set(session)


def reset_current_session(token: object, readonly: bool = False) -> None:
    """Reset session context using token from set_current_session."""
    if readonly:
        _read_session.reset(token)
    else:
        _write_session.reset(token)


def in_transaction(readonly: bool = False) -> bool:
    """Check if we're currently inside a transaction of the given type."""
    return get_current_session(readonly=readonly) is not None


# =============================================================================
# After-commit hooks
# =============================================================================


def after_commit(callback: AfterCommitCallback) -> bool:
    """
    Queue a coroutine factory to run once the current write transaction commits.

    Callbacks are dropped if the transaction rolls back.

    Returns:
        True if queued, False if there is no surrounding write transaction
        (callers should then run the callback themselves).
    """
    session = _write_session.get()
    if session is None:
        return False
    session.info.setdefault(AFTER_COMMIT_KEY, []).append(callback)
    return True


def discard_after_commit(session: AsyncSession) -> None:
    """Drop any callbacks queued on a session (used on rollback)."""
    session.info.pop(AFTER_COMMIT_KEY, None)


async def run_after_commit(session: AsyncSession) -> None:
    """Run and clear the callbacks queued on a committed session.

    Each callback is independent; a failing callback is logged and does
    not prevent the remaining ones from running.
    """
    callbacks = session.info.pop(AFTER_COMMIT_KEY, [])
    for callback in callbacks:
        try:
            await callback()
        except Exception as e:
            logger.error(f"After-commit callback failed: {e}", exc_info=True)


# =============================================================================
# Decorators
# =============================================================================

P = ParamSpec("P")
T = TypeVar("T")


def readonly(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that forces all DB operations in this call chain to use readonly sessions.

    Usage:
        @readonly
        async def get_chain(invoice_id: int):
            # All repo calls here will use read session
            ...
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        token = _force_readonly.set(True)
        try:
            return await func(*args, **kwargs)
        finally:
            _force_readonly.reset(token)

    return wrapper


def transactional(func: Callable[P, T]) -> Callable[P, T]:
    """
    Decorator that wraps function in an explicit transaction.

    All DB operations within the decorated function share one session/connection.
    The transaction commits on success, rolls back on exception. When called
    inside another transaction it joins it instead.
    """

    @wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
        from common.db.scoped import transaction as tx  # noqa: PLC0415

        async with tx():
            return await func(*args, **kwargs)

    return wrapper
