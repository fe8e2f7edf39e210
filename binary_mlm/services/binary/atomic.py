"""
Atomic execution of the payout critical section.

Two disciplines share one interface:
- TransactionAtomicExecutor: the store transaction is the unit of
  atomicity (row locks serialize payouts of one member)
- LockAtomicExecutor: same transaction handling plus a process-wide
  asyncio.Lock around the whole section, for stores without row locks

The discipline is selected once at startup, never per call.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Literal, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from binary_mlm.config.settings import settings
from binary_mlm.utils.exceptions import BinaryMLMError, PayoutAtomicityError


T = TypeVar("T")

AtomicMode = Literal["auto", "transaction", "lock"]


class AtomicExecutor(ABC):
    """Runs an operation as one all-or-nothing unit of work."""

    name: str = "abstract"

    @abstractmethod
    async def run(
        self,
        session: AsyncSession,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run operation atomically.

        Args:
            session: Session the operation writes through
            operation: Coroutine factory performing the writes

        Returns:
            Operation result, after commit

        Raises:
            PayoutAtomicityError: Operation failed and was rolled back
        """


class TransactionAtomicExecutor(AtomicExecutor):
    """Commit on success, roll back everything on any failure."""

    name = "transaction"

    async def run(
        self,
        session: AsyncSession,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            result = await operation()
            await session.commit()
        except (asyncio.CancelledError, TimeoutError):
            await self._rollback(session)
            logger.warning("Atomic section cancelled, rolled back")
            raise
        except BinaryMLMError:
            await self._rollback(session)
            raise
        except Exception as e:
            await self._rollback(session)
            logger.error(
                "Atomic section failed, rolled back: {}",
                e,
                extra={"executor": self.name, "error_type": type(e).__name__},
            )
            raise PayoutAtomicityError(
                f"Payout rolled back: {type(e).__name__}: {e}"
            ) from e
        return result

    @staticmethod
    async def _rollback(session: AsyncSession) -> None:
        try:
            await session.rollback()
        except Exception as rollback_error:
            logger.opt(exception=rollback_error).error(
                "Rollback failed: {}", rollback_error
            )
            raise


class LockAtomicExecutor(TransactionAtomicExecutor):
    """Transaction handling serialized by a process-wide lock."""

    name = "lock"

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    async def run(
        self,
        session: AsyncSession,
        operation: Callable[[], Awaitable[T]],
    ) -> T:
        async with self._lock:
            return await super().run(session, operation)


def select_atomic_executor(
    backend: AsyncEngine | str, mode: AtomicMode = "auto"
) -> AtomicExecutor:
    """
    Choose the atomic execution discipline for a deployment.

    Args:
        backend: Engine or database URL / dialect name
        mode: 'transaction', 'lock', or 'auto' (transaction on PostgreSQL,
            lock otherwise)

    Returns:
        Atomic executor
    """
    if isinstance(backend, AsyncEngine):
        dialect = backend.dialect.name
    else:
        dialect = backend.split(":", 1)[0].split("+", 1)[0]

    if mode == "auto":
        mode = "transaction" if dialect == "postgresql" else "lock"

    executor: AtomicExecutor
    if mode == "transaction":
        executor = TransactionAtomicExecutor()
    else:
        executor = LockAtomicExecutor()

    logger.info(f"Payout atomicity: {executor.name} (dialect={dialect})")
    return executor


_payout_executor: AtomicExecutor | None = None


def get_payout_executor() -> AtomicExecutor:
    """
    Get the process-wide payout executor.

    Built lazily from DATABASE_URL and PAYOUT_ATOMIC_MODE, so every engine
    instance of the process shares the same lock in lock mode.
    """
    global _payout_executor
    if _payout_executor is None:
        _payout_executor = select_atomic_executor(
            settings.database_url, settings.payout_atomic_mode
        )
    return _payout_executor
