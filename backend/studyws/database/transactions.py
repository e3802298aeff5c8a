"""
Unit of work over MongoDB.

With transactions enabled every write joins one multi-document transaction
that commits on success and aborts on any exception. MongoDB only offers
transactions on replica sets, so for standalone deployments the unit of
work instead runs registered compensating actions, newest first, when the
block fails.
"""
import logging
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Optional, TypeVar

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo.errors import PyMongoError

from studyws.core.errors import InternalError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Compensation = Callable[[], Awaitable[Any]]


class MongoUnitOfWork:
    """Async context manager grouping the writes of one auth flow."""

    def __init__(self, client: AsyncIOMotorClient, use_transactions: bool = False):
        self.client = client
        self.use_transactions = use_transactions
        self._stack: Optional[AsyncExitStack] = None
        self._session: Optional[AsyncIOMotorClientSession] = None
        self._compensations: list[Compensation] = []

    async def __aenter__(self) -> "MongoUnitOfWork":
        self._compensations = []
        if self.use_transactions:
            self._stack = AsyncExitStack()
            self._session = await self._stack.enter_async_context(
                await self.client.start_session()
            )
            await self._stack.enter_async_context(self._session.start_transaction())
            logger.debug("uow: transaction started")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._stack is not None:
            stack, self._stack, self._session = self._stack, None, None
            # Commits on a clean exit, aborts when exc is set.
            await stack.__aexit__(exc_type, exc, tb)
            logger.debug("uow: transaction finished")
            return

        if exc is not None and self._compensations:
            logger.warning(f"uow: compensating {len(self._compensations)} write(s) after {exc_type.__name__}")
            await self._compensate()

    @property
    def session(self) -> Optional[AsyncIOMotorClientSession]:
        """Driver session to pass to store calls (None without transactions)."""
        return self._session

    def on_rollback(self, action: Compensation) -> None:
        """
        Register an undo step for the non-transactional mode.

        Ignored when a real transaction is active, since abort already undoes
        the write.
        """
        if self._session is None:
            self._compensations.append(action)

    async def _compensate(self) -> None:
        for action in reversed(self._compensations):
            try:
                await action()
            except PyMongoError as e:
                logger.error(f"uow: compensating write failed: {e}")
        self._compensations = []


async def run_in_transaction(
    client: AsyncIOMotorClient,
    work: Callable[[MongoUnitOfWork], Awaitable[T]],
    *,
    use_transactions: bool = False,
    max_attempts: int = 3,
) -> T:
    """
    Run ``work`` inside a unit of work, retrying transient transaction errors.

    Driver errors that are not retryable (or still failing after max_attempts)
    are re-raised as InternalError; errors raised by ``work`` itself pass
    through untouched.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            async with MongoUnitOfWork(client, use_transactions) as uow:
                return await work(uow)
        except PyMongoError as e:
            if e.has_error_label("TransientTransactionError") and attempt < max_attempts:
                logger.warning(f"Transient transaction error (attempt {attempt}/{max_attempts}), retrying: {e}")
                continue
            logger.error(f"Store failure inside unit of work: {e}")
            raise InternalError() from e


async def supports_transactions(client: AsyncIOMotorClient) -> bool:
    """True when the server is a replica set member or a mongos router."""
    try:
        hello = await client.admin.command("hello")
    except PyMongoError as e:
        logger.warning(f"Could not query MongoDB topology: {e}")
        return False
    return "setName" in hello or hello.get("msg") == "isdbgrid"


async def resolve_transaction_mode(
    client: AsyncIOMotorClient,
    configured: Optional[bool] = None,
) -> bool:
    """
    Decide once, at startup, whether auth flows run in real transactions.

    An explicit MONGO_TRANSACTIONS value wins. Otherwise transactions are
    used whenever the server supports them. Without them the unit of work
    falls back to compensating writes, which only undo failures raised in
    this process: a crash between two writes of a flow leaves it
    half-applied, and concurrent readers can observe the intermediate state.
    """
    if configured is not None:
        mode = configured
    else:
        mode = await supports_transactions(client)

    if mode:
        logger.info("Auth flows run in MongoDB transactions")
    else:
        logger.warning(
            "MongoDB transactions disabled (standalone server or MONGO_TRANSACTIONS=false); "
            "auth flows fall back to compensating writes and are not crash-atomic"
        )
    return mode
