import logging
import types
import typing

from entity_orm.database import Database, DatabaseType
from entity_orm.exceptions import NestedTransaction, NoActiveTransaction, TransactionError, TransactionFailed

logger = logging.getLogger(__name__)

T = typing.TypeVar("T")

BEGIN_STATEMENTS = {
    DatabaseType.MYSQL: "START TRANSACTION",
    DatabaseType.SQLITE: "BEGIN TRANSACTION",
}


class Transaction:
    """Explicit, non-reentrant transaction on a `Database`.

    Only one transaction can be active per database, whichever `Transaction` started it.
    An instance collected while its own transaction is still active rolls it back.
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._started = False

    @property
    def in_transaction(self) -> bool:
        return self._database.in_transaction

    def begin(self) -> None:
        if self._database.in_transaction:
            raise NestedTransaction("Cannot start a transaction within a transaction")

        statement = BEGIN_STATEMENTS.get(self._database.type)
        if statement is None:
            raise TransactionError(f"Cannot start transaction for database type {self._database.type}")

        self._database.query(statement)
        self._database.in_transaction = True
        self._started = True
        logger.debug("Transaction started")

    def commit(self) -> None:
        if not self._database.in_transaction:
            raise NoActiveTransaction("Cannot commit while not in a transaction")

        self._database.query("COMMIT")
        self._finish()
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        if not self._database.in_transaction:
            raise NoActiveTransaction("Cannot rollback while not in a transaction")

        self._database.query("ROLLBACK")
        self._finish()
        logger.debug("Transaction rolled back")

    def with_transaction(self, action: typing.Callable[[], T]) -> T:
        self.begin()

        try:
            result = action()
        except Exception as exc:
            self.rollback()
            raise TransactionFailed(str(exc)) from exc

        self.commit()
        return result

    def __enter__(self) -> "Transaction":
        self.begin()
        return self

    def __exit__(
        self,
        exc_type: typing.Optional[typing.Type[BaseException]],
        exc: typing.Optional[BaseException],
        traceback: typing.Optional[types.TracebackType],
    ) -> None:
        if exc_type is None:
            self.commit()
        else:
            self.rollback()

    def _finish(self) -> None:
        self._database.in_transaction = False
        self._started = False

    def __del__(self) -> None:
        if getattr(self, "_started", False) and self._database.in_transaction and self._database.is_connected():
            logger.warning("Transaction still active on collection, rolling back")
            self.rollback()
