import enum
import logging
import os
import typing

import sqlalchemy
from sqlalchemy.engine import URL, Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql.expression import ClauseElement, Insert, TextClause

from entity_orm.exceptions import DatabaseError

if typing.TYPE_CHECKING:
    from entity_orm.config import DatabaseSettings

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3306
MEMORY = ":memory:"
MASKED = "****** (masked)"
INSERT_KEYWORDS = ("INSERT", "REPLACE")

Statement = typing.Union[str, ClauseElement]
Row = typing.Dict[str, typing.Optional[str]]


class DatabaseType(enum.Enum):
    MYSQL = "mysql"
    SQLITE = "sqlite"


def _is_insert(statement: ClauseElement) -> bool:
    if isinstance(statement, TextClause):
        return statement.text.lstrip().upper().startswith(INSERT_KEYWORDS)
    return isinstance(statement, Insert)


def _to_raw(value: typing.Any) -> typing.Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    return str(value)


class Database:
    """Single connection to a MySQL or SQLite database.

    Rows come back as dicts of strings (or None), the way the drivers' text protocol would
    return them, leaving any conversion to the entity typers. The connection runs in
    autocommit mode; transactions are controlled explicitly with `Transaction`.
    """

    def __init__(
        self,
        type: typing.Optional[DatabaseType] = None,
        host: typing.Optional[str] = None,
        port: int = DEFAULT_PORT,
        username: typing.Optional[str] = None,
        password: typing.Optional[str] = None,
        database_name: typing.Optional[str] = None,
        charset: typing.Optional[str] = None,
        echo: bool = False,
    ) -> None:
        self.type = type
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.database_name = database_name
        self.charset = charset
        self.echo = echo

        self.query_count = 0
        self.in_transaction = False
        self.last_query: typing.Optional[str] = None
        self._last_generated_key: typing.Optional[str] = None
        self._engine: typing.Optional[Engine] = None
        self._connection: typing.Optional[Connection] = None

    @classmethod
    def from_settings(cls, settings: "DatabaseSettings") -> "Database":
        return cls(
            type=settings.type,
            host=settings.host,
            port=settings.port,
            username=settings.username,
            password=settings.password,
            database_name=settings.database_name,
            charset=settings.charset,
            echo=settings.echo,
        )

    @property
    def url(self) -> URL:
        if self.type is DatabaseType.MYSQL:
            if self.host is None:
                raise DatabaseError("MySQL requires a host.")
            if self.database_name is None:
                raise DatabaseError("MySQL requires a database name.")
            return URL.create(
                "mysql+pymysql",
                username=self.username,
                password=self.password,
                host=self.host,
                port=self.port,
                database=self.database_name,
                query={"charset": self.charset} if self.charset else {},
            )

        if self.type is DatabaseType.SQLITE:
            if self.database_name is None:
                raise DatabaseError("Sqlite requires a database.")
            return URL.create("sqlite", database=self.database_name)

        raise DatabaseError(f"Cannot create connection for invalid database type: '{self.type}'")

    @property
    def connection(self) -> typing.Optional[Connection]:
        return self._connection

    def is_connected(self) -> bool:
        return self._connection is not None

    def connect(self) -> None:
        if self.is_connected():
            return
        self.reconnect()

    def reconnect(self) -> None:
        self.disconnect()

        url = self.url
        if self.type is DatabaseType.SQLITE and self.database_name != MEMORY:
            if not os.access(self.database_name, os.R_OK):
                raise DatabaseError(f"Could not read Sqlite database: {self.database_name}")

        try:
            engine = sqlalchemy.create_engine(url, echo=self.echo)
            connection = engine.connect().execution_options(isolation_level="AUTOCOMMIT")
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Could not connect to {self.type.value} database: {exc}") from exc

        self._engine = engine
        self._connection = connection
        logger.info("Connected to %s", url.render_as_string(hide_password=True))

    def disconnect(self) -> None:
        if self._connection is None:
            return
        self._connection.close()
        self._engine.dispose()
        self._connection = None
        self._engine = None
        self.in_transaction = False
        logger.info("Disconnected from %s database", self.type.value)

    def query(self, statement: Statement) -> typing.List[Row]:
        if isinstance(statement, str):
            statement = sqlalchemy.text(statement)

        self.last_query = self._render(statement)
        self.connect()

        logger.debug("Executing query: %s", self.last_query)
        try:
            result = self._connection.execute(statement)
        except SQLAlchemyError as exc:
            reason = getattr(exc, "orig", None) or exc
            raise DatabaseError(
                f"Could not perform query: '{self.last_query}', reason: {type(reason).__name__}: '{reason}'"
            ) from exc

        self.query_count += 1

        if _is_insert(statement):
            self._last_generated_key = str(result.lastrowid) if result.lastrowid else None

        if not result.returns_rows:
            return []

        return [{key: _to_raw(value) for key, value in row.items()} for row in result.mappings()]

    def get_last_generated_key(self) -> typing.Optional[str]:
        return self._last_generated_key

    def _render(self, statement: ClauseElement) -> str:
        dialect = self._engine.dialect if self._engine is not None else None
        return str(statement.compile(dialect=dialect))

    def __repr__(self) -> str:
        password = MASKED if self.password is not None else None
        return (
            f"{type(self).__name__}(type={self.type!r}, host={self.host!r}, port={self.port!r}, "
            f"username={self.username!r}, password={password!r}, database_name={self.database_name!r}, "
            f"charset={self.charset!r}, connected={self.is_connected()!r})"
        )
