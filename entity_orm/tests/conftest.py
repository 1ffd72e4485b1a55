from typing import Generator

import pytest
from _pytest.config.argparsing import Parser
from _pytest.fixtures import SubRequest

from entity_orm import Database, DatabaseType


def pytest_addoption(parser: Parser) -> None:
    parser.addoption("--sqlite-database", action="store", default=":memory:")


@pytest.fixture()
def database(request: SubRequest) -> Generator[Database, None, None]:
    database = Database(type=DatabaseType.SQLITE, database_name=request.config.getoption("--sqlite-database"))
    database.connect()
    yield database
    database.disconnect()


@pytest.fixture()
def users_table(database: Database) -> Database:
    database.query("DROP TABLE IF EXISTS users")
    database.query(
        """
        CREATE TABLE users (
          id INTEGER PRIMARY KEY,
          name TEXT NOT NULL,
          created_at TEXT NOT NULL,
          updated_at TEXT DEFAULT NULL
        )
        """
    )
    database.query_count = 0
    return database
