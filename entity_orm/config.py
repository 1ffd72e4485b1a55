"""Database settings read from the environment.

Variables (a `.env` file is loaded first, without overriding the real environment):

- ORM_DATABASE_TYPE: `mysql` or `sqlite`
- ORM_DATABASE_HOST, ORM_DATABASE_PORT (defaults to 3306)
- ORM_DATABASE_USERNAME, ORM_DATABASE_PASSWORD
- ORM_DATABASE_NAME: schema name, or file path / `:memory:` for SQLite
- ORM_DATABASE_CHARSET
- ORM_DATABASE_ECHO: `1`/`true` to echo SQL through SQLAlchemy's logger
"""
import logging
import os
import typing

import attr
from dotenv import load_dotenv

from entity_orm.database import DEFAULT_PORT, DatabaseType
from entity_orm.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PREFIX = "ORM_DATABASE_"


@attr.s(auto_attribs=True, frozen=True)
class DatabaseSettings:
    type: typing.Optional[DatabaseType] = None
    host: typing.Optional[str] = None
    port: int = DEFAULT_PORT
    username: typing.Optional[str] = None
    password: typing.Optional[str] = attr.ib(default=None, repr=False)
    database_name: typing.Optional[str] = None
    charset: typing.Optional[str] = None
    echo: bool = False


def _parse_type(raw: typing.Optional[str]) -> typing.Optional[DatabaseType]:
    if raw is None:
        return None
    try:
        return DatabaseType(raw.strip().lower())
    except ValueError:
        raise ConfigurationError(f"Invalid database type '{raw}', expected one of: mysql, sqlite") from None


def _parse_port(raw: typing.Optional[str]) -> int:
    if raw is None:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid database port '{raw}'") from None


def load_settings(
    env_file: typing.Optional[str] = None, environ: typing.Optional[typing.Mapping[str, str]] = None
) -> DatabaseSettings:
    if environ is None:
        load_dotenv(env_file)
        environ = os.environ

    settings = DatabaseSettings(
        type=_parse_type(environ.get(f"{PREFIX}TYPE")),
        host=environ.get(f"{PREFIX}HOST"),
        port=_parse_port(environ.get(f"{PREFIX}PORT")),
        username=environ.get(f"{PREFIX}USERNAME"),
        password=environ.get(f"{PREFIX}PASSWORD"),
        database_name=environ.get(f"{PREFIX}NAME"),
        charset=environ.get(f"{PREFIX}CHARSET"),
        echo=environ.get(f"{PREFIX}ECHO", "").strip().lower() in ("1", "true", "yes"),
    )
    logger.debug("Loaded database settings: %s", settings)
    return settings
