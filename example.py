import logging
import typing
from datetime import date, datetime

from entity_orm import (
    Database,
    DatabaseType,
    Entity,
    HasTypedProperties,
    Identity,
    Repository,
    SupportsCreatedAt,
    SupportsUpdatedAt,
    Transaction,
)


class Subscriber(Entity, HasTypedProperties, SupportsCreatedAt, SupportsUpdatedAt):
    id: Identity[int] = None
    name: typing.Optional[str] = None
    active: typing.Optional[bool] = None
    subscribed_on: typing.Optional[date] = None
    created_at: typing.Optional[datetime] = None
    updated_at: typing.Optional[datetime] = None

    def mark_created_at(self) -> None:
        self.created_at = datetime.now().replace(microsecond=0)

    def mark_updated_at(self) -> None:
        self.updated_at = datetime.now().replace(microsecond=0)


class SubscriberRepository(Repository[Subscriber]):
    pass


logging.basicConfig(level=logging.DEBUG)

database = Database(type=DatabaseType.SQLITE, database_name=":memory:")
database.query(
    """
    CREATE TABLE subscribers (
      id INTEGER PRIMARY KEY,
      name TEXT NOT NULL,
      active TEXT DEFAULT NULL,
      subscribed_on TEXT DEFAULT NULL,
      created_at TEXT NOT NULL,
      updated_at TEXT DEFAULT NULL
    )
    """
)

repo = SubscriberRepository(database)

subscriber = Subscriber(name="Seba", active=True, subscribed_on=date.today())
repo.save(subscriber)

got_subscriber = repo.find(subscriber.id)

assert got_subscriber == subscriber, f"\n{got_subscriber}\n{subscriber}"

with Transaction(database):
    subscriber.active = False
    repo.save(subscriber)
    repo.defer_save(Subscriber(name="Ann"), Subscriber(name="Bob"))
    repo.save_deferred()

assert repo.count_all() == 3
assert repo.find_unique_by(lambda query: query.where(repo.table.c.name == "Ann")) is not None

database.disconnect()
