import abc
import inspect
import logging
import typing

import inflection
import sqlalchemy
from sqlalchemy.sql.expression import ColumnElement, Executable, Select, TableClause

from entity_orm.database import Database
from entity_orm.determiner import PropertyTypeDeterminer, default_determiner
from entity_orm.entity import Entity
from entity_orm.exceptions import (
    CannotDeleteUnstored,
    EntityTypeMismatch,
    InvalidPrimaryKey,
    MultipleResultsFound,
    NotConnected,
)
from entity_orm.features import SupportsCreatedAt, SupportsUpdatedAt
from entity_orm.value_set import ValueSet, ValueSetBuilder

logger = logging.getLogger(__name__)

EntityType = typing.TypeVar("EntityType", bound=Entity)
Predicate = typing.Callable[[Select], Select]
OrderBy = typing.Union[ColumnElement, str, None]

COUNT = "count"


def _entity_from_generic_bases(namespace: dict) -> typing.Optional[typing.Type[Entity]]:
    for base in namespace.get("__orig_bases__", ()):
        for arg in typing.get_args(base):
            if isinstance(arg, type) and issubclass(arg, Entity):
                return arg
    return None


class RepositoryMeta(abc.ABCMeta):
    def __new__(mcs, name: str, bases: tuple, namespace: dict, **kwargs: typing.Any) -> typing.Type:
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if inspect.isabstract(cls) or not any(isinstance(base, RepositoryMeta) for base in bases):
            return cls

        if getattr(cls, "entity", None) is None:
            cls.entity = _entity_from_generic_bases(namespace)

        entity_cls = cls.entity
        if not (isinstance(entity_cls, type) and issubclass(entity_cls, Entity)):
            raise TypeError(f"Repository {name} must declare an Entity subclass, got {entity_cls!r}")

        if getattr(cls, "table_name", None) is None:
            cls.table_name = inflection.tableize(entity_cls.__name__)

        if getattr(cls, "primary_key", None) is None:
            cls.primary_key = entity_cls.primary_key_name()
        elif cls.primary_key not in entity_cls.property_names():
            raise InvalidPrimaryKey(
                f"Primary key property '{cls.primary_key}' does not exist on entity {entity_cls.__name__}"
            )

        return cls


class Repository(typing.Generic[EntityType], metaclass=RepositoryMeta):
    """Persists one entity class to one table.

    Subclass as `class UserRepository(Repository[User])`. `table_name` defaults to the
    tableized entity name and `primary_key` to the entity's `Identity` property; both can be
    set explicitly on the subclass.
    """

    entity: typing.Type[EntityType] = None
    table_name: str = None
    primary_key: str = None

    def __init__(
        self,
        database: Database,
        value_set_builder: typing.Optional[ValueSetBuilder] = None,
        determiner: typing.Optional[PropertyTypeDeterminer] = None,
    ) -> None:
        self._database = database
        self._value_set_builder = value_set_builder or ValueSetBuilder()
        self._determiner = determiner or default_determiner
        self._deferred_save_entities: typing.List[EntityType] = []
        self._deferred_delete_entities: typing.List[EntityType] = []
        self._table: typing.Optional[TableClause] = None

    @property
    def table(self) -> TableClause:
        if self._table is None:
            columns = [sqlalchemy.column(name) for name in self.entity.property_names()]
            self._table = sqlalchemy.table(self.table_name, *columns)
        return self._table

    @property
    def primary_key_column(self) -> ColumnElement:
        return self.table.c[self.primary_key]

    def create_entity(self) -> EntityType:
        entity = self.entity()
        entity.use_determiner(self._determiner)
        return entity

    def find_all(
        self, order_by: OrderBy = None, limit: typing.Optional[int] = None, offset: typing.Optional[int] = None
    ) -> typing.List[EntityType]:
        query = self._paginate(sqlalchemy.select(self.table), order_by, limit, offset)
        return self._hydrate(self._execute(query))

    def count_all(self) -> int:
        return self._count(self._count_query())

    def find(self, identity: typing.Any) -> typing.Optional[EntityType]:
        query = sqlalchemy.select(self.table).where(self.primary_key_column == identity).limit(1)
        rows = self._execute(query)
        if not rows:
            return None
        return self._create_entity_from_row(rows[0])

    def find_by(
        self,
        predicate: Predicate,
        order_by: OrderBy = None,
        limit: typing.Optional[int] = None,
        offset: typing.Optional[int] = None,
    ) -> typing.List[EntityType]:
        query = self._paginate(predicate(sqlalchemy.select(self.table)), order_by, limit, offset)
        return self._hydrate(self._execute(query))

    def find_unique_by(self, predicate: Predicate) -> typing.Optional[EntityType]:
        entities = self.find_by(predicate)
        if len(entities) > 1:
            raise MultipleResultsFound(f"Found more than one of '{self.entity.__name__}'")
        if not entities:
            return None
        return entities[0]

    def count_by(self, predicate: Predicate) -> int:
        return self._count(predicate(self._count_query()))

    def is_stored(self, entity: EntityType) -> bool:
        return entity.get_primary_key_value(self.primary_key) is not None and entity.has_been_marked_as_original()

    def save(self, entity: EntityType) -> EntityType:
        self._validate_entity_class(entity)
        entity.use_determiner(self._determiner)

        is_insert = not self.is_stored(entity)
        if is_insert:
            if isinstance(entity, SupportsCreatedAt):
                entity.mark_created_at()
        elif isinstance(entity, SupportsUpdatedAt):
            entity.mark_updated_at()

        value_set = self._value_set_builder.build(self.primary_key, entity, is_insert)
        if not value_set:
            logger.debug("Nothing to save for %r", entity)
            return entity

        if is_insert:
            self._execute(sqlalchemy.insert(self.table).values(value_set.values))
            key = self._database.get_last_generated_key()
            if key is None:
                logger.warning("No key was generated for %r, it stays unstored", entity)
                return entity
            entity.set_primary_key_value(self.primary_key, self._determiner.type_value(entity, self.primary_key, key))
            entity.mark_as_original()
        else:
            query = (
                sqlalchemy.update(self.table)
                .where(self.primary_key_column == self._stored_primary_key(entity))
                .values(value_set.values)
            )
            self._execute(query)

        return entity

    def save_all(self, *entities: EntityType) -> typing.List[EntityType]:
        return [self.save(entity) for entity in entities]

    def defer_save(self, *entities: EntityType) -> None:
        self._deferred_save_entities.extend(entities)

    def save_deferred(self) -> None:
        """Saves every deferred entity: updates one by one, all inserts in a single statement.

        The queue is cleared even if saving fails, so a failed batch is not retried.
        Batch-inserted entities are not assigned their generated keys.
        """
        try:
            value_sets = []
            for entity in self._deferred_save_entities:
                if self.is_stored(entity):
                    self.save(entity)
                    continue

                self._validate_entity_class(entity)
                entity.use_determiner(self._determiner)
                if isinstance(entity, SupportsCreatedAt):
                    entity.mark_created_at()

                value_sets.append(self._value_set_builder.build(self.primary_key, entity, True))

            rows = self._rows_for_insert(value_sets)
            if rows:
                self._execute(sqlalchemy.insert(self.table).values(rows))
        finally:
            self.clear_deferred_saves()

    def clear_deferred_saves(self) -> None:
        self._deferred_save_entities = []

    def delete(self, *entities: EntityType) -> None:
        self._delete_by_primary_keys(self._primary_keys_from_entities(entities))

    def defer_delete(self, *entities: EntityType) -> None:
        self._deferred_delete_entities.extend(entities)

    def delete_deferred(self) -> None:
        try:
            self._delete_by_primary_keys(self._primary_keys_from_entities(self._deferred_delete_entities))
        finally:
            self.clear_deferred_deletes()

    def clear_deferred_deletes(self) -> None:
        self._deferred_delete_entities = []

    def _execute(self, query: Executable) -> typing.List[typing.Dict[str, typing.Optional[str]]]:
        if not self._database.is_connected():
            raise NotConnected("Cannot use repository methods without database connection.")
        return self._database.query(query)

    def _count_query(self) -> Select:
        return sqlalchemy.select(sqlalchemy.func.count().label(COUNT)).select_from(self.table)

    def _count(self, query: Select) -> int:
        rows = self._execute(query)
        if not rows:
            return 0
        return int(rows[0][COUNT] or 0)

    def _paginate(
        self, query: Select, order_by: OrderBy, limit: typing.Optional[int], offset: typing.Optional[int]
    ) -> Select:
        if order_by is not None:
            query = query.order_by(order_by)
        if limit:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        return query

    def _hydrate(self, rows: typing.List[typing.Dict[str, typing.Optional[str]]]) -> typing.List[EntityType]:
        return [self._create_entity_from_row(row) for row in rows]

    def _create_entity_from_row(self, row: typing.Dict[str, typing.Optional[str]]) -> EntityType:
        return self.entity.from_storage_row(self.primary_key, row, self._determiner)

    def _stored_primary_key(self, entity: EntityType) -> typing.Any:
        return self._determiner.untype_value(entity, self.primary_key, entity.get_primary_key_value(self.primary_key))

    def _primary_keys_from_entities(self, entities: typing.Iterable[EntityType]) -> typing.List[typing.Any]:
        primary_keys = []
        for entity in entities:
            self._validate_entity_class(entity)
            if not self.is_stored(entity):
                raise CannotDeleteUnstored("Cannot delete entity that is not stored.")
            primary_keys.append(self._stored_primary_key(entity))
        return primary_keys

    def _delete_by_primary_keys(self, primary_keys: typing.List[typing.Any]) -> None:
        if not primary_keys:
            return
        self._execute(sqlalchemy.delete(self.table).where(self.primary_key_column.in_(primary_keys)))

    def _validate_entity_class(self, entity: typing.Any) -> None:
        if isinstance(entity, self.entity):
            return
        raise EntityTypeMismatch(
            f"Expected '{self.entity.__name__}', got '{type(entity).__name__}' instead. Cannot handle these classes."
        )

    @staticmethod
    def _rows_for_insert(value_sets: typing.List[ValueSet]) -> typing.List[typing.Dict[str, typing.Any]]:
        columns: typing.List[str] = []
        for value_set in value_sets:
            for column in value_set.columns():
                if column not in columns:
                    columns.append(column)
        if not columns:
            return []
        # a multi-row VALUES clause needs the same columns in every row
        return [{column: value_set.values.get(column) for column in columns} for value_set in value_sets]
