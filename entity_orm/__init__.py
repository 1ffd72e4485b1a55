from entity_orm.database import Database, DatabaseType
from entity_orm.determiner import PropertyTypeDeterminer
from entity_orm.entity import Entity, Identity, read_only, typed
from entity_orm.features import HasTypedProperties, SupportsCreatedAt, SupportsUpdatedAt
from entity_orm.property_types import (
    BooleanPropertyTyper,
    DatePropertyTyper,
    DateTimePropertyTyper,
    IntegerPropertyTyper,
    PropertyTyper,
    TimePropertyTyper,
)
from entity_orm.repository import Repository
from entity_orm.transaction import Transaction
from entity_orm.type_caster import TypeCaster
from entity_orm.value_set import ValueSet, ValueSetBuilder

__all__ = [
    "BooleanPropertyTyper",
    "Database",
    "DatabaseType",
    "DatePropertyTyper",
    "DateTimePropertyTyper",
    "Entity",
    "HasTypedProperties",
    "Identity",
    "IntegerPropertyTyper",
    "PropertyTyper",
    "PropertyTypeDeterminer",
    "Repository",
    "SupportsCreatedAt",
    "SupportsUpdatedAt",
    "TimePropertyTyper",
    "Transaction",
    "TypeCaster",
    "ValueSet",
    "ValueSetBuilder",
    "read_only",
    "typed",
]
