import abc
import types
import typing

import attr

from entity_orm import property_types
from entity_orm.determiner import PropertyTypeDeterminer, default_determiner
from entity_orm.exceptions import (
    EntityPropertyWithoutDefault,
    EntityWithMultipleIdentities,
    EntityWithoutIdentity,
    InvalidPrimaryKey,
    MissingPrimaryKeyValue,
    MissingSetter,
    UnknownProperty,
)
from entity_orm.property_types import PropertyTyper


T = typing.TypeVar("T")
E = typing.TypeVar("E", bound="Entity")

Setter = typing.Callable[[typing.Any, typing.Any], None]
Row = typing.Mapping[str, typing.Optional[str]]

TYPER = "entity_orm.typer"
READ_ONLY = "entity_orm.read_only"

SCALAR_TYPES = (str, int, float, bool)


class Identity(typing.Generic[T]):
    @classmethod
    def is_identity(cls, field: attr.Attribute) -> bool:
        return typing.get_origin(field.type) is cls


def typed(typer: PropertyTyper, default: typing.Any = None) -> typing.Any:
    """Declares a column converted by `typer` instead of the one implied by its annotation."""
    return attr.ib(default=default, metadata={TYPER: typer})


def read_only(default: typing.Any = None) -> typing.Any:
    """Declares a column without a setter. Loading a row that contains it fails with `MissingSetter`."""
    return attr.ib(default=default, on_setattr=attr.setters.frozen, metadata={READ_ONLY: True})


def _native_type(field_type: typing.Any) -> typing.Any:
    origin = typing.get_origin(field_type)
    if origin is Identity:
        return _native_type(typing.get_args(field_type)[0])
    if origin is typing.Union or origin is getattr(types, "UnionType", None):
        args = [arg for arg in typing.get_args(field_type) if arg is not type(None)]
        if len(args) == 1:
            return _native_type(args[0])
    return field_type


def _typer_for(field: attr.Attribute) -> typing.Optional[PropertyTyper]:
    if TYPER in field.metadata:
        return field.metadata[TYPER]
    return property_types.convert(_native_type(field.type))


def _attribute_setter(name: str) -> Setter:
    def setter(entity: typing.Any, value: typing.Any) -> None:
        setattr(entity, name, value)

    return setter


def _is_read_only(field: attr.Attribute) -> bool:
    return field.metadata.get(READ_ONLY, False) or field.on_setattr is attr.setters.frozen


def _is_empty(value: typing.Any) -> bool:
    # "0" and 0 are real values, everything else falsy is empty
    if value == "0" or (type(value) is int and value == 0):
        return False
    return not value


def _same(original: typing.Any, value: typing.Any) -> bool:
    return type(original) is type(value) and original == value


class EntityMeta(abc.ABCMeta):
    def __new__(mcs, name: str, bases: tuple, namespace: dict, **kwargs: typing.Any) -> typing.Type:
        cls = super().__new__(mcs, name, bases, namespace, **kwargs)
        if not any(isinstance(base, EntityMeta) for base in bases):
            return cls

        attr_cls = attr.s(auto_attribs=True)(cls)
        fields = attr.fields(attr_cls)

        identities = [field.name for field in fields if Identity.is_identity(field)]
        if not identities:
            raise EntityWithoutIdentity(f"Entity {name} has no Identity property")
        if len(identities) > 1:
            raise EntityWithMultipleIdentities(f"Entity {name} has more than one Identity property: {identities}")

        without_default = [field.name for field in fields if field.default is attr.NOTHING]
        if without_default:
            raise EntityPropertyWithoutDefault(f"Entity {name} has properties without a default: {without_default}")

        attr_cls._identity = identities[0]
        attr_cls._setters = {field.name: _attribute_setter(field.name) for field in fields if not _is_read_only(field)}
        attr_cls._typers = {}
        for field in fields:
            typer = _typer_for(field)
            if typer is not None:
                attr_cls._typers[field.name] = typer
        return attr_cls


class Entity(metaclass=EntityMeta):
    """A row of a table, tracking which of its columns changed since it was last persisted.

    Subclasses declare their columns as annotated attributes with defaults; exactly one of
    them is annotated `Identity[...]` and acts as the primary key. Subclasses defining their
    own `__attrs_post_init__` must call the inherited one.
    """

    def __attrs_post_init__(self) -> None:
        self._original_properties: typing.Dict[str, typing.Any] = {}
        self._marked_as_original = False
        self._determiner: PropertyTypeDeterminer = default_determiner

    @classmethod
    def property_names(cls) -> typing.List[str]:
        return [field.name for field in attr.fields(cls)]

    @classmethod
    def primary_key_name(cls) -> str:
        return cls._identity

    @classmethod
    def setter_for(cls, name: str) -> typing.Optional[Setter]:
        return cls._setters.get(name)

    def validate_primary_key(self, key: str) -> None:
        if key not in attr.fields_dict(type(self)):
            raise InvalidPrimaryKey(f"Primary key property '{key}' does not exist on entity {type(self).__name__}")

    def get_primary_key_value(self, key: str) -> typing.Any:
        self.validate_primary_key(key)
        return getattr(self, key)

    def set_primary_key_value(self, key: str, value: typing.Any) -> None:
        self.validate_primary_key(key)
        object.__setattr__(self, key, value)

    def to_map(self) -> typing.Dict[str, typing.Any]:
        result = {}
        for field in attr.fields(type(self)):
            value = self._determiner.untype_value(self, field.name, getattr(self, field.name))
            if value is not None and not isinstance(value, SCALAR_TYPES):
                continue
            result[field.name] = value
        return result

    def to_map_without(self, *keys: str) -> typing.Dict[str, typing.Any]:
        return {key: value for key, value in self.to_map().items() if key not in keys}

    def to_map_without_empty_values(self) -> typing.Dict[str, typing.Any]:
        return {key: value for key, value in self.to_map().items() if not _is_empty(value)}

    def to_map_changed_only(self) -> typing.Dict[str, typing.Any]:
        original = self._original_properties
        return {
            key: value
            for key, value in self.to_map().items()
            if key not in original or not _same(original[key], value)
        }

    def mark_as_original(self) -> None:
        self._original_properties = self.to_map()
        self._marked_as_original = True

    def has_been_marked_as_original(self) -> bool:
        return self._marked_as_original

    def use_determiner(self, determiner: PropertyTypeDeterminer) -> None:
        """Converts this entity's values to and from storage with `determiner` from now on."""
        self._determiner = determiner

    @classmethod
    def from_storage_row(
        cls: typing.Type[E], primary_key: str, row: Row, determiner: typing.Optional[PropertyTypeDeterminer] = None
    ) -> E:
        entity = cls()
        if determiner is not None:
            entity.use_determiner(determiner)
        determiner = entity._determiner
        entity.validate_primary_key(primary_key)

        if row.get(primary_key) is None:
            raise MissingPrimaryKeyValue(
                f"Could not set primary key '{primary_key}' on entity {cls.__name__} from values"
            )

        declared = attr.fields_dict(cls)
        for name, raw in row.items():
            if name not in declared:
                raise UnknownProperty(f"Property '{name}' does not exist on entity {cls.__name__}")

            if name == primary_key:
                entity.set_primary_key_value(name, determiner.type_value(entity, name, raw))
                continue

            setter = cls.setter_for(name)
            if setter is None:
                raise MissingSetter(f"Setter for property '{name}' not defined on entity {cls.__name__}")

            if raw is not None:
                setter(entity, determiner.type_value(entity, name, raw))

        entity.mark_as_original()
        return entity
