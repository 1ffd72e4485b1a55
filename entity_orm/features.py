import abc
import typing

from entity_orm.property_types import PropertyTyper


class SupportsCreatedAt(abc.ABC):
    @abc.abstractmethod
    def mark_created_at(self) -> None:
        pass


class SupportsUpdatedAt(abc.ABC):
    @abc.abstractmethod
    def mark_updated_at(self) -> None:
        pass


class HasTypedProperties(abc.ABC):
    """Entities carrying this capability have their columns typed on load and untyped on save.

    The default lookup uses the typer table the entity metaclass builds from annotations
    and `typed()` fields. Override `property_type` to resolve typers differently.
    """

    def property_type(self, name: str) -> typing.Optional[PropertyTyper]:
        return getattr(type(self), "_typers", {}).get(name)
