import typing

from entity_orm.features import HasTypedProperties
from entity_orm.property_types import PropertyTyper
from entity_orm.type_caster import TypeCaster


class PropertyTypeDeterminer:
    def __init__(self, type_caster: typing.Optional[TypeCaster] = None) -> None:
        self._type_caster = type_caster

    def type_value(self, entity: typing.Any, name: str, value: typing.Any) -> typing.Any:
        if value is None:
            return None

        typer = self.typer_for(entity, name)
        if typer is None:
            if self._type_caster is not None and isinstance(value, str):
                return self._type_caster.cast(value)
            return value

        return typer.type(value)

    def untype_value(self, entity: typing.Any, name: str, value: typing.Any) -> typing.Any:
        if value is None:
            return None

        typer = self.typer_for(entity, name)
        if typer is None:
            if self._type_caster is not None:
                return self._type_caster.uncast(value)
            return value

        return typer.untype(value)

    @staticmethod
    def typer_for(entity: typing.Any, name: str) -> typing.Optional[PropertyTyper]:
        if not isinstance(entity, HasTypedProperties):
            return None
        return entity.property_type(name)


default_determiner = PropertyTypeDeterminer()
