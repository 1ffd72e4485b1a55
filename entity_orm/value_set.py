import typing

import attr

from entity_orm.entity import Entity


@attr.s(auto_attribs=True)
class ValueSet:
    values: typing.Dict[str, typing.Any] = attr.Factory(dict)

    def has_values(self) -> bool:
        return bool(self.values)

    def columns(self) -> typing.List[str]:
        return list(self.values)

    def __bool__(self) -> bool:
        return self.has_values()


class ValueSetBuilder:
    def build(self, primary_key: str, entity: Entity, is_insert: bool) -> ValueSet:
        if is_insert:
            values = entity.to_map_without_empty_values()
        else:
            values = entity.to_map_changed_only()

        # the key is generated on insert and lives in the WHERE clause on update
        values.pop(primary_key, None)
        return ValueSet(values)
