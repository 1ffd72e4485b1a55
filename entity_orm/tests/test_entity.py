from datetime import date, datetime, time
from typing import Any, Dict, Optional

import pytest

from entity_orm.determiner import PropertyTypeDeterminer
from entity_orm.entity import Entity, Identity
from entity_orm.exceptions import (
    EntityPropertyWithoutDefault,
    EntityWithMultipleIdentities,
    EntityWithoutIdentity,
    InvalidPrimaryKey,
    MissingPrimaryKeyValue,
    MissingSetter,
    UnknownProperty,
)
from entity_orm.tests.entities import Event, LockedUser, PlainUser, User
from entity_orm.type_caster import TypeCaster


def test_entity_allows_one_with_identity() -> None:
    class WithIdentity(Entity):
        id: Identity[int] = None

    assert WithIdentity(1).id == 1
    assert WithIdentity.primary_key_name() == "id"


def test_entity_enforces_identity() -> None:
    with pytest.raises(EntityWithoutIdentity):

        class Identless(Entity):
            name: Optional[str] = None


def test_entity_rejects_multiple_identities() -> None:
    with pytest.raises(EntityWithMultipleIdentities):

        class WithDoubleIdentity(Entity):
            id: Identity[int] = None
            second_id: Identity[int] = None


def test_entity_requires_defaults() -> None:
    message = r"Entity WithoutDefault has properties without a default: \['id'\]"

    with pytest.raises(EntityPropertyWithoutDefault, match=message):

        class WithoutDefault(Entity):
            id: Identity[int]
            name: Optional[str] = None


def test_property_names_keep_declaration_order() -> None:
    assert User.property_names() == ["id", "name", "created_at", "updated_at"]


def test_to_map_and_without_empty_values() -> None:
    class Person(Entity):
        id: Identity[int] = None
        name: Optional[str] = None

    person = Person()
    person.name = "Ann"

    assert person.to_map() == {"id": None, "name": "Ann"}
    assert person.to_map_without_empty_values() == {"name": "Ann"}


def test_to_map_without_given_keys() -> None:
    user = User(1, "Ann", "2019-01-01 12:00:00")

    assert user.to_map_without("name", "created_at") == {"id": 1, "updated_at": None}


@pytest.mark.parametrize(
    "value, kept",
    [
        ("0", True),
        (0, True),
        ("Ann", True),
        (1, True),
        (None, False),
        ("", False),
        (False, False),
        (0.0, False),
    ],
)
def test_only_zero_is_not_considered_empty(value: Any, kept: bool) -> None:
    user = PlainUser(name=value)

    assert ("name" in user.to_map_without_empty_values()) is kept


def test_to_map_omits_non_scalar_values() -> None:
    user = PlainUser(1, name="Ann", created_at=datetime(2019, 1, 1))

    assert user.to_map() == {"id": 1, "name": "Ann", "updated_at": None}


def test_to_map_untypes_typed_properties() -> None:
    event = Event(
        id=1,
        active=False,
        starts_on=date(2019, 12, 1),
        starts_at=time(12, 34, 45),
        scheduled=datetime(2019, 12, 1, 12, 34, 45),
        label="CUSTOMIZED/party",
    )

    assert event.to_map() == {
        "id": "1",
        "active": "0",
        "starts_on": "2019-12-01",
        "starts_at": "12:34:45",
        "scheduled": "2019-12-01 12:34:45",
        "label": "party",
        "updated_at": None,
    }


def test_transient_entity_reports_every_property_as_changed() -> None:
    user = User(name="Ann")

    assert not user.has_been_marked_as_original()
    assert user.to_map_changed_only() == user.to_map()


def test_hydrated_entity_has_no_changes() -> None:
    user = User.from_storage_row("id", {"id": "7", "name": "Ann", "created_at": "2019-01-01 12:00:00"})

    assert user.has_been_marked_as_original()
    assert user.to_map_changed_only() == {}


def test_changing_one_property_reports_only_that_property() -> None:
    user = User.from_storage_row("id", {"id": "7", "name": "Ann", "created_at": "2019-01-01 12:00:00"})

    user.name = "Bob"

    assert user.to_map_changed_only() == {"name": "Bob"}


def test_mark_as_original_takes_new_snapshot() -> None:
    user = User(name="Ann")
    user.mark_as_original()

    assert user.has_been_marked_as_original()
    assert user.to_map_changed_only() == {}


def test_primary_key_accessors() -> None:
    user = User()
    user.set_primary_key_value("id", 5)

    assert user.get_primary_key_value("id") == 5


@pytest.mark.parametrize("operation", ["get", "set"])
def test_primary_key_accessors_validate_key(operation: str) -> None:
    user = User()

    with pytest.raises(InvalidPrimaryKey, match="Primary key property 'nope' does not exist on entity User"):
        if operation == "get":
            user.get_primary_key_value("nope")
        else:
            user.set_primary_key_value("nope", 1)


def test_from_storage_row_sets_properties_and_primary_key() -> None:
    user = User.from_storage_row("id", {"id": "1", "name": "Ann", "created_at": "2019-01-01 12:00:00"})

    assert user == User("1", "Ann", "2019-01-01 12:00:00", None)


def test_from_storage_row_types_values_of_typed_entities() -> None:
    event = Event.from_storage_row(
        "id",
        {
            "id": "3",
            "active": "1",
            "starts_on": "2019-12-01",
            "starts_at": "12:34:45",
            "scheduled": "2019-12-01 12:34:45",
            "label": "party",
            "updated_at": None,
        },
    )

    assert event.id == 3
    assert event.active is True
    assert event.starts_on == date(2019, 12, 1)
    assert event.starts_at == time(12, 34, 45)
    assert event.scheduled == datetime(2019, 12, 1, 12, 34, 45)
    assert event.label == "CUSTOMIZED/party"
    assert event.updated_at is None
    assert event.to_map_changed_only() == {}


def test_from_storage_row_skips_null_values() -> None:
    user = User.from_storage_row("id", {"id": "1", "name": None})

    assert user.name is None


@pytest.mark.parametrize(
    "primary_key, row, error, message",
    [
        ("nope", {"id": "1"}, InvalidPrimaryKey, "Primary key property 'nope' does not exist on entity User"),
        ("id", {"name": "Ann"}, MissingPrimaryKeyValue, "Could not set primary key 'id' on entity User"),
        ("id", {"id": None}, MissingPrimaryKeyValue, "Could not set primary key 'id' on entity User"),
        ("id", {"id": "1", "age": "30"}, UnknownProperty, "Property 'age' does not exist on entity User"),
    ],
)
def test_from_storage_row_failures(primary_key: str, row: Dict[str, Optional[str]], error: type, message: str) -> None:
    with pytest.raises(error, match=message):
        User.from_storage_row(primary_key, row)


def test_from_storage_row_requires_a_setter() -> None:
    with pytest.raises(MissingSetter, match="Setter for property 'name' not defined on entity LockedUser"):
        LockedUser.from_storage_row("id", {"id": "7", "name": "Ann"})


def test_read_only_property_has_no_setter() -> None:
    assert LockedUser.setter_for("name") is None
    assert LockedUser.setter_for("created_at") is not None


def test_hydrated_entity_converts_back_with_its_determiner() -> None:
    determiner = PropertyTypeDeterminer(TypeCaster())

    user = PlainUser.from_storage_row("id", {"id": "1", "name": "Ann", "created_at": "2019-01-01 12:00:00"}, determiner)

    assert user.id == 1
    assert user.created_at == datetime(2019, 1, 1, 12, 0, 0)
    assert user.to_map() == {"id": "1", "name": "Ann", "created_at": "2019-01-01 12:00:00", "updated_at": None}
    assert user.to_map_changed_only() == {}

    user.created_at = datetime(2020, 5, 5, 5, 5, 5)

    assert user.to_map_changed_only() == {"created_at": "2020-05-05 05:05:05"}
