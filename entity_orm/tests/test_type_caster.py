from datetime import date, datetime, time

import pytest

from entity_orm.type_caster import TypeCaster

NOT_TEMPORAL = ["1", "0b101", "0756", "1.0", "totally a string", '{"json":true}']


@pytest.fixture()
def caster() -> TypeCaster:
    return TypeCaster()


def test_enabled_caster_casts(caster: TypeCaster) -> None:
    assert caster.cast("2019-10-01") == date(2019, 10, 1)


def test_disabled_caster_leaves_values_alone() -> None:
    caster = TypeCaster(enabled=False)

    assert caster.cast("1") == "1"
    assert caster.cast("2019-10-01") == "2019-10-01"


@pytest.mark.parametrize("value", NOT_TEMPORAL + ["12:00:00", "2019-01-01 12:00:00"])
def test_recognizes_only_dates_as_dates(caster: TypeCaster, value: str) -> None:
    assert not caster.is_date(value)
    assert caster.is_date("2019-01-01")


@pytest.mark.parametrize("value", NOT_TEMPORAL + ["2019-01-01", "2019-01-01 12:00:00"])
def test_recognizes_only_times_as_times(caster: TypeCaster, value: str) -> None:
    assert not caster.is_time(value)
    assert caster.is_time("12:00:00")


@pytest.mark.parametrize("value", NOT_TEMPORAL + ["2019-01-01", "12:00:00"])
def test_recognizes_only_datetimes_as_datetimes(caster: TypeCaster, value: str) -> None:
    assert not caster.is_datetime(value)
    assert caster.is_datetime("2019-01-01 12:00:00")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2019-01-01", date(2019, 1, 1)),
        ("12:00:00", time(12, 0, 0)),
        ("2019-01-01 12:00:00", datetime(2019, 1, 1, 12, 0, 0)),
        ("1", 1),
        ("0", 0),
        ("1234", 1234),
    ],
)
def test_casts_recognized_values(caster: TypeCaster, raw: str, expected: object) -> None:
    cast = caster.cast(raw)

    assert cast == expected
    assert type(cast) is type(expected)


@pytest.mark.parametrize("raw", ["0b101", "0756", "1.0", "-1.5", "totally a string", '{"json":true}', ""])
def test_everything_unknown_remains_a_string(caster: TypeCaster, raw: str) -> None:
    assert caster.cast(raw) == raw


@pytest.mark.parametrize(
    "value, integer, non_decimal, floating",
    [
        ("12", True, False, False),
        ("0", True, False, False),
        ("0756", False, True, False),
        ("1.0", False, False, True),
        ("abc", False, False, False),
    ],
)
def test_numeric_predicates(value: str, integer: bool, non_decimal: bool, floating: bool) -> None:
    assert TypeCaster.is_integer(value) is integer
    assert TypeCaster.is_non_decimal_integer(value) is non_decimal
    assert TypeCaster.is_float(value) is floating


@pytest.mark.parametrize("raw", ["2019-01-01", "12:00:00", "2019-01-01 12:00:00", "1234", "0", "1.0", "text"])
def test_uncast_restores_the_raw_string(caster: TypeCaster, raw: str) -> None:
    assert caster.uncast(caster.cast(raw)) == raw


def test_disabled_caster_does_not_uncast() -> None:
    value = datetime(2019, 1, 1, 12, 0, 0)

    assert TypeCaster(enabled=False).uncast(value) is value
