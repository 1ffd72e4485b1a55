import typing
from datetime import date, datetime, time

from entity_orm.exceptions import TypeMismatch
from entity_orm.property_types import DatePropertyTyper, DateTimePropertyTyper, PropertyTyper, TimePropertyTyper


class TypeCaster:
    """Infers a typed value from a raw storage string.

    Only values that are unambiguous are converted: decimal integers, dates, times and datetimes.
    Floats, octal-looking numbers and anything else stay strings. A disabled caster returns
    every value untouched.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._date = DatePropertyTyper()
        self._time = TimePropertyTyper()
        self._datetime = DateTimePropertyTyper()

    def cast(self, value: str) -> typing.Union[int, date, time, datetime, str]:
        if not self.enabled:
            return value

        if self.is_integer(value):
            return int(value)

        if self.is_float(value):
            return value

        for typer in (self._date, self._time, self._datetime):
            try:
                return typer.type(value)
            except TypeMismatch:
                continue

        return value

    def uncast(self, value: typing.Any) -> typing.Any:
        """Turns a value produced by `cast` back into its storage string."""
        if not self.enabled:
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)

        # datetime before date, it is a subclass
        for typer in (self._datetime, self._date, self._time):
            if isinstance(value, typer.accepts):
                return typer.untype(value)

        return value

    @staticmethod
    def is_integer(value: str) -> bool:
        return not TypeCaster.is_non_decimal_integer(value) and value.isascii() and value.isdigit()

    @staticmethod
    def is_non_decimal_integer(value: str) -> bool:
        return value.startswith("0") and value != "0"

    @staticmethod
    def is_float(value: str) -> bool:
        if TypeCaster.is_integer(value) or TypeCaster.is_non_decimal_integer(value):
            return False
        try:
            float(value)
        except ValueError:
            return False
        return value.strip() == value and value.lower() not in ("nan", "inf", "-inf", "+inf", "infinity")

    def is_date(self, value: str) -> bool:
        return self._matches(self._date, value)

    def is_time(self, value: str) -> bool:
        return self._matches(self._time, value)

    def is_datetime(self, value: str) -> bool:
        return self._matches(self._datetime, value)

    @staticmethod
    def _matches(typer: PropertyTyper, value: str) -> bool:
        try:
            typer.type(value)
        except TypeMismatch:
            return False
        return True
