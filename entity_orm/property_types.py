import abc
import re
import typing
from datetime import date, datetime, time

from entity_orm.exceptions import TypeMismatch


DATE_SQL = "%Y-%m-%d"
TIME_SQL = "%H:%M:%S"
DATETIME_SQL = f"{DATE_SQL} {TIME_SQL}"

_INTEGER_PATTERN = re.compile(r"0|-?[1-9][0-9]*")
_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}:[0-9]{2}")
_DATETIME_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")


class PropertyTyper(abc.ABC):
    """Converts a single property between its storage string and its typed value.

    Implementations are stateless, so one instance is shared by every entity of a class.
    """

    @abc.abstractmethod
    def type(self, value: str) -> typing.Any:
        pass

    @abc.abstractmethod
    def untype(self, value: typing.Any) -> str:
        pass


class IntegerPropertyTyper(PropertyTyper):
    def type(self, value: str) -> int:
        if not isinstance(value, str) or not _INTEGER_PATTERN.fullmatch(value):
            raise TypeMismatch(f"Could not type '{value}' as integer")
        return int(value)

    def untype(self, value: int) -> str:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeMismatch(f"Could not untype '{value}' from integer")
        return str(value)


class BooleanPropertyTyper(PropertyTyper):
    def type(self, value: str) -> bool:
        if not isinstance(value, str) or value not in ("1", "0"):
            raise TypeMismatch(f"Could not type '{value}' as boolean")
        return value == "1"

    def untype(self, value: bool) -> str:
        if not isinstance(value, bool):
            raise TypeMismatch(f"Could not untype '{value}' from boolean")
        return "1" if value else "0"


class _FormattedPropertyTyper(PropertyTyper):
    name: str
    format: str
    pattern: re.Pattern
    accepts: typing.Tuple[typing.Type, ...]

    def type(self, value: str) -> typing.Any:
        if not isinstance(value, str) or not self.pattern.fullmatch(value):
            raise TypeMismatch(f"Could not type '{value}' as {self.name} with format {self.format}")
        try:
            parsed = datetime.strptime(value, self.format)
        except ValueError as exc:
            raise TypeMismatch(f"Could not type '{value}' as {self.name} with format {self.format}") from exc
        return self._narrow(parsed)

    def untype(self, value: typing.Any) -> str:
        if not isinstance(value, self.accepts):
            raise TypeMismatch(f"Could not untype '{value}' as {self.name} with format {self.format}")
        return value.strftime(self.format)

    @abc.abstractmethod
    def _narrow(self, parsed: datetime) -> typing.Any:
        pass


class DatePropertyTyper(_FormattedPropertyTyper):
    name = "date"
    format = DATE_SQL
    pattern = _DATE_PATTERN
    accepts = (date,)

    def _narrow(self, parsed: datetime) -> date:
        return parsed.date()


class TimePropertyTyper(_FormattedPropertyTyper):
    name = "time"
    format = TIME_SQL
    pattern = _TIME_PATTERN
    accepts = (time, datetime)

    def _narrow(self, parsed: datetime) -> time:
        return parsed.time()


class DateTimePropertyTyper(_FormattedPropertyTyper):
    name = "datetime"
    format = DATETIME_SQL
    pattern = _DATETIME_PATTERN
    accepts = (datetime,)

    def _narrow(self, parsed: datetime) -> datetime:
        return parsed


# Exact type lookup: bool and datetime must not fall back to int and date.
mapping: typing.Dict[typing.Type, PropertyTyper] = {
    int: IntegerPropertyTyper(),
    bool: BooleanPropertyTyper(),
    date: DatePropertyTyper(),
    time: TimePropertyTyper(),
    datetime: DateTimePropertyTyper(),
}


def convert(arg: typing.Type) -> typing.Optional[PropertyTyper]:
    return mapping.get(arg)
