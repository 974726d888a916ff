"""Turn raw request values into value objects, reporting problems as ValidationError"""
from datetime import date

import pydantic

from domain.errors import ValidationError
from domain.value_objects import DateRange, Occupancy


def _first_message(exc: pydantic.ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", str(exc))
    return f"{field}: {message}" if field else message


def make_stay(check_in: date, check_out: date) -> DateRange:
    try:
        return DateRange(check_in=check_in, check_out=check_out)
    except pydantic.ValidationError as e:
        raise ValidationError(_first_message(e), check_in=str(check_in), check_out=str(check_out))


def make_occupancy(adults: int, children: int = 0) -> Occupancy:
    try:
        return Occupancy(adults=adults, children=children)
    except pydantic.ValidationError as e:
        raise ValidationError(_first_message(e), adults=adults, children=children)
