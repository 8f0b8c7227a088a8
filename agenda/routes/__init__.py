from flask import request

from ..errors import ValidationError
from ..timeutils import parse_date, parse_datetime, parse_time


def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        raise ValidationError("No JSON data provided")
    return data


def require_fields(data, *fields):
    missing = [field for field in fields if data.get(field) in (None, "")]
    if missing:
        raise ValidationError("Missing required fields", code="MissingFields", details={"missing": missing})


def int_field(data, field, minimum=None, maximum=None, required=True):
    value = data.get(field)
    if value is None:
        if required:
            raise ValidationError(f"Missing required field '{field}'", code="MissingFields", details={"missing": [field]})
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"'{field}' must be an integer")
    if (minimum is not None and value < minimum) or (maximum is not None and value > maximum):
        raise ValidationError(f"'{field}' is out of range")
    return value


def datetime_field(data, field):
    try:
        return parse_datetime(data[field])
    except (KeyError, ValueError, TypeError, OverflowError):
        raise ValidationError(
            f"Invalid '{field}' format. Use ISO format (e.g., YYYY-MM-DDTHH:MM:SS+HH:MM)"
        )


def date_arg(name):
    value = request.args.get(name)
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"Invalid '{name}' format. Use YYYY-MM-DD")


def time_field(data, field):
    try:
        return parse_time(data[field])
    except (KeyError, ValueError, TypeError):
        raise ValidationError(f"Invalid '{field}' format. Use HH:MM")
