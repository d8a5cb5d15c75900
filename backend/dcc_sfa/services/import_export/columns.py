"""
Spreadsheet column metadata and value coercion
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional, Union

COLUMN_TYPES = ("string", "number", "date", "boolean", "email")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
TRUE_VALUES = ("true", "1", "yes", "y")
BOOL_VALUES = TRUE_VALUES + ("false", "0", "no", "n")
DATE_FORMATS = ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S", "%d/%m/%Y", "%m/%d/%Y", "%d-%m-%Y")


@dataclass
class ColumnDefinition:
    key: str
    header: str
    required: bool = False
    type: str = "string"
    width: int = 20
    validation: Optional[Callable[[Any], Union[bool, str]]] = None
    transform: Optional[Callable[[Any], Any]] = None
    default_value: Any = None
    description: str = ""

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "header": self.header,
            "required": self.required,
            "type": self.type,
            "width": self.width,
            "description": self.description,
        }


def is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def parse_number(value):
    """"12" → 12, "12.5" → 12.5; raises ValueError for anything else"""
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, (int, Decimal)):
        return value
    number = float(str(value).strip())
    if number != number or number in (float("inf"), float("-inf")):
        raise ValueError(f"not a number: {value!r}")
    return int(number) if number.is_integer() else number


def parse_date(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"not a date: {value!r}")


def parse_bool(value) -> bool:
    return str(value).strip().lower() in TRUE_VALUES


def yes_no(value) -> Union[bool, str]:
    """Validation for Y/N flag columns"""
    return str(value).strip().upper() in ("Y", "N") or "Must be Y or N"


def upper_flag(value) -> str:
    return str(value).strip().upper() if not is_blank(value) else "Y"


def positive_int(label: str) -> Callable[[Any], Union[bool, str]]:
    def check(value):
        try:
            number = parse_number(value)
        except ValueError:
            return f"{label} must be a positive number"
        if number != int(number) or int(number) <= 0:
            return f"{label} must be a positive number"
        return True
    return check


def max_length(label: str, limit: int) -> Callable[[Any], Union[bool, str]]:
    def check(value):
        return len(str(value)) <= limit or f"{label} must be at most {limit} characters"
    return check


def one_of(label: str, choices) -> Callable[[Any], Union[bool, str]]:
    def check(value):
        return str(value).strip().lower() in choices or f"{label} must be one of: {', '.join(choices)}"
    return check


def to_export_value(value):
    """Cell value for exports: dates as YYYY-MM-DD, decimals as floats"""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def to_jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value
