"""Form and JSON field checks shared by the claim, lead and trade services.

Every ``is_valid_*`` helper treats a blank value as valid; required fields are
checked by the caller. ``validate_fields`` turns a batch of checks into the
"<Label> is invalid" messages the API returns in ``details``.
"""

import math
import re
from datetime import date, datetime

from ..errors import InvalidArgument

NON_DIGIT = re.compile(r"\D+")
EMAIL_SHAPE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
ZIP_SHAPE = re.compile(r"^\d{5}(?:-\d{4})?$")

# 50 states plus DC; carriers in this app only write US policies.
US_STATES = frozenset(
    "AL AK AZ AR CA CO CT DC DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO "
    "MT NE NV NH NJ NM NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY".split()
)

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def as_text(value, label: str) -> str:
    """Trimmed free text from a form or JSON body. None is "", non-strings are rejected."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidArgument(f"{label} must be text.")
    return value.strip()


def normalize_phone(value):
    """Digits only, with a leading US "1" dropped from 11-digit numbers."""
    if _blank(value):
        return None
    digits = NON_DIGIT.sub("", str(value))
    if len(digits) == 11 and digits[0] == "1":
        digits = digits[1:]
    return digits or None


def is_valid_phone(value) -> bool:
    return _blank(value) or len(normalize_phone(value) or "") == 10


def is_valid_email(value) -> bool:
    return _blank(value) or EMAIL_SHAPE.match(str(value).strip()) is not None


def is_valid_zip(value) -> bool:
    """Five digits, optionally ZIP+4."""
    return _blank(value) or ZIP_SHAPE.match(str(value).strip()) is not None


def is_valid_state(value) -> bool:
    return _blank(value) or str(value).strip().upper() in US_STATES


def parse_date(value):
    """Date-of-loss style input: ISO from <input type=date>, or US MM/DD/YYYY.

    Blank gives None. Anything else unreadable raises ValueError.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if _blank(value):
        return None
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass
    raise ValueError(f"Unrecognized date: {text!r}")


def is_valid_date(value) -> bool:
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def parse_money(value):
    """Estimate and deductible amounts: "$12,480.00" -> 12480.0, blank -> None.

    Booleans, NaN and infinities raise ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a number")
    if isinstance(value, (int, float)):
        amount = float(value)
    elif _blank(value):
        return None
    else:
        amount = float(str(value).strip().lstrip("$").replace(",", ""))
    if not math.isfinite(amount):
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


def is_valid_money(value) -> bool:
    try:
        amount = parse_money(value)
    except ValueError:
        return False
    return amount is None or amount >= 0


def validate_fields(checks):
    """Run ``{label: (value, predicate)}`` and collect "<label> is invalid" messages."""
    errors = []
    for label, (value, predicate) in checks.items():
        try:
            ok = predicate(value)
        except (TypeError, ValueError):
            ok = False
        if not ok:
            errors.append(f"{label} is invalid")
    return errors
