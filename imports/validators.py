# ===== IMPORTS VALIDATORS - ROW NORMALIZATION =====
"""
Row validation and normalization for CSV imports.

Each normalize_* function takes one parsed CSV row (column name -> trimmed
string) plus the job's ReferenceTables and either returns a payload ready
for the ORM or raises RowValidationError with the message stored on the
ImportJobError. Nothing here touches the database.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from listings.models import Bank

from .exceptions import RowValidationError
from .resolver import ReferenceTables, normalize_name

PROJECT_REQUIRED_FIELDS = ['name', 'developer', 'city', 'district']

COMPLETION_DATE_FORMATS = ['%Y-%m-%d', '%m/%d/%Y']

DEFAULT_CURRENCY = 'USD'

LATITUDE_RANGE = (Decimal('-90'), Decimal('90'))
LONGITUDE_RANGE = (Decimal('-180'), Decimal('180'))
COORDINATE_PLACES = Decimal('0.000001')

# Upper bound of the BigIntegerField price column
MAX_PRICE = 9223372036854775807

_NON_PRICE_CHARS = re.compile(r'[^\d.]')
_LEADING_NUMBER = re.compile(r'\d+(?:\.\d*)?|\.\d+')
_CURRENCY_CODE = re.compile(r'^[A-Za-z]{3}$')


@dataclass
class ProjectPayload:
    """Normalized project row: model field values plus bank links to create."""

    fields: Dict[str, Any]
    banks: List[Bank] = field(default_factory=list)
    missing_banks: List[str] = field(default_factory=list)


def _value(row: Dict[str, str], key: str) -> str:
    return (row.get(key) or '').strip()


def _optional(row: Dict[str, str], key: str) -> Optional[str]:
    return _value(row, key) or None


# =============================================================================
# FIELD PARSERS
# =============================================================================

def parse_completion_date(value: str) -> Optional[date]:
    """
    Parse a completion date in YYYY-MM-DD or MM/DD/YYYY form.

    Args:
        value: Trimmed cell value

    Returns:
        date, or None for an empty cell

    Raises:
        RowValidationError: if the value matches neither format
    """
    if not value:
        return None

    for date_format in COMPLETION_DATE_FORMATS:
        try:
            return datetime.strptime(value, date_format).date()
        except ValueError:
            continue

    raise RowValidationError(f"Invalid completion date format: {value}")


def parse_price(value: str) -> Optional[int]:
    """
    Permissive price parse: "$1,250,000.50" -> 1250001.

    Every character other than digits and dots is dropped, the leading
    numeric part is read and rounded half-up to an integer. A value with
    no digits, or one too large for the price column, gives None rather
    than an error.
    """
    cleaned = _NON_PRICE_CHARS.sub('', value or '')
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None

    try:
        amount = Decimal(match.group(0))
    except InvalidOperation:
        return None

    price = int(amount.to_integral_value(rounding=ROUND_HALF_UP))
    if price > MAX_PRICE:
        return None
    return price


def parse_coordinate(value: str, bounds, label: str) -> Optional[Decimal]:
    """
    Parse one coordinate. Empty means absent; anything else must be a finite
    number inside bounds, otherwise "Invalid <label>: <value>".
    """
    if not value:
        return None

    try:
        number = Decimal(value)
    except InvalidOperation:
        raise RowValidationError(f"Invalid {label}: {value}")

    low, high = bounds
    if not number.is_finite() or number < low or number > high:
        raise RowValidationError(f"Invalid {label}: {value}")

    return number.quantize(COORDINATE_PLACES, rounding=ROUND_HALF_UP)


def parse_currency(value: str) -> str:
    if not value:
        return DEFAULT_CURRENCY
    if not _CURRENCY_CODE.match(value):
        raise RowValidationError(f"Invalid currency: {value}")
    return value.upper()


def split_bank_names(value: str) -> List[str]:
    """Comma separated bank names, trimmed, blanks and repeats removed."""
    names = []
    seen = set()
    for part in (value or '').split(','):
        name = part.strip()
        key = normalize_name(name)
        if name and key not in seen:
            seen.add(key)
            names.append(name)
    return names


# =============================================================================
# ROW NORMALIZERS
# =============================================================================

def normalize_project_row(row: Dict[str, str], tables: ReferenceTables) -> ProjectPayload:
    """
    Validate a project row and resolve its references.

    Checks run in a fixed order so the first problem found is the one
    reported: required fields, developer, city, district, district/city
    consistency, completion date, coordinates.

    Args:
        row: Parsed CSV row
        tables: Job-scoped reference maps

    Returns:
        ProjectPayload with Project field values and resolved banks

    Raises:
        RowValidationError: on the first failed check
    """
    if any(not _value(row, key) for key in PROJECT_REQUIRED_FIELDS):
        raise RowValidationError("Missing required fields: name, developer, city, district")

    developer_name = _value(row, 'developer')
    developer = tables.developer(developer_name)
    if developer is None:
        raise RowValidationError(f"Developer not found: {developer_name}")

    city_name = _value(row, 'city')
    city = tables.city(city_name)
    if city is None:
        raise RowValidationError(f"City not found: {city_name}")

    district_name = _value(row, 'district')
    district = tables.district(district_name, city=city)
    if district is None:
        raise RowValidationError(f"District not found: {district_name}")

    if district.city_id != city.id:
        raise RowValidationError(f"District {district.name} does not belong to city {city.name}")

    completion_date = parse_completion_date(_value(row, 'completion_date'))
    latitude = parse_coordinate(_value(row, 'latitude'), LATITUDE_RANGE, 'latitude')
    longitude = parse_coordinate(_value(row, 'longitude'), LONGITUDE_RANGE, 'longitude')

    payload = ProjectPayload(fields={
        'name': _value(row, 'name'),
        'developer': developer,
        'city': city,
        'district': district,
        'address': _optional(row, 'address'),
        'latitude': latitude,
        'longitude': longitude,
        'short_description': _optional(row, 'short_description'),
        'description': _optional(row, 'description'),
        'cover_image_url': _optional(row, 'cover_image_url'),
        'price_from': parse_price(_value(row, 'price_from')),
        'currency': parse_currency(_value(row, 'currency')),
        'completion_date': completion_date,
    })

    linked = set()
    for bank_name in split_bank_names(_value(row, 'banks')):
        bank = tables.bank(bank_name)
        if bank is None:
            payload.missing_banks.append(bank_name)
        elif bank.id not in linked:
            linked.add(bank.id)
            payload.banks.append(bank)

    return payload


def _normalize_directory_row(row, existing, label):
    name = _value(row, 'name')
    if not name:
        raise RowValidationError("Missing required field: name")
    if normalize_name(name) in existing:
        raise RowValidationError(f"{label} already exists: {name}")
    return {
        'name': name,
        'logo_url': _optional(row, 'logo_url'),
        'description': _optional(row, 'description'),
    }


def normalize_developer_row(row: Dict[str, str], tables: ReferenceTables) -> Dict[str, Any]:
    """Developer row -> Developer field values. Names must be new."""
    return _normalize_directory_row(row, tables.developers, 'Developer')


def normalize_bank_row(row: Dict[str, str], tables: ReferenceTables) -> Dict[str, Any]:
    """Bank row -> Bank field values. Names must be new."""
    return _normalize_directory_row(row, tables.banks, 'Bank')
