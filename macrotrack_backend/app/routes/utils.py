"""
Request payload validation shared by the API blueprints.

Everything the macro engine and the store receive has been through one of
these parsers, so downstream code can assume positive numbers and known
enum values.
"""
from __future__ import annotations
import math
import re
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional
from flask import request

from ..errors import ValidationError
from ..models import ACTIVITY_LEVELS, CONFIDENCE_LEVELS, GENDERS, GOALS, MEAL_TYPES, to_decimal

_MEAL_TIME = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

# Upper bounds follow the column types in scripts/schema.sql: macro grams are
# numeric(6,2), and body metrics are capped low enough that derived targets fit too.
MAX_MACRO_GRAMS = Decimal('9999.99')
MAX_MEAL_CALORIES = 99999
MAX_AGE = 150
MAX_HEIGHT_CM = Decimal('300')
MAX_WEIGHT_KG = Decimal('500')


def require_fields(data, fields):
    missing = [f for f in fields if f not in data or data[f] is None]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Expected a JSON object body")
    return data


def parse_choice(value: Any, name: str, choices: Iterable[str]) -> str:
    choices = tuple(choices)
    if not isinstance(value, str) or value not in choices:
        raise ValidationError(f"{name} must be one of: {', '.join(choices)}")
    return value


def parse_positive_int(value: Any, name: str, maximum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{name} must be a positive integer")
    try:
        number = float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a positive integer")
    if not number.is_integer() or number <= 0:
        raise ValidationError(f"{name} must be a positive integer")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{name} must be at most {maximum}")
    return int(number)


def parse_positive_number(value: Any, name: str, maximum: Optional[Decimal] = None):
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{name} must be a positive number")
    try:
        number = to_decimal(value)
    except ArithmeticError:
        raise ValidationError(f"{name} must be a positive number")
    if number is None or not number.is_finite() or number <= 0:
        raise ValidationError(f"{name} must be a positive number")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{name} must be at most {maximum}")
    return number


def parse_date(value: Any, name: str = 'date', default: Optional[date] = None) -> date:
    if value in (None, ''):
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    if not isinstance(value, str) or len(value) != 10:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name} must be an ISO date (YYYY-MM-DD)")


def parse_meal_time(value: Any) -> Optional[str]:
    if value in (None, ''):
        return None
    if not isinstance(value, str) or not _MEAL_TIME.match(value):
        raise ValidationError("meal_time must be HH:MM")
    return value


def parse_optional_text(value: Any, name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    return value


def parse_text(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} must be a non-empty string")
    return value


_PROFILE_PARSERS = {
    'goal': lambda v: parse_choice(v, 'goal', GOALS),
    'age': lambda v: parse_positive_int(v, 'age', MAX_AGE),
    'gender': lambda v: parse_choice(v, 'gender', GENDERS),
    'height': lambda v: parse_positive_number(v, 'height', MAX_HEIGHT_CM),
    'weight': lambda v: parse_positive_number(v, 'weight', MAX_WEIGHT_KG),
    'activity_level': lambda v: parse_choice(v, 'activity_level', ACTIVITY_LEVELS),
    'timezone': lambda v: parse_text(v, 'timezone'),
}


def parse_profile(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    if not partial:
        require_fields(data, ['goal', 'age', 'gender', 'height', 'weight', 'activity_level'])
    out: Dict[str, Any] = {}
    for key, parser in _PROFILE_PARSERS.items():
        if data.get(key) is not None:
            out[key] = parser(data[key])
    if not partial:
        out.setdefault('timezone', 'UTC')
    return out


_MEAL_PARSERS = {
    'meal_type': lambda v: parse_choice(v, 'meal_type', MEAL_TYPES),
    'name': lambda v: parse_text(v, 'name'),
    'description': lambda v: parse_optional_text(v, 'description'),
    'calories': lambda v: parse_positive_int(v, 'calories', MAX_MEAL_CALORIES),
    'protein': lambda v: parse_positive_number(v, 'protein', MAX_MACRO_GRAMS),
    'carbs': lambda v: parse_positive_number(v, 'carbs', MAX_MACRO_GRAMS),
    'fat': lambda v: parse_positive_number(v, 'fat', MAX_MACRO_GRAMS),
}


def parse_meal(data: Dict[str, Any], today: date) -> Dict[str, Any]:
    require_fields(data, ['meal_type', 'name', 'calories', 'protein', 'carbs', 'fat'])
    out = {key: parser(data.get(key)) for key, parser in _MEAL_PARSERS.items()}
    ai_estimated = data.get('ai_estimated', False)
    if not isinstance(ai_estimated, bool):
        raise ValidationError("ai_estimated must be a boolean")
    out.update({
        'image_url': parse_optional_text(data.get('image_url'), 'image_url'),
        'ai_estimated': ai_estimated,
        'meal_date': parse_date(data.get('meal_date'), 'meal_date', default=today),
        'meal_time': parse_meal_time(data.get('meal_time')),
    })
    return out


def parse_meal_update(data: Dict[str, Any]) -> Dict[str, Any]:
    if 'meal_date' in data:
        raise ValidationError("meal_date cannot be changed; delete and log the meal again")
    out = {key: parser(data[key]) for key, parser in _MEAL_PARSERS.items() if data.get(key) is not None}
    if data.get('meal_time') is not None:
        out['meal_time'] = parse_meal_time(data['meal_time'])
    if not out:
        raise ValidationError("Nothing to update")
    return out


def parse_analysis_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a previous analysis echoed back by the client for refinement."""
    require_fields(data, ['mealName', 'description', 'calories', 'protein', 'carbs', 'fat',
                          'confidence', 'ingredients', 'notes'])
    parse_choice(data['confidence'], 'confidence', CONFIDENCE_LEVELS)
    if not isinstance(data['ingredients'], list):
        raise ValidationError("ingredients must be a list")
    for key in ('calories', 'protein', 'carbs', 'fat'):
        value = data[key]
        # the JSON parser lets NaN and Infinity through
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"{key} must be a finite number")
    return data
