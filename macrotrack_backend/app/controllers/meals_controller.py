from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict

from ..errors import MealNotFoundError, ValidationError
from ..services.tracking_service import recompute_daily_tracking

logger = logging.getLogger(__name__)


def _meal_record(user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    return {**fields, 'user_id': user_id}


def list_meals_controller(store: Any, user_id: int, day: date) -> Dict[str, Any]:
    meals = store.get_meals_by_date(user_id, day)
    return {"success": True, "date": day.isoformat(), "meals": [m.to_json() for m in meals]}


def log_meal_controller(store: Any, user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    meal = store.create_meal(_meal_record(user_id, fields))
    tracking = recompute_daily_tracking(store, user_id, fields['meal_date'])
    logger.info("Logged meal for user %s on %s (%s kcal)", user_id, fields['meal_date'], fields['calories'])
    return {"success": True, "meal": meal.to_json(), "tracking": tracking.to_json()}


def update_meal_controller(store: Any, user_id: int, meal_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    existing = store.get_meal(user_id, meal_id)
    if not existing:
        raise MealNotFoundError()
    meal = store.update_meal(user_id, meal_id, fields)
    if meal is None:
        raise MealNotFoundError()
    tracking = recompute_daily_tracking(store, user_id, existing.meal_date)
    return {"success": True, "meal": meal.to_json(), "tracking": tracking.to_json()}


def delete_meal_controller(store: Any, user_id: int, meal_id: int) -> Dict[str, Any]:
    existing = store.get_meal(user_id, meal_id)
    if not existing:
        raise MealNotFoundError()
    store.delete_meal(user_id, meal_id)
    tracking = recompute_daily_tracking(store, user_id, existing.meal_date)
    return {"success": True, "deleted": meal_id, "tracking": tracking.to_json()}


def upload_meal_image_controller(store: Any, user_id: int, filename: str, content: bytes) -> Dict[str, Any]:
    if not content:
        raise ValidationError("Empty file")
    url = store.upload_image(user_id, content, filename)
    return {"success": True, "url": url}
