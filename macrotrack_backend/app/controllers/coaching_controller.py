from __future__ import annotations
from datetime import date
from typing import Any, Dict

from ..services.coaching_service import get_or_create_tips


def coaching_for_day_controller(store: Any, user_id: int, day: date) -> Dict[str, Any]:
    tips = get_or_create_tips(store, user_id, day)
    return {"success": True, "date": day.isoformat(), "tips": [t.to_json() for t in tips]}
