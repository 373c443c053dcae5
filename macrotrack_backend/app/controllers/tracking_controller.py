from __future__ import annotations
from datetime import date, timedelta
from typing import Any, Dict

from ..errors import ValidationError
from ..models import DailyTracking
from ..services.macro_service import calculate_macro_percentages

MAX_HISTORY_DAYS = 366


def tracking_for_day_controller(store: Any, user_id: int, day: date) -> Dict[str, Any]:
    tracking = store.get_daily_tracking(user_id, day)
    profile = store.get_profile(user_id)
    if tracking:
        percentages = calculate_macro_percentages(
            tracking.total_calories, tracking.total_protein, tracking.total_carbs, tracking.total_fat)
    else:
        percentages = calculate_macro_percentages(0, 0, 0, 0)
    return {
        "success": True,
        "date": day.isoformat(),
        "tracking": tracking.to_json() if tracking else None,
        "profile": profile.to_json() if profile else None,
        "macro_percentages": percentages,
    }


def tracking_history_controller(store: Any, user_id: int, start: date, end: date) -> Dict[str, Any]:
    """Per-day totals for start..end inclusive; days without meals are zero-filled."""
    if start > end:
        start, end = end, start
    if (end - start).days + 1 > MAX_HISTORY_DAYS:
        raise ValidationError(f"Range is limited to {MAX_HISTORY_DAYS} days")
    by_date = {t.tracking_date: t for t in store.list_daily_tracking(user_id, start, end)}
    items = []
    d = start
    while d <= end:
        items.append((by_date.get(d) or DailyTracking(user_id=user_id, tracking_date=d)).to_json())
        d = d + timedelta(days=1)
    return {"success": True, "range": {"start": start.isoformat(), "end": end.isoformat()}, "items": items}
