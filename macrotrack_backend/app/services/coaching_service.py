from __future__ import annotations
import logging
from datetime import date
from typing import Any, List

from ..models import CoachingLog
from .macro_service import MacroAmounts, generate_coaching_tips
from .tracking_service import day_lock

logger = logging.getLogger(__name__)


def _target(value: Any) -> Any:
    return float(value) if value is not None else None


def get_or_create_tips(store: Any, user_id: int, day: date) -> List[CoachingLog]:
    """Coaching tips for one day, generated at most once and then served from the store."""
    existing = store.get_coaching_logs(user_id, day)
    if existing:
        logger.debug("Serving %d cached coaching tips user=%s day=%s", len(existing), user_id, day)
        return existing

    profile = store.get_profile(user_id)
    tracking = store.get_daily_tracking(user_id, day)
    if not profile or not tracking:
        return []

    totals = MacroAmounts(
        calories=tracking.total_calories,
        protein=float(tracking.total_protein),
        carbs=float(tracking.total_carbs),
        fat=float(tracking.total_fat),
    )
    targets = MacroAmounts(
        calories=_target(profile.target_calories),
        protein=_target(profile.target_protein),
        carbs=_target(profile.target_carbs),
        fat=_target(profile.target_fat),
    )
    tips = generate_coaching_tips(totals, targets, profile.goal)

    with day_lock(user_id, day):
        # another request may have generated while we were computing
        existing = store.get_coaching_logs(user_id, day)
        if existing:
            return existing
        logger.info("Generated %d coaching tips user=%s day=%s", len(tips), user_id, day)
        return store.add_coaching_logs(
            user_id, day, [{'tip': t.tip, 'category': t.category} for t in tips])
