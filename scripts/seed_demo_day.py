from __future__ import annotations
import os
import sys
from datetime import date
from decimal import Decimal

from macrotrack_backend.app.config import Config
from macrotrack_backend.app.controllers.coaching_controller import coaching_for_day_controller
from macrotrack_backend.app.services.macro_service import targets_for_metrics
from macrotrack_backend.app.services.supabase_service import SupabaseService
from macrotrack_backend.app.services.tracking_service import recompute_daily_tracking

DEMO_MEALS = [
    ('breakfast', 'Greek yogurt with granola', 420, '28', '55', '9'),
    ('lunch', 'Chicken rice bowl', 640, '45', '72', '15'),
    ('snack', 'Apple and peanut butter', 290, '8', '30', '16'),
]

if __name__ == "__main__":
    # usage: python scripts/seed_demo_day.py <user_id> [YYYY-MM-DD]
    if len(sys.argv) < 2:
        raise SystemExit("usage: seed_demo_day.py <user_id> [date]")
    user_id = int(sys.argv[1])
    day = date.fromisoformat(sys.argv[2]) if len(sys.argv) > 2 else date.today()
    if not Config.SUPABASE_URL or not Config.SUPABASE_SERVICE_ROLE_KEY:
        raise SystemExit("Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY env vars")
    store = SupabaseService.from_config(vars(Config))

    if not store.get_profile(user_id):
        metrics = dict(weight=Decimal('75'), height=Decimal('180'), age=25, gender='male',
                       activity_level='moderate', goal='lean')
        targets = targets_for_metrics(float(metrics['weight']), float(metrics['height']), metrics['age'],
                                      metrics['gender'], metrics['activity_level'], metrics['goal'])
        store.create_profile(user_id, {**metrics, **targets.as_dict(),
                                       'timezone': os.getenv("TZ", "UTC"), 'onboarding_complete': True})
        print(f"Created demo profile: {targets.as_dict()}")

    for meal_type, name, calories, protein, carbs, fat in DEMO_MEALS:
        store.create_meal({
            'user_id': user_id, 'meal_type': meal_type, 'name': name, 'calories': calories,
            'protein': Decimal(protein), 'carbs': Decimal(carbs), 'fat': Decimal(fat),
            'meal_date': day, 'ai_estimated': False,
        })
    tracking = recompute_daily_tracking(store, user_id, day)
    print(f"Tracking {day}: {tracking.total_calories} kcal over {tracking.meal_count} meals")
    for tip in coaching_for_day_controller(store, user_id, day)['tips']:
        print(f"[{tip['category']}] {tip['tip']}")
