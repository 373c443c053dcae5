from __future__ import annotations
import logging
from typing import Any, Dict

from ..errors import ProfileExistsError, ProfileNotFoundError
from ..services.macro_service import targets_for_metrics

logger = logging.getLogger(__name__)


def _targets_from(fields: Dict[str, Any]) -> Dict[str, Any]:
    return targets_for_metrics(
        weight_kg=float(fields['weight']),
        height_cm=float(fields['height']),
        age=int(fields['age']),
        gender=fields['gender'],
        activity_level=fields['activity_level'],
        goal=fields['goal'],
    ).as_dict()


def get_profile_controller(store: Any, user_id: int) -> Dict[str, Any]:
    profile = store.get_profile(user_id)
    if not profile:
        raise ProfileNotFoundError()
    return {"success": True, "profile": profile.to_json()}


def create_profile_controller(store: Any, user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    if store.get_profile(user_id):
        raise ProfileExistsError()
    targets = _targets_from(fields)
    record = {**fields, **targets, 'onboarding_complete': True}
    profile = store.create_profile(user_id, record)
    logger.info("Created profile for user %s goal=%s calories=%s",
                user_id, fields['goal'], targets['target_calories'])
    return {"success": True, "profile": profile.to_json(), "macros": targets}


def update_profile_controller(store: Any, user_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    profile = store.get_profile(user_id)
    if not profile:
        raise ProfileNotFoundError()

    merged = {
        'height': profile.height,
        'weight': profile.weight,
        'age': profile.age,
        'gender': profile.gender,
        'activity_level': profile.activity_level,
        'goal': profile.goal,
    }
    merged.update({k: v for k, v in fields.items() if k in merged})

    update = dict(fields)
    targets = None
    if all(v is not None for v in merged.values()):
        targets = _targets_from(merged)
        update.update(targets)

    updated = store.update_profile(user_id, update) if update else profile
    if updated is None:
        # row vanished between read and write
        raise ProfileNotFoundError()
    return {"success": True, "profile": updated.to_json(), "macros": targets}
