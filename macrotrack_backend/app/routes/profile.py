from __future__ import annotations
from flask import Blueprint, jsonify, g
from .utils import json_body, parse_profile
from ..middlewares.auth import require_auth
from ..controllers.profile_controller import (
    create_profile_controller,
    get_profile_controller,
    update_profile_controller,
)
from ..extensions import get_store

bp = Blueprint('profile', __name__, url_prefix='/api/profile')


@bp.get('')
@require_auth
def get_profile():
    return jsonify(get_profile_controller(get_store(), g.user_id))


@bp.post('')
@require_auth
def create_profile():
    fields = parse_profile(json_body())
    return jsonify(create_profile_controller(get_store(), g.user_id, fields)), 201


@bp.patch('')
@require_auth
def update_profile():
    fields = parse_profile(json_body(), partial=True)
    return jsonify(update_profile_controller(get_store(), g.user_id, fields))
