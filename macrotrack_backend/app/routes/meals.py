from __future__ import annotations
from datetime import date
from flask import Blueprint, request, jsonify, g
from .utils import json_body, parse_date, parse_meal, parse_meal_update
from ..errors import ValidationError
from ..middlewares.auth import require_auth
from ..controllers.meals_controller import (
    delete_meal_controller,
    list_meals_controller,
    log_meal_controller,
    update_meal_controller,
    upload_meal_image_controller,
)
from ..extensions import get_store

bp = Blueprint('meals', __name__, url_prefix='/api/meals')


@bp.get('/today')
@require_auth
def meals_today():
    return jsonify(list_meals_controller(get_store(), g.user_id, date.today()))


@bp.get('')
@require_auth
def meals_by_date():
    day = parse_date(request.args.get('date'), default=date.today())
    return jsonify(list_meals_controller(get_store(), g.user_id, day))


@bp.post('')
@require_auth
def log_meal():
    fields = parse_meal(json_body(), today=date.today())
    return jsonify(log_meal_controller(get_store(), g.user_id, fields)), 201


@bp.patch('/<int:meal_id>')
@require_auth
def update_meal(meal_id: int):
    fields = parse_meal_update(json_body())
    return jsonify(update_meal_controller(get_store(), g.user_id, meal_id, fields))


@bp.delete('/<int:meal_id>')
@require_auth
def delete_meal(meal_id: int):
    """Delete one meal owned by the current user and refresh that day's totals."""
    return jsonify(delete_meal_controller(get_store(), g.user_id, meal_id))


@bp.post('/image')
@require_auth
def upload_meal_image():
    if 'file' not in request.files:
        raise ValidationError("No file")
    f = request.files['file']
    return jsonify(upload_meal_image_controller(get_store(), g.user_id, f.filename, f.read()))
