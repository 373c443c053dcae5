"""
Flask app factory registering the MacroTrack API blueprints.
"""
from __future__ import annotations
#py -m macrotrack_backend.app.flask_app
import atexit
import logging
from typing import Any, Dict, Optional
from flask import Flask, request, jsonify
from flask_cors import CORS

from .config import Config
from .errors import MacroTrackError

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))


def create_app(config: Optional[Dict[str, Any]] = None, store: Any = None, analyzer: Any = None) -> Flask:
    """Build the app. `store` and `analyzer` may be injected (tests pass fakes);
    otherwise they are constructed once here from the config."""
    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)
    if config:
        app.config.update(config)
    _configure_logging(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    origins = app.config.get("CORS_ORIGINS") or "*"
    if origins != "*":
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    CORS(app, resources={r"/*": {"origins": origins}}, supports_credentials=True)

    if store is None:
        from .services.supabase_service import SupabaseService
        store = SupabaseService.from_config(app.config)
    if analyzer is None:
        from .services.meal_analysis_service import MealAnalysisService
        analyzer = MealAnalysisService.from_config(app.config)
        atexit.register(analyzer.close)
    app.extensions['macrotrack.store'] = store
    app.extensions['macrotrack.analyzer'] = analyzer

    # Register API blueprints
    from .routes.health import bp as health_bp
    from .routes.profile import bp as profile_bp
    from .routes.meals import bp as meals_bp
    from .routes.tracking import bp as tracking_bp
    from .routes.coaching import bp as coaching_bp
    from .routes.analysis import bp as analysis_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(meals_bp)
    app.register_blueprint(tracking_bp)
    app.register_blueprint(coaching_bp)
    app.register_blueprint(analysis_bp)

    @app.errorhandler(MacroTrackError)
    def handle_app_error(err: MacroTrackError):
        if err.status_code >= 500:
            logger.warning("%s on %s %s", type(err).__name__, request.method, request.path)
        body = {"success": False, "error": err.message}
        if err.retryable:
            body["retryable"] = True
        return jsonify(body), err.status_code

    # Global error handlers to ensure API returns JSON on errors
    @app.errorhandler(500)
    def handle_500(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": "Internal server error"}), 500
        return err

    @app.errorhandler(404)
    def handle_404(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": "Not found"}), 404
        return err

    @app.errorhandler(405)
    def handle_405(err):
        if str(request.path).startswith('/api/'):
            return jsonify({"success": False, "error": "Method not allowed"}), 405
        return err

    return app


# For `python -m macrotrack_backend.app.flask_app`
if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=8000)
