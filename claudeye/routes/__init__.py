"""Flask routes for claudeye."""

from claudeye.routes.sessions import sessions_bp

__all__ = [
    "sessions_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app.

    Args:
        app: The Flask application instance.
    """
    app.register_blueprint(sessions_bp, url_prefix="/api")
