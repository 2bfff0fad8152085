"""Flask application factory for claudeye.

Exposes the Monitor's snapshots to external consumers over HTTP.

Usage:
    from claudeye.app import create_app
    app = create_app(monitor=monitor)
    app.run(port=5055)
"""

import logging

from flask import Flask

from claudeye.models.config import AppConfig
from claudeye.routes import register_blueprints
from claudeye.services.monitor import Monitor

logger = logging.getLogger(__name__)


def create_app(config: AppConfig | None = None, monitor: Monitor | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Application configuration. Taken from the monitor when omitted.
        monitor: Monitor to serve. Built from config if not provided; it is
            not started here.

    Returns:
        Configured Flask application.
    """
    if monitor is None:
        monitor = Monitor(config)
    config = config or monitor.config

    app = Flask(__name__)
    app.config["TESTING"] = False
    app.config["SSE_KEEPALIVE_SECONDS"] = 15.0

    # Store services on app for access in routes
    app.extensions["config"] = config
    app.extensions["monitor"] = monitor

    register_blueprints(app)
    logger.info("Application initialized")

    return app
