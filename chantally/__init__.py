# Flask application factory

import logging
import click
from flask import Flask
from chantally.extensions import db, socketio

logger = logging.getLogger(__name__)


def create_app(config=None):
    # Create and configure Flask application
    flask_app = Flask(__name__)

    # Load config: config.py defaults (and config.json), then overrides
    import config as default_config
    flask_app.config.update(default_config.as_dict())
    if config:
        if isinstance(config, dict):
            flask_app.config.update(config)
        else:
            flask_app.config.from_object(config)

    # Import socket handlers before init_app so every app instance gets them
    import chantally.sockets  # noqa

    # Initialize extensions
    db.init_app(flask_app)
    socketio.init_app(flask_app, async_mode=flask_app.config['SOCKETIO_ASYNC_MODE'])

    # Register blueprints
    from chantally.routes import api_bp
    flask_app.register_blueprint(api_bp)

    _register_commands(flask_app)

    # Create database tables if needed
    with flask_app.app_context():
        _init_database()

    return flask_app


def _init_database():
    # Initialize database tables
    from chantally import models  # noqa
    db.create_all()
    logger.debug("[DATABASE] Tables ready")


def _register_commands(flask_app):

    @flask_app.cli.command('ensure-consistency')
    def ensure_consistency_command():
        """Recompute channel counters and publish membership changes."""
        from chantally.functions.consistency import ensure_consistency
        deltas = ensure_consistency()
        click.echo(f"{len(deltas)} channel(s) updated")
        for delta in deltas:
            click.echo(
                f"  channel {delta.channel_id}: "
                f"messages_count={delta.messages_count} user_count={delta.user_count}"
            )
