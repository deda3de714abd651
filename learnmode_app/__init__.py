# /learnmode_app/__init__.py
import logging
from logging.config import dictConfig

import click
from flask import Flask
import redis

from .config import Config
from .utils.logging_utils import build_logging_config

dictConfig(build_logging_config(Config.LOG_LEVEL, Config.LOG_DIR, Config.LOG_JSON_FILE))
logger = logging.getLogger(__name__)


def _check_required_settings(app: Flask) -> None:
    missing = [key for key in app.config.get('REQUIRED_SETTINGS', ()) if not app.config.get(key)]
    if missing:
        logger.critical(f"Missing required configuration: {', '.join(missing)}. Refusing to start.")
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")


def create_app(config_class=Config):
    logger.info("--- Creating Flask Application Instance ---")
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get('TESTING'):
        _check_required_settings(app)

    if app.config.get('REDIS_URL'):
        app.redis_client = redis.Redis.from_url(app.config['REDIS_URL'], decode_responses=True)
        logger.info(f"Redis client initialized using URL: {app.config['REDIS_URL']}")
    else:
        app.redis_client = None

    logger.info(f"Flask Environment: {app.config.get('FLASK_ENV', 'not_set')}")
    logger.info(f"Debug Mode: {app.config.get('DEBUG', False)}")

    from .api import api_bp
    app.register_blueprint(api_bp)
    logger.info(f"API Blueprint '{api_bp.name}' registered.")

    register_cli_commands(app)

    logger.info("--- Learn Mode Application Initialization Complete ---")
    return app


def register_cli_commands(app):

    @app.cli.command("session-info")
    @click.argument("video_id")
    def session_info_command(video_id):
        """Print the stored assistant/thread IDs and interaction history for VIDEO_ID."""
        from .extensions import get_session_service
        from .services.errors import StoreError

        service = get_session_service()
        try:
            assistant_id = service.registry.get_context(video_id)
            thread_id = service.registry.get_thread(video_id)
            entries = service.interaction_log.entries(video_id)
        except StoreError as e:
            logger.error(f"session-info failed for video {video_id}: {e}")
            raise click.ClickException(str(e))

        click.echo(f"Video:     {video_id}")
        click.echo(f"Assistant: {assistant_id or '-'}")
        click.echo(f"Thread:    {thread_id or '-'}")
        click.echo(f"Interactions ({len(entries)}):")
        for entry in entries:
            click.echo(f"  {entry}")

    logger.info("Custom CLI commands registered.")
