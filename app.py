import os
import logging
from datetime import datetime
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Flask specific imports ---
from flask import Flask, request, g
from flask_cors import CORS

# --- Import our configuration and the service wiring ---
from config import Config
from spotify_mcp.auth import build_token_cache
from spotify_mcp.interfaces.http.routes import api_bp, auth_bp, health_bp
from spotify_mcp.observability import configure_structured_logging, metrics_blueprint
from spotify_mcp.settings import load_service_settings


logger = logging.getLogger(__name__)


def configure_logging(log_dir: str) -> str:
    """
    Configure root logging with:
      - FileHandler (INFO+) to a new file per run: log-YYYY-MM-DD-HH-MM-SS
      - StreamHandler (WARNING+) to console when ENABLE_CONSOLE_LOGS is on
      - Werkzeug/Flask loggers routed to root (no extra console spam)

    Returns the path to the created log file.
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
    log_filename = f"log-{timestamp}"
    log_path = os.path.join(log_dir, log_filename)

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    # Preserve structured handlers; remove existing FileHandlers to avoid duplicates
    root.handlers = [h for h in root.handlers if not isinstance(h, logging.FileHandler)]

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_path, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    if Config.ENABLE_CONSOLE_LOGS:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    for name in ("werkzeug", "flask.app"):
        _l = logging.getLogger(name)
        _l.setLevel(logging.INFO)
        _l.handlers = []
        _l.propagate = True

    return log_path


def create_app(settings_overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    configure_structured_logging(app)

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or uuid4().hex

    @app.after_request
    def _inject_request_id(response):
        if getattr(g, 'request_id', None):
            response.headers.setdefault('X-Request-ID', g.request_id)
        return response

    settings = load_service_settings(settings_overrides)
    app.extensions['service_settings'] = settings

    cors_resources = {r"/api/*": {"origins": settings.cors_allowed_origins}}
    CORS(
        app,
        resources=cors_resources,
        allow_headers=["Authorization", "Content-Type", "X-API-Key", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )

    # Shared access-token cache; requests carrying their own bearer token bypass it
    app.extensions['token_cache'] = build_token_cache(settings)
    if app.extensions['token_cache'] is None:
        app.logger.info(
            "No SPOTIFY_REFRESH_TOKEN configured; API calls need an Authorization: Bearer header "
            "until /login has been completed."
        )

    # --- Register Blueprints ---
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
    app.register_blueprint(metrics_blueprint)

    return app


if __name__ == '__main__':
    # Configure logging:
    # - In debug with reloader: only in the child process to avoid duplicate files
    # - In non-debug: always configure here
    debug_mode = bool(Config.DEBUG)
    if debug_mode:
        if os.environ.get('WERKZEUG_RUN_MAIN') == 'true':
            log_file_path = configure_logging(Config.LOG_DIR)
            logger.info("File logging initialized at %s", log_file_path)
    else:
        log_file_path = configure_logging(Config.LOG_DIR)
        logger.info("File logging initialized at %s", log_file_path)

    # Check API credentials at startup
    if not Config.SPOTIFY_CLIENT_ID or not Config.SPOTIFY_CLIENT_SECRET:
        logger.warning("Spotify client ID or client secret not found in environment variables.")
        logger.warning("Please set SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET for full functionality.")
    elif not Config.SPOTIFY_REFRESH_TOKEN:
        logger.warning(
            "SPOTIFY_REFRESH_TOKEN is not set. Visit http://localhost:%s/login to perform the one-time authentication.",
            Config.PORT,
        )

    app = create_app()
    app.run(host='0.0.0.0', port=Config.PORT, debug=debug_mode)
