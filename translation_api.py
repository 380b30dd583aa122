"""
Flask web server for the document translation API with WebSocket support
"""
import logging
import os
import sys
import time
from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Reduce verbosity of werkzeug (Flask HTTP server logs)
logging.getLogger('werkzeug').setLevel(logging.WARNING)

# Reduce verbosity of httpx (one line per model call otherwise)
logging.getLogger('httpx').setLevel(logging.WARNING)

from src.config import (
    ADAPTERS,
    BASE_PATH,
    DATABASE_PATH,
    DEBUG_MODE,
    HOST,
    PORT,
    RENDER_ENDPOINT,
)
from src.api.routes import configure_routes
from src.api.websocket import configure_websocket_handlers
from src.api.handlers import start_translation_job
from src.persistence import SqliteProcessRepository
from src.services import ListenerRegistry, ProcessService, ProcessWatcher

if DEBUG_MODE:
    logging.getLogger().setLevel(logging.DEBUG)

app = Flask(__name__)
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode='threading')

startup_time = int(time.time())

# Ensure working directory exists
try:
    os.makedirs(BASE_PATH, exist_ok=True)
    logger.info(f"Working folder '{BASE_PATH}' is ready")
except OSError as e:
    logger.error(f"Critical error: Unable to create working folder '{BASE_PATH}': {e}")
    sys.exit(1)

process_service = ProcessService(SqliteProcessRepository(DATABASE_PATH), ListenerRegistry())
process_watcher = ProcessWatcher(process_service)


def validate_configuration():
    """Validate required configuration before starting server"""
    issues = []

    if not PORT or not isinstance(PORT, int):
        issues.append("PORT must be a valid integer")
    if not RENDER_ENDPOINT:
        issues.append("RENDER_ENDPOINT must be configured")
    if not any(adapter.api_key for adapter in ADAPTERS.values()):
        issues.append("At least one of OPENAI_API_KEY, GEMINI_API_KEY, ANTHROPIC_API_KEY must be set")

    if issues:
        logger.error("=" * 70)
        logger.error("CONFIGURATION ERROR")
        logger.error("=" * 70)
        for issue in issues:
            logger.error(f"   • {issue}")
        logger.error("   Create a .env file with the required settings and restart the server")
        logger.error("=" * 70)
        raise ValueError("Configuration validation failed. See errors above.")

    logger.info("Configuration validated successfully")


# Wrapper function for starting translation jobs
def start_job_wrapper(process_id, config, pages_dir):
    """Wrapper to inject dependencies into job starter"""
    start_translation_job(process_id, config, pages_dir, process_service)


# Configure routes and WebSocket handlers
configure_routes(app, process_service, start_job_wrapper, startup_time=startup_time)
configure_websocket_handlers(socketio, process_service)


def start_server():
    """Start the translation server"""
    validate_configuration()

    logger.info("=" * 50)
    logger.info("  Legal document translation - Server")
    logger.info("=" * 50)
    logger.info(f"  Working folder: {BASE_PATH}")
    logger.info(f"  Database: {DATABASE_PATH}")
    logger.info(f"  Rendering service: {RENDER_ENDPOINT}")
    for name, adapter in ADAPTERS.items():
        state = "configured" if adapter.api_key else "no API key"
        logger.info(f"  Adapter {name}: {adapter.model} ({state})")
    logger.info("=" * 50)

    # Fails runs interrupted by the previous shutdown, then sweeps periodically
    process_watcher.start()

    try:
        socketio.run(app, debug=False, host=HOST, port=PORT, allow_unsafe_werkzeug=True)
    finally:
        process_watcher.stop()


if __name__ == '__main__':
    start_server()
