"""
Route registration
"""
from src.config import PROCESS_RATE_LIMIT, PROCESS_RATE_WINDOW, BASE_PATH
from src.utils.security import RateLimiter
from .blueprints.config_routes import create_config_blueprint
from .blueprints.process_routes import create_process_blueprint


def configure_routes(app, service, start_job, base_path=BASE_PATH, startup_time=None, rate_limiter=None):
    """
    Register all blueprints on the Flask app

    Args:
        app: Flask application
        service: Process service
        start_job: Callable (process_id, config, pages_dir) starting a translation job
        base_path: Root directory of the page image directories
        startup_time: Server start timestamp reported by /api/health
        rate_limiter: Limiter for process creation (defaults to the configured one)
    """
    if rate_limiter is None:
        rate_limiter = RateLimiter(PROCESS_RATE_LIMIT, PROCESS_RATE_WINDOW)
    app.register_blueprint(create_config_blueprint(startup_time))
    app.register_blueprint(create_process_blueprint(service, start_job, base_path, rate_limiter))
