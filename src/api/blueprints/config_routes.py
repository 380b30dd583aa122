"""
Configuration and health check routes
"""
import logging
import time

from flask import Blueprint, jsonify

from src.config import (
    ADAPTERS,
    DEBUG_MODE,
    DEFAULT_ADAPTER,
    DEFAULT_TARGET_LANGUAGE,
    RUN_TIMEOUT_HOURS,
)
from src.document_types import get_document_type, list_document_types

# Setup logger for this module
logger = logging.getLogger('config_routes')
if DEBUG_MODE:
    logger.setLevel(logging.DEBUG)


def create_config_blueprint(startup_time=None):
    """Create and configure the config blueprint

    Args:
        startup_time: Server start timestamp, lets clients detect restarts
    """
    bp = Blueprint('config', __name__)
    startup_time = int(startup_time) if startup_time else int(time.time())

    @bp.route('/api/health', methods=['GET'])
    def health_check():
        """API health check endpoint"""
        return jsonify({
            "status": "ok",
            "message": "Translation API is running",
            "adapters": sorted(ADAPTERS),
            "startup_time": startup_time,
        })

    @bp.route('/api/adapters', methods=['GET'])
    def list_adapters():
        """Adapters with their cycle limits and concurrency ceilings (no credentials)"""
        adapters = []
        for name, adapter in ADAPTERS.items():
            entry = adapter.to_dict()
            entry['configured'] = bool(adapter.api_key)
            adapters.append(entry)
        return jsonify({
            "adapters": adapters,
            "default_adapter": DEFAULT_ADAPTER,
            "default_language": DEFAULT_TARGET_LANGUAGE,
            "run_timeout_hours": RUN_TIMEOUT_HOURS,
        })

    @bp.route('/api/document-types', methods=['GET'])
    def document_types():
        """Built-in document types usable as {"documentType": {"key": ...}}"""
        return jsonify({"document_types": list_document_types()})

    @bp.route('/api/document-types/<key>', methods=['GET'])
    def document_type(key):
        entry = get_document_type(key)
        if entry is None:
            return jsonify({"error": f"Document type '{key}' not found"}), 404
        return jsonify(entry)

    return bp
