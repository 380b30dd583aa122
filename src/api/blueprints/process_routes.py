"""
Process routes: start, inspect, cancel and delete translation runs
"""
import logging

from flask import Blueprint, Response, jsonify, request

from src.config import BASE_PATH, TranslationConfig
from src.models import ProcessStatus
from src.services import ProcessNotFoundError, ProcessService
from src.utils.security import RateLimiter, SecurityError, get_client_ip, resolve_within

logger = logging.getLogger(__name__)


def create_process_blueprint(service: ProcessService, start_job, base_path=BASE_PATH,
                             rate_limiter: RateLimiter = None):
    """Create and configure the process blueprint

    Args:
        service: Process state machine
        start_job: Callable (process_id, TranslationConfig, pages_dir) starting the background job
        base_path: Directory that every pages_dir must live in
        rate_limiter: Optional limiter applied to process creation
    """
    bp = Blueprint('processes', __name__)

    @bp.errorhandler(ProcessNotFoundError)
    def handle_not_found(error):
        return jsonify({"error": str(error)}), 404

    @bp.route('/api/processes', methods=['POST'])
    def create_process():
        """Start translating the page images of a directory"""
        if rate_limiter is not None:
            client_ip = get_client_ip(request)
            if not rate_limiter.is_allowed(client_ip):
                return jsonify({"error": "Too many requests. Try again in a few minutes."}), 429

        data = request.get_json(silent=True)
        if not data:
            return jsonify({"error": "No data provided"}), 400

        pages_dir = data.get('pages_dir')
        if not pages_dir:
            return jsonify({"error": "pages_dir is required"}), 400
        try:
            pages_path = resolve_within(base_path, pages_dir)
        except SecurityError as e:
            return jsonify({"error": str(e)}), 400
        if not pages_path.is_dir():
            return jsonify({"error": f"Directory not found: {pages_dir}"}), 400

        try:
            config = TranslationConfig.from_request(data)
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        process = service.create({'translation': config.to_dict(), 'pagesDir': str(pages_path)})
        logger.info(f"Process {process.id} queued: {pages_path} -> {config.language} "
                    f"({config.adapter}, {config.cycles} cycle(s))")
        start_job(process.id, config, str(pages_path))
        return jsonify({"processId": process.id, "status": process.status.value}), 202

    @bp.route('/api/processes', methods=['GET'])
    def list_processes():
        return jsonify({"processes": [process.to_dict() for process in service.list()]})

    @bp.route('/api/processes/<int:process_id>', methods=['GET'])
    def get_process(process_id):
        return jsonify(service.get(process_id).to_dict())

    @bp.route('/api/processes/<int:process_id>', methods=['DELETE'])
    def delete_process(process_id):
        service.delete(process_id)
        return jsonify({"deleted": process_id})

    @bp.route('/api/processes/<int:process_id>/cancel', methods=['POST'])
    def cancel_process(process_id):
        process = service.get(process_id)
        if process.is_terminal:
            return jsonify({"error": f"Process is already {process.status.value}"}), 409
        return jsonify(service.cancel(process_id).to_dict())

    @bp.route('/api/processes/<int:process_id>/html', methods=['GET'])
    def get_process_html(process_id):
        """The assembled document, available once the process is completed"""
        process = service.get(process_id)
        if process.status != ProcessStatus.COMPLETED or not process.html:
            return jsonify({"error": f"Document not available (status: {process.status.value})"}), 409
        return Response(process.html, mimetype='text/html')

    return bp
