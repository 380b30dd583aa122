"""
Security utilities for request paths and rate limiting
"""
import logging
import threading
import time
from pathlib import Path
from typing import Dict, List, Union

logger = logging.getLogger(__name__)


class SecurityError(Exception):
    """Custom exception for security-related errors"""
    pass


def resolve_within(base_dir: Union[str, Path], relative_path: str) -> Path:
    """
    Resolve a client supplied path inside base_dir.

    Raises:
        SecurityError: If the path escapes base_dir
    """
    base_resolved = Path(base_dir).resolve()
    resolved_path = (base_resolved / relative_path).resolve()
    if resolved_path != base_resolved and base_resolved not in resolved_path.parents:
        logger.warning(f"Path traversal attempt detected: {relative_path}")
        raise SecurityError("Path traversal attempt detected")
    return resolved_path


class RateLimiter:
    """Simple in-memory rate limiter"""

    def __init__(self, max_requests: int = 10, window_seconds: int = 60):
        self._requests: Dict[str, List[float]] = {}  # IP -> list of timestamps
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._lock = threading.Lock()

    def is_allowed(self, client_ip: str) -> bool:
        """Check if request is allowed for this IP"""
        current_time = time.time()
        window_start = current_time - self._window_seconds

        with self._lock:
            recent = [t for t in self._requests.get(client_ip, []) if t > window_start]
            if len(recent) >= self._max_requests:
                self._requests[client_ip] = recent
                return False
            recent.append(current_time)
            self._requests[client_ip] = recent
            return True

    def get_remaining_requests(self, client_ip: str) -> int:
        """Get remaining requests for this IP"""
        with self._lock:
            return max(0, self._max_requests - len(self._requests.get(client_ip, [])))


def get_client_ip(request) -> str:
    """Get client IP address from Flask request"""
    # Check for X-Forwarded-For header (proxy/load balancer)
    if 'X-Forwarded-For' in request.headers:
        return request.headers['X-Forwarded-For'].split(',')[0].strip()

    # Check for X-Real-IP header (nginx)
    if 'X-Real-IP' in request.headers:
        return request.headers['X-Real-IP']

    # Fallback to remote address
    return request.remote_addr or '127.0.0.1'
