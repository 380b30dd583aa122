"""
Live listeners of process state.

At most one push callable per process id. Consecutive pushes with the same
(status, message) pair are suppressed.
"""
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

PushFunction = Callable[[Dict[str, Any]], None]


class ListenerRegistry:
    """Thread-safe map of process id -> push callable"""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: Dict[int, PushFunction] = {}
        self._last_states: Dict[int, Optional[Tuple[Any, Any]]] = {}

    def register(self, process_id: int, push: PushFunction):
        with self._lock:
            self._listeners[process_id] = push
            self._last_states[process_id] = None
        logger.debug(f"Listener registered for process {process_id}")

    def unregister(self, process_id: int):
        with self._lock:
            self._listeners.pop(process_id, None)
            self._last_states.pop(process_id, None)
        logger.debug(f"Listener removed for process {process_id}")

    def has_listener(self, process_id: int) -> bool:
        with self._lock:
            return process_id in self._listeners

    def notify(self, process_id: int, payload: Dict[str, Any]) -> bool:
        """
        Push a state to the process listener.

        Returns:
            True if a push was made, False when nobody listens or the state
            repeats the previous push
        """
        state = (payload.get('status'), payload.get('message'))
        with self._lock:
            push = self._listeners.get(process_id)
            if push is None or self._last_states.get(process_id) == state:
                return False
            self._last_states[process_id] = state
        push(payload)
        return True
