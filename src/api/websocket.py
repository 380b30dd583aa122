"""
WebSocket event handlers

A client subscribes to a process id and receives 'process_update' events in
the room of that process.
"""
import logging
import threading
from collections import defaultdict

from flask import request
from flask_socketio import emit, join_room, leave_room

from src.services import ProcessNotFoundError, ProcessService

logger = logging.getLogger(__name__)

PROCESS_UPDATE_EVENT = 'process_update'


def process_room(process_id):
    return f"process-{process_id}"


def emit_update(socketio, process_id, payload):
    """
    Emit a state update to every client subscribed to a process

    Args:
        socketio: SocketIO instance
        process_id (int): Process ID
        payload (dict): {processId, status, message, progress}
    """
    try:
        socketio.emit(PROCESS_UPDATE_EVENT, payload, to=process_room(process_id), namespace='/')
    except Exception as e:
        logger.error(f"Error emitting update for process {process_id}: {e}")


def _parse_process_id(data):
    try:
        return int((data or {}).get('processId'))
    except (TypeError, ValueError):
        return None


def configure_websocket_handlers(socketio, service: ProcessService):
    """
    Configure WebSocket event handlers

    Args:
        socketio: SocketIO instance
        service: Process service whose listener registry receives the room pushes
    """
    lock = threading.Lock()
    subscribers = defaultdict(set)   # process id -> session ids

    def _leave(sid, process_id):
        with lock:
            subscribers[process_id].discard(sid)
            remaining = len(subscribers[process_id])
            if not remaining:
                subscribers.pop(process_id, None)
        if not remaining:
            service.listeners.unregister(process_id)

    @socketio.on('connect')
    def handle_connect():
        logger.debug(f"WebSocket client connected: {request.sid}")

    @socketio.on('disconnect')
    def handle_disconnect(*args):
        sid = request.sid
        with lock:
            process_ids = [pid for pid, sids in subscribers.items() if sid in sids]
        for process_id in process_ids:
            _leave(sid, process_id)
        logger.debug(f"WebSocket client disconnected: {sid}")

    @socketio.on('subscribe')
    def handle_subscribe(data):
        process_id = _parse_process_id(data)
        if process_id is None:
            emit('subscribe_error', {'error': 'processId is required'})
            return
        try:
            process = service.get(process_id)
        except ProcessNotFoundError as e:
            emit('subscribe_error', {'processId': process_id, 'error': str(e)})
            return

        join_room(process_room(process_id))
        with lock:
            first = not subscribers[process_id]
            subscribers[process_id].add(request.sid)
        if first:
            service.listeners.register(
                process_id, lambda payload, pid=process_id: emit_update(socketio, pid, payload))

        emit(PROCESS_UPDATE_EVENT, {
            'processId': process.id,
            'status': process.status.value,
            'message': process.message or f"Current status: {process.status.value}",
            'progress': process.progress,
        })

    @socketio.on('unsubscribe')
    def handle_unsubscribe(data):
        process_id = _parse_process_id(data)
        if process_id is None:
            return
        leave_room(process_room(process_id))
        _leave(request.sid, process_id)
