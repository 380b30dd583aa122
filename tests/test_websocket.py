"""
Tests for SocketIO subscriptions to process updates
"""
import pytest
from flask import Flask
from flask_socketio import SocketIO

from src.api.websocket import PROCESS_UPDATE_EVENT, configure_websocket_handlers
from src.models import ProcessStatus


@pytest.fixture
def socket_client(service):
    app = Flask(__name__)
    socketio = SocketIO(app, async_mode='threading')
    configure_websocket_handlers(socketio, service)
    client = socketio.test_client(app)
    yield client
    if client.is_connected():
        client.disconnect()


def _updates(client):
    return [event['args'][0] for event in client.get_received() if event['name'] == PROCESS_UPDATE_EVENT]


def test_subscribe_sends_current_state(socket_client, service):
    process = service.create()

    socket_client.emit('subscribe', {'processId': process.id})

    assert _updates(socket_client) == [{
        'processId': process.id, 'status': 'pending', 'message': 'Queued for translation', 'progress': None}]
    assert service.listeners.has_listener(process.id)


def test_updates_are_pushed_to_subscribers(socket_client, service):
    process = service.create()
    socket_client.emit('subscribe', {'processId': process.id})
    socket_client.get_received()

    service.update(process.id, status=ProcessStatus.PROCESSING, message="Translate 1/2", progress=20)

    assert _updates(socket_client) == [{
        'processId': process.id, 'status': 'processing', 'message': 'Translate 1/2', 'progress': 20}]


def test_unsubscribe_and_disconnect_remove_listener(socket_client, service):
    first = service.create()
    second = service.create()
    socket_client.emit('subscribe', {'processId': first.id})
    socket_client.emit('subscribe', {'processId': second.id})

    socket_client.emit('unsubscribe', {'processId': first.id})
    assert not service.listeners.has_listener(first.id)
    assert service.listeners.has_listener(second.id)

    socket_client.disconnect()
    assert not service.listeners.has_listener(second.id)


def test_subscribe_to_unknown_process(socket_client, service):
    socket_client.emit('subscribe', {'processId': 404})

    received = socket_client.get_received()
    assert received[0]['name'] == 'subscribe_error'
    assert not service.listeners.has_listener(404)
