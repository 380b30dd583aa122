"""
Tests for the process state machine, listener registry and repository
"""
import threading

import pytest

from src.models import ProcessStatus
from src.services import ListenerRegistry, ProcessNotFoundError
from src.services.process_service import CANCELED_MESSAGE, QUEUED_MESSAGE


def test_create_sets_start_time_for_pending(service):
    process = service.create({'translation': {'adapter': 'openai'}})

    assert process.status == ProcessStatus.PENDING
    assert process.message == QUEUED_MESSAGE
    assert process.start_time is not None
    assert process.end_time is None
    assert process.config == {'translation': {'adapter': 'openai'}}


def test_lifecycle_timestamps(service):
    process = service.create()
    start_time = process.start_time

    for status in (ProcessStatus.UPLOAD, ProcessStatus.PROCESSING, ProcessStatus.TRANSLATING):
        process = service.update(process.id, status=status)
        assert process.end_time is None
        assert process.start_time == start_time

    process = service.update(process.id, status=ProcessStatus.COMPLETED)
    assert process.end_time is not None
    assert process.start_time == start_time
    assert process.duration is not None and process.duration >= 0


def test_start_time_set_on_first_processing(service):
    process = service.create(status=ProcessStatus.UPLOAD)
    assert process.start_time is None

    process = service.update(process.id, status=ProcessStatus.PROCESSING)
    first = process.start_time
    assert first is not None

    process = service.update(process.id, status=ProcessStatus.PROCESSING)
    assert process.start_time == first


def test_non_terminal_write_after_terminal_clears_end_time(service):
    process = service.create()
    service.cancel(process.id)

    process = service.update(process.id, status=ProcessStatus.TRANSLATING, message="Translate 2/2")

    assert process.status == ProcessStatus.TRANSLATING
    assert process.end_time is None


def test_update_pushes_merged_view(service, listeners):
    pushes = []
    process = service.create()
    listeners.register(process.id, pushes.append)

    service.update(process.id, status=ProcessStatus.PROCESSING, progress=20)
    service.update(process.id, message="Translate 1/3")

    assert pushes[0] == {'processId': process.id, 'status': 'processing',
                         'message': QUEUED_MESSAGE, 'progress': 20}
    assert pushes[1] == {'processId': process.id, 'status': 'processing',
                         'message': "Translate 1/3", 'progress': 20}


def test_blank_message_falls_back_to_status(service, listeners):
    pushes = []
    process = service.create(message=None)
    listeners.register(process.id, pushes.append)

    service.update(process.id, status=ProcessStatus.UPLOAD)

    assert pushes[0]['message'] == "Current status: upload"


def test_update_without_listener_is_silent(service):
    process = service.create()
    updated = service.update(process.id, message="Translate 1/1")
    assert updated.message == "Translate 1/1"


def test_update_unknown_process(service):
    with pytest.raises(ProcessNotFoundError):
        service.update(404, status=ProcessStatus.ERROR)


def test_cancel_then_late_progress_is_last_write_wins(service):
    process = service.create()
    canceled = service.cancel(process.id)
    assert canceled.status == ProcessStatus.CANCELED
    assert canceled.message == CANCELED_MESSAGE

    process = service.update(process.id, message="Translate 1/1")
    assert process.status == ProcessStatus.CANCELED
    assert process.message == "Translate 1/1"


def test_delete_and_list(service):
    first = service.create()
    second = service.create()
    assert {p.id for p in service.list()} == {first.id, second.id}

    service.delete(first.id)
    assert [p.id for p in service.list()] == [second.id]
    with pytest.raises(ProcessNotFoundError):
        service.get(first.id)
    with pytest.raises(ProcessNotFoundError):
        service.delete(first.id)


def test_find_active(service):
    active = service.create()
    done = service.create()
    service.update(done.id, status=ProcessStatus.COMPLETED)

    assert [p.id for p in service.find_active()] == [active.id]


def test_json_columns_round_trip(service):
    process = service.create()
    pages_info = [{'pageNumber': 1, 'dimensions': {'width': 800, 'height': 1000}}]
    service.update(process.id, pages_info=pages_info, html="<html></html>", config={'a': {'b': [1, 2]}})

    stored = service.get(process.id)
    assert stored.pages_info == pages_info
    assert stored.config == {'a': {'b': [1, 2]}}
    assert stored.to_dict(include_html=True)['html'] == "<html></html>"
    assert 'html' not in stored.to_dict()


def test_registry_suppresses_repeated_state():
    pushes = []
    registry = ListenerRegistry()
    registry.register(1, pushes.append)

    assert registry.notify(1, {'status': 'processing', 'message': 'Translate 1/2'})
    assert not registry.notify(1, {'status': 'processing', 'message': 'Translate 1/2'})
    assert registry.notify(1, {'status': 'processing', 'message': 'Translate 2/2'})
    assert not registry.notify(2, {'status': 'processing', 'message': 'x'})
    assert len(pushes) == 2


def test_registry_unregister():
    pushes = []
    registry = ListenerRegistry()
    registry.register(1, pushes.append)
    registry.unregister(1)

    assert not registry.has_listener(1)
    assert not registry.notify(1, {'status': 'error', 'message': 'x'})
    assert pushes == []


def test_failing_listener_does_not_break_update(service, listeners):
    def broken(payload):
        raise ConnectionError("socket closed")

    process = service.create()
    listeners.register(process.id, broken)
    updated = service.update(process.id, status=ProcessStatus.UPLOAD)
    assert updated.status == ProcessStatus.UPLOAD


def test_concurrent_updates_from_threads(service):
    process = service.create()

    def worker(n):
        for i in range(20):
            service.update(process.id, message=f"worker {n} step {i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert service.get(process.id).message.endswith("step 19")
