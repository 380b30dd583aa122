"""
Process state machine.

All mutation of a process record goes through ProcessService.update, which
maintains the timestamps and pushes the merged state to the live listener.
Updates are last-write-wins.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from src.models import ACTIVE_STATUSES, TERMINAL_STATUSES, Process, ProcessStatus
from src.persistence import ProcessRepository
from .listeners import ListenerRegistry

logger = logging.getLogger(__name__)

QUEUED_MESSAGE = "Queued for translation"
CANCELED_MESSAGE = "Process canceled by user"

_START_STATUSES = (ProcessStatus.PENDING, ProcessStatus.PROCESSING)


class ProcessNotFoundError(LookupError):
    def __init__(self, process_id: int):
        self.process_id = process_id
        super().__init__(f"Process {process_id} not found")


class ProcessService:
    def __init__(self, repository: ProcessRepository, listeners: Optional[ListenerRegistry] = None):
        self.repository = repository
        self.listeners = listeners or ListenerRegistry()

    def create(self, config: Optional[Dict[str, Any]] = None,
               status: Union[ProcessStatus, str] = ProcessStatus.PENDING,
               message: Optional[str] = QUEUED_MESSAGE) -> Process:
        status = ProcessStatus(status)
        fields: Dict[str, Any] = {'status': status, 'message': message, 'config': config or {}}
        if status in _START_STATUSES:
            fields['start_time'] = datetime.now()
        if status in TERMINAL_STATUSES:
            fields['end_time'] = datetime.now()
        process = self.repository.create(fields)
        logger.info(f"Process {process.id} created ({status.value})")
        return process

    def get(self, process_id: int) -> Process:
        process = self.repository.find_by_id(process_id)
        if process is None:
            raise ProcessNotFoundError(process_id)
        return process

    def list(self) -> List[Process]:
        return self.repository.list_all()

    def find_active(self) -> List[Process]:
        return self.repository.find_by_statuses(ACTIVE_STATUSES)

    def delete(self, process_id: int):
        if not self.repository.delete(process_id):
            raise ProcessNotFoundError(process_id)
        self.listeners.unregister(process_id)
        logger.info(f"Process {process_id} deleted")

    def update(self, process_id: int, **fields) -> Process:
        """
        Persist a partial update, then push the merged state to the listener.

        Timestamps: start_time is set the first time the process enters pending
        or processing; end_time is set when it enters a terminal status and
        cleared when a non-terminal status is written.

        Raises:
            ProcessNotFoundError: If the process does not exist
        """
        current = self.get(process_id)
        now = datetime.now()

        if 'status' in fields:
            status = ProcessStatus(fields['status'])
            fields['status'] = status
            if status in _START_STATUSES and current.start_time is None:
                fields['start_time'] = now
            if status in TERMINAL_STATUSES:
                if not current.is_terminal or current.end_time is None:
                    fields['end_time'] = now
            elif current.end_time is not None:
                fields['end_time'] = None

        updated = self.repository.update(process_id, fields)
        if updated is None:
            raise ProcessNotFoundError(process_id)

        self._notify(current, fields)
        return updated

    def cancel(self, process_id: int) -> Process:
        return self.update(process_id, status=ProcessStatus.CANCELED, message=CANCELED_MESSAGE)

    def _notify(self, current: Process, fields: Dict[str, Any]):
        if not self.listeners.has_listener(current.id):
            return

        status = ProcessStatus(fields.get('status', current.status)).value
        message = fields.get('message', current.message)
        if not isinstance(message, str) or not message.strip():
            message = f"Current status: {status}"
        progress = fields.get('progress')
        if not isinstance(progress, int):
            progress = current.progress

        payload = {'processId': current.id, 'status': status, 'message': message, 'progress': progress}
        try:
            self.listeners.notify(current.id, payload)
        except Exception as e:
            logger.warning(f"Could not push update of process {current.id}: {e}")
