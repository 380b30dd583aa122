"""
Background sweep failing processes that stopped making progress.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from src.config import MAX_PROCESS_TIME, WATCHER_CHECK_INTERVAL
from src.models import ACTIVE_STATUSES, ProcessStatus
from .process_service import ProcessNotFoundError, ProcessService

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Timeout waiting for process progress"
RESTART_MESSAGE = "Service restarted while the process was running"


class ProcessWatcher:
    """
    Args:
        service: Process service, so that forced failures reach listeners
        max_process_time: Seconds without update after which a process is stale
        check_interval: Seconds between sweeps
    """

    def __init__(self, service: ProcessService, max_process_time: int = MAX_PROCESS_TIME,
                 check_interval: int = WATCHER_CHECK_INTERVAL):
        self.service = service
        self.max_process_time = max_process_time
        self.check_interval = check_interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def check_stale_processes(self, immediate: bool = False) -> int:
        """
        Fail stale active processes; with immediate=True, fail every active one.

        Returns:
            Number of processes moved to error
        """
        failed = 0
        try:
            threshold = datetime.now() - timedelta(seconds=self.max_process_time)
            for process in self.service.find_active():
                if process.status not in ACTIVE_STATUSES:
                    continue
                if not immediate and process.updated_at and process.updated_at > threshold:
                    continue
                message = RESTART_MESSAGE if immediate else TIMEOUT_MESSAGE
                try:
                    self.service.update(process.id, status=ProcessStatus.ERROR, message=message, error=message)
                except ProcessNotFoundError:
                    continue
                logger.warning(f"Process {process.id} ({process.status.value}) marked as error: {message}")
                failed += 1
        except Exception as e:
            logger.error(f"Error in process watcher sweep: {e}", exc_info=True)
        return failed

    def _run(self):
        while not self._stop_event.wait(self.check_interval):
            self.check_stale_processes()

    def start(self):
        """Fail processes left over by a previous run, then sweep periodically"""
        if self._thread is not None and self._thread.is_alive():
            return
        self.check_stale_processes(immediate=True)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="process-watcher", daemon=True)
        self._thread.start()
        logger.info(f"Process watcher started (max {self.max_process_time}s, every {self.check_interval}s)")

    def stop(self):
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
