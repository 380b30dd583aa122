from .listeners import ListenerRegistry
from .process_service import ProcessNotFoundError, ProcessService
from .process_watcher import ProcessWatcher

__all__ = ['ListenerRegistry', 'ProcessNotFoundError', 'ProcessService', 'ProcessWatcher']
