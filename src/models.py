"""
Domain records shared by the pipeline, the process service and the API
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ProcessStatus(str, Enum):
    PENDING = "pending"
    UPLOAD = "upload"
    PROCESSING = "processing"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELED = "canceled"


TERMINAL_STATUSES = frozenset({ProcessStatus.COMPLETED, ProcessStatus.ERROR, ProcessStatus.CANCELED})
ACTIVE_STATUSES = frozenset(set(ProcessStatus) - TERMINAL_STATUSES)


@dataclass(frozen=True)
class Page:
    """One rasterized page of the source document (page_number is 1-based)"""
    image_path: str
    page_number: int
    width: int
    height: int

    @property
    def page_info(self) -> Dict[str, Any]:
        return {
            'pageNumber': self.page_number,
            'dimensions': {'width': self.width, 'height': self.height},
        }


@dataclass
class PageTranslation:
    """Result of one page's worker chain"""
    html: str
    page_info: Dict[str, Any]

    @property
    def page_number(self) -> int:
        return self.page_info['pageNumber']


@dataclass
class Process:
    """One persisted translation run"""
    id: int
    status: ProcessStatus = ProcessStatus.PENDING
    message: Optional[str] = None
    error: Optional[str] = None
    html: Optional[str] = None
    pages_info: List[Dict[str, Any]] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)
    progress: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds, once the run has ended"""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def to_dict(self, include_html: bool = False) -> dict:
        """Convert to dictionary for JSON responses"""
        data = {
            'id': self.id,
            'status': self.status.value,
            'message': self.message,
            'error': self.error,
            'progress': self.progress,
            'pages_info': self.pages_info,
            'config': self.config,
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'endTime': self.end_time.isoformat() if self.end_time else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
            'duration': self.duration,
        }
        if include_html:
            data['html'] = self.html
        return data
