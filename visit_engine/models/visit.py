"""
Visit, action item and audio artifact models
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from visit_engine.models.base import CamelModel
from visit_engine.models.summary import EnrichedSummary


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class VisitStatus(str, Enum):
    RECORDING = "RECORDING"
    UPLOADING = "UPLOADING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (VisitStatus.COMPLETED, VisitStatus.FAILED)

    def can_transition_to(self, target: "VisitStatus") -> bool:
        return target in _TRANSITIONS[self]


# Forward only; FAILED is reachable from every non-terminal state.
_TRANSITIONS: Dict[VisitStatus, FrozenSet[VisitStatus]] = {
    VisitStatus.RECORDING: frozenset({VisitStatus.UPLOADING, VisitStatus.FAILED}),
    VisitStatus.UPLOADING: frozenset({VisitStatus.PROCESSING, VisitStatus.FAILED}),
    VisitStatus.PROCESSING: frozenset({VisitStatus.COMPLETED, VisitStatus.FAILED}),
    VisitStatus.COMPLETED: frozenset(),
    VisitStatus.FAILED: frozenset(),
}


class Visit(CamelModel):
    """One recorded clinical encounter and its derived artifacts"""
    id: str = Field(default_factory=new_id)
    owner_id: str
    status: VisitStatus = VisitStatus.RECORDING
    audio_reference: Optional[str] = None
    audio_file_name: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[EnrichedSummary] = None
    processing_error: Optional[str] = None
    duration_seconds: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class VisitTranscript(CamelModel):
    visit_id: str
    transcript: str
    duration_seconds: Optional[float] = None


class ActionItemType(str, Enum):
    FOLLOW_UP_APPOINTMENT = "FOLLOW_UP_APPOINTMENT"
    LAB_WORK = "LAB_WORK"
    IMAGING = "IMAGING"
    MEDICATION_START = "MEDICATION_START"
    MEDICATION_CHANGE = "MEDICATION_CHANGE"
    MEDICATION_REVIEW = "MEDICATION_REVIEW"
    OTHER = "OTHER"


class ActionItemOrigin(str, Enum):
    SUMMARY = "summary"
    INTERACTION_WARNING = "interaction-warning"


class ActionItem(CamelModel):
    """Dated follow-up task created from a processed visit"""
    id: str = Field(default_factory=new_id)
    owner_id: str
    visit_id: str
    type: ActionItemType
    description: str
    due_date: Optional[datetime] = None
    completed: bool = False
    origin: ActionItemOrigin
    created_at: datetime = Field(default_factory=utcnow)


class AudioArtifact(BaseModel):
    """Uploaded audio as handed over by the upload flow"""
    data: bytes
    content_type: Optional[str] = None
    file_name: Optional[str] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)
