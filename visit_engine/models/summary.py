"""
Pydantic models for the structured visit summary
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from visit_engine.models.base import CamelModel
from visit_engine.models.medication import InteractionWarning


class ChangeType(str, Enum):
    START = "START"
    CHANGE = "CHANGE"
    STOP = "STOP"


class SummaryActionItemType(str, Enum):
    FOLLOW_UP_APPOINTMENT = "FOLLOW_UP_APPOINTMENT"
    LAB_WORK = "LAB_WORK"
    IMAGING = "IMAGING"
    MEDICATION_START = "MEDICATION_START"
    MEDICATION_CHANGE = "MEDICATION_CHANGE"
    OTHER = "OTHER"


class EntityType(str, Enum):
    MEDICATION = "MEDICATION"
    CONDITION = "CONDITION"
    PROCEDURE = "PROCEDURE"
    TEST_TREATMENT_PROCEDURE = "TEST_TREATMENT_PROCEDURE"


class SummaryDiagnosis(CamelModel):
    """Condition discussed during the visit"""
    name: str = Field(description="Condition name")
    is_new: bool = Field(description="True if explicitly stated as a new diagnosis")
    notes: Optional[str] = Field(description="Additional information")


class SummaryMedication(CamelModel):
    """Medication change discussed during the visit"""
    name: str = Field(description="Medication name")
    change_type: ChangeType = Field(description="START, CHANGE or STOP")
    dosage: Optional[str] = Field(description="Dosage information")
    instructions: Optional[str] = Field(description="How to take it")


class SummaryActionItem(CamelModel):
    """Follow-up task mentioned during the visit"""
    type: SummaryActionItemType
    title: str
    detail: Optional[str]
    due_date: Optional[str] = Field(description="YYYY-MM-DD or null")


class SummaryEntity(CamelModel):
    """Medical entity mentioned in the transcript"""
    type: EntityType
    text: str
    category: Optional[str]


class VisitSummary(CamelModel):
    """Structured summary as returned by the summarization model"""
    overview: str
    key_points: List[str]
    discussed_conditions: List[str]
    diagnoses: List[SummaryDiagnosis]
    medications: List[SummaryMedication]
    action_items: List[SummaryActionItem]
    entities: List[SummaryEntity]


class NormalizedMedication(SummaryMedication):
    """Summary medication after medical term normalization"""
    original_name: Optional[str] = None
    suggested_name: Optional[str] = None
    validation_warning: Optional[str] = None


class NormalizedDiagnosis(SummaryDiagnosis):
    """Summary diagnosis after medical term normalization"""
    original_name: Optional[str] = None
    suggested_name: Optional[str] = None
    validation_warning: Optional[str] = None


class EnrichedSummary(CamelModel):
    """Summary persisted on a completed visit"""
    overview: str
    key_points: List[str] = Field(default_factory=list)
    discussed_conditions: List[str] = Field(default_factory=list)
    diagnoses: List[NormalizedDiagnosis] = Field(default_factory=list)
    medications: List[NormalizedMedication] = Field(default_factory=list)
    action_items: List[SummaryActionItem] = Field(default_factory=list)
    entities: List[SummaryEntity] = Field(default_factory=list)
    validation_warnings: List[str] = Field(default_factory=list)
    medication_interactions: List[InteractionWarning] = Field(default_factory=list)
    has_validation_warnings: bool = False
    has_interaction_warnings: bool = False
    validated_at: datetime
