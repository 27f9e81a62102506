"""
Medication and interaction models
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import ConfigDict, Field

from visit_engine.models.base import CamelModel


class MedicationSource(str, Enum):
    PROFILE = "profile"  # active medication from the health profile
    VISIT = "visit"  # newly extracted from this encounter


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MODERATE = "moderate"
    MINOR = "minor"


class WarningKind(str, Enum):
    INTERACTION = "interaction"
    DUPLICATION = "duplication"
    CONTRAINDICATION = "contraindication"


class MedicationEntry(CamelModel):
    """Medication as seen by the interaction engine"""
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    source: MedicationSource = MedicationSource.VISIT


class InteractionWarning(CamelModel):
    """Candidate medication concern for human review"""
    severity: Severity
    kind: WarningKind
    medication1: str
    medication2: str
    description: str
    recommendation: str
    drug_class: Optional[str] = None
    disclaimer: str = Field(min_length=1)


class KnownInteractionRule(CamelModel):
    """Curated record of a documented risk between two medication groups"""
    model_config = ConfigDict(frozen=True)

    drug1: Tuple[str, ...]
    drug2: Tuple[str, ...]
    severity: Severity
    description: str
    recommendation: str


class AdvisorFinding(CamelModel):
    """Concern reported by the generative interaction review"""
    severity: Severity = Field(description="critical, major, moderate or minor")
    kind: WarningKind = Field(description="interaction, duplication or contraindication")
    medication1: str
    medication2: str
    description: str = Field(description="Brief description of the concern")
    recommendation: str = Field(description="What the patient should discuss with their healthcare provider")
    drug_class: Optional[str] = Field(default=None, description="Shared drug class, for duplications")


class AdvisorReport(CamelModel):
    """Response model for the generative interaction review"""
    warnings: List[AdvisorFinding] = Field(default_factory=list)
