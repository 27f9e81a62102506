"""
Pydantic Models for API Responses
"""

from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field

from visit_engine.models.base import CamelModel
from visit_engine.models.visit import ActionItem, Visit, VisitStatus


class VisitResponse(CamelModel):
    """Visit as exposed to the caller; derived artifacts have their own endpoints"""
    id: str = Field(description="Visit ID")
    status: VisitStatus = Field(description="Current processing status")
    audio_file_name: Optional[str] = Field(default=None, description="Name of the uploaded recording")
    processing_error: Optional[str] = Field(default=None, description="Failure reason, set only when FAILED")
    duration_seconds: Optional[float] = Field(default=None, description="Audio duration in seconds")
    has_transcript: bool = Field(default=False)
    has_summary: bool = Field(default=False)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_visit(cls, visit: Visit) -> "VisitResponse":
        return cls(
            id=visit.id,
            status=visit.status,
            audio_file_name=visit.audio_file_name,
            processing_error=visit.processing_error,
            duration_seconds=visit.duration_seconds,
            has_transcript=visit.transcript is not None,
            has_summary=visit.summary is not None,
            created_at=visit.created_at,
            updated_at=visit.updated_at,
        )


class ActionItemListResponse(CamelModel):
    visit_id: str
    action_items: List[ActionItem]


class HealthCheckResponse(BaseModel):
    """Health Check Response"""
    status: str = Field(description="Service status (healthy/unhealthy)")
    timestamp: datetime = Field(description="Time of the check")
    version: str = Field(description="Service version")
    uptime_seconds: int = Field(description="Uptime in seconds")

    # Detailed information (optional)
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Detailed health information"
    )


class ErrorResponse(BaseModel):
    """Standardized error response"""
    error: str = Field(description="Error type")
    message: str = Field(description="Error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error details")
    request_id: Optional[str] = Field(default=None, description="Request ID for debugging")
    timestamp: datetime = Field(description="Time of the error")


class RateLimitResponse(BaseModel):
    """Rate Limit Exceeded Response"""
    error: str = Field(default="rate_limit_exceeded")
    message: str = Field(description="Rate limit error message")
    retry_after: int = Field(description="Seconds until the next attempt")
    limit: int = Field(description="Request limit")
    window: int = Field(description="Time window in seconds")
    timestamp: datetime = Field(description="Time of the error")
