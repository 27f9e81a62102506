"""
Summarization Adapter

Turns transcript text into a `VisitSummary` through a schema-constrained
generative call. The schema makes every field present (nullable where
appropriate); text that does not validate against it is a hard failure.
"""

import asyncio
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from visit_engine.core.exceptions import ExternalServiceError, VisitEngineError
from visit_engine.core.logging import get_logger
from visit_engine.models.summary import (
    ChangeType,
    EntityType,
    SummaryActionItemType,
    VisitSummary,
)

logger = get_logger(__name__)

SCHEMA_NAME = "VisitSummaryResponse"


def _nullable_string() -> Dict[str, Any]:
    return {"type": ["string", "null"]}


def _strict_object(properties: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": properties,
        "required": list(properties),
    }


VISIT_SUMMARY_JSON_SCHEMA: Dict[str, Any] = _strict_object({
    "overview": {"type": "string"},
    "keyPoints": {"type": "array", "items": {"type": "string"}},
    "discussedConditions": {"type": "array", "items": {"type": "string"}},
    "diagnoses": {
        "type": "array",
        "items": _strict_object({
            "name": {"type": "string"},
            "isNew": {"type": "boolean"},
            "notes": _nullable_string(),
        }),
    },
    "medications": {
        "type": "array",
        "items": _strict_object({
            "name": {"type": "string"},
            "changeType": {"type": "string", "enum": [c.value for c in ChangeType]},
            "dosage": _nullable_string(),
            "instructions": _nullable_string(),
        }),
    },
    "actionItems": {
        "type": "array",
        "items": _strict_object({
            "type": {"type": "string", "enum": [t.value for t in SummaryActionItemType]},
            "title": {"type": "string"},
            "detail": _nullable_string(),
            "dueDate": _nullable_string(),
        }),
    },
    "entities": {
        "type": "array",
        "items": _strict_object({
            "type": {"type": "string", "enum": [t.value for t in EntityType]},
            "text": {"type": "string"},
            "category": _nullable_string(),
        }),
    },
})


class GenerativeClient(Protocol):
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_schema: Dict[str, Any],
        schema_name: str,
    ) -> str:
        ...


def parse_visit_summary(content: Optional[str]) -> VisitSummary:
    """Validate raw model output against the summary schema."""
    if not content or not content.strip():
        raise ExternalServiceError("No content returned from summary model")
    try:
        return VisitSummary.model_validate_json(content)
    except PydanticValidationError as e:
        logger.error(f"Failed to parse summarization response: {e.error_count()} validation error(s)")
        raise ExternalServiceError(
            "Unable to parse summarization response JSON",
            details={"errors": e.error_count()},
        ) from e


def build_system_prompt(profile_context: Optional[str] = None) -> str:
    """Builds the system prompt, optionally with the patient's health profile"""
    profile_section = ""
    if profile_context:
        profile_section = f"""

Patient Health Profile:
{profile_context}

Use this context to better understand the patient's medical history, but only include conditions in
"discussedConditions" if they were actually mentioned or discussed during THIS visit."""

    return f"""You are a medical AI assistant specialized in analyzing healthcare visit transcriptions.
Your task is to create a structured summary from the doctor-patient conversation.{profile_section}

Extract and organize the following information:
- overview: A brief 2-3 sentence summary of the visit
- keyPoints: Main discussion points (3-5 items)
- discussedConditions: ONLY conditions that were actually mentioned or discussed in THIS visit
- diagnoses: Any conditions discussed (new or existing); mark isNew only if explicitly stated as new
- medications: Any medication changes (START, CHANGE, STOP) with dosage and instructions if stated
- actionItems: Follow-up tasks (appointments, lab work, imaging, medication changes) with dueDate as YYYY-MM-DD or null
- entities: Medications, conditions, procedures and tests mentioned

Important:
- Be accurate and preserve medical terminology
- Double-check medication spellings against common medications and correct misspellings
  to the proper generic or brand name (e.g. "metropolol" is "Metoprolol")
- Include dates only if mentioned in the transcription
- Use null for any field that was not mentioned"""


class SummarizationService:
    """Schema-constrained visit summarization."""

    def __init__(self, client: GenerativeClient, timeout: float = 60.0):
        self.client = client
        self.timeout = timeout

    async def summarize(self, transcript: str, profile_context: Optional[str] = None) -> VisitSummary:
        logger.info(
            "Starting visit summarization",
            transcript_length=len(transcript),
            has_health_profile=bool(profile_context),
        )

        user_prompt = (
            "Please analyze this healthcare visit transcription and provide a structured summary:\n\n"
            f"{transcript}"
        )

        try:
            content = await asyncio.wait_for(
                self.client.complete(
                    build_system_prompt(profile_context),
                    user_prompt,
                    VISIT_SUMMARY_JSON_SCHEMA,
                    SCHEMA_NAME,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Visit summarization timed out after {self.timeout}s")
            raise ExternalServiceError(f"Summarization timed out after {self.timeout:g}s") from e
        except VisitEngineError:
            raise
        except Exception as e:
            logger.error(f"Visit summarization failed: {e}", exc_info=True)
            raise ExternalServiceError(f"Summarization failed: {e}") from e

        summary = parse_visit_summary(content)

        logger.info(
            "Visit summarization completed",
            diagnoses_count=len(summary.diagnoses),
            medications_count=len(summary.medications),
            action_items_count=len(summary.action_items),
            entities_count=len(summary.entities),
        )
        return summary
