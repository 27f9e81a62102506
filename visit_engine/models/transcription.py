"""
Pydantic models for transcription results
"""

from typing import Optional

from pydantic import BaseModel, Field


class RawTranscription(BaseModel):
    """What a single transcription model returned"""
    text: str = Field(description="Transcribed text")
    duration: Optional[float] = Field(default=None, description="Audio duration in seconds, if reported")
    language: Optional[str] = Field(default=None, description="Detected language, if reported")


class TranscriptionResult(BaseModel):
    """Transcription of one visit recording"""
    text: str = Field(description="Full transcribed text")
    duration_seconds: float = Field(default=0.0, description="Audio duration in seconds")
    detected_language: Optional[str] = Field(default=None, description="Detected language (ISO 639-1)")
    model: str = Field(description="Model that produced the transcript")
