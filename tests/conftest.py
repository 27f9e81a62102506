import asyncio
import json
from typing import Dict, List, Optional, Sequence, Union

import pytest

from visit_engine.config import Settings
from visit_engine.core.exceptions import ExternalServiceError
from visit_engine.models.medication import AdvisorFinding
from visit_engine.models.transcription import RawTranscription
from visit_engine.models.visit import AudioArtifact
from visit_engine.services.action_items import ActionItemGenerator
from visit_engine.services.audio_processor import AudioProcessor
from visit_engine.services.interactions import MedicationInteractionEngine
from visit_engine.services.normalizer import MedicalTermNormalizer
from visit_engine.services.orchestrator import VisitOrchestrator
from visit_engine.services.repositories import (
    InMemoryActionItemRepository,
    InMemoryBlobStore,
    InMemoryProfileRepository,
    InMemoryVisitRepository,
)
from visit_engine.services.stt_service import TranscriptionService
from visit_engine.services.summarizer import SummarizationService


class FakeTranscriptionBackend:
    """Per-model canned results; records every handle it was given."""

    def __init__(
        self,
        results: Dict[str, Union[RawTranscription, Exception]],
        delays: Optional[Dict[str, float]] = None,
    ):
        self.results = results
        self.delays = delays or {}
        self.calls = []

    async def transcribe(self, audio, model_id, language_hint):
        self.calls.append((model_id, audio, language_hint))
        if model_id in self.delays:
            await asyncio.sleep(self.delays[model_id])
        audio.read()
        result = self.results.get(model_id)
        if result is None:
            raise ExternalServiceError(f"{model_id} unavailable")
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def handles(self):
        return [handle for _, handle, _ in self.calls]


class FakeGenerativeClient:
    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls = []

    async def complete(self, system_prompt, user_prompt, json_schema, schema_name):
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt, "schema_name": schema_name})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class FakeAdvisor:
    def __init__(self, findings: Sequence[AdvisorFinding] = (), error: Optional[Exception] = None, delay: float = 0.0):
        self.findings = list(findings)
        self.error = error
        self.delay = delay
        self.calls = []

    async def review_medications(self, current_medications: List[str], new_medications: List[str]):
        self.calls.append((current_medications, new_medications))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.findings


def summary_payload(medications=(), action_items=(), **overrides) -> str:
    payload = {
        "overview": "Routine follow-up for hypertension. Blood pressure is well controlled.",
        "keyPoints": ["Blood pressure stable", "Continue current diet"],
        "discussedConditions": ["hypertension"],
        "diagnoses": [{"name": "hypertension", "isNew": False, "notes": None}],
        "medications": list(medications),
        "actionItems": list(action_items),
        "entities": [{"type": "CONDITION", "text": "hypertension", "category": None}],
    }
    payload.update(overrides)
    return json.dumps(payload)


def medication(name: str, change_type: str = "START", dosage: Optional[str] = None) -> dict:
    return {"name": name, "changeType": change_type, "dosage": dosage, "instructions": None}


@pytest.fixture
def test_settings(tmp_path):
    return Settings(temp_audio_dir=str(tmp_path), max_file_size_mb=1)


@pytest.fixture
def audio_processor(test_settings):
    return AudioProcessor(test_settings)


@pytest.fixture
def wav_audio():
    return AudioArtifact(data=b"RIFF" + b"\x00" * 128, content_type="audio/wav", file_name="visit.wav")


@pytest.fixture
def transcript_text():
    return "Doctor: How is your blood pressure? Patient: It has been stable."


@pytest.fixture
def transcription_backend(transcript_text):
    return FakeTranscriptionBackend(
        {"model-a": RawTranscription(text=transcript_text, duration=42.0, language="en")}
    )


@pytest.fixture
def generative_client():
    return FakeGenerativeClient(response=summary_payload())


@pytest.fixture
def profiles():
    return InMemoryProfileRepository()


@pytest.fixture
def make_orchestrator(audio_processor, profiles):
    def _make(backend, generative, advisor=None, models=("model-a",)):
        return VisitOrchestrator(
            visits=InMemoryVisitRepository(),
            profiles=profiles,
            action_items=InMemoryActionItemRepository(),
            transcriber=TranscriptionService(
                backend, models=models, timeout=5.0, audio_processor=audio_processor
            ),
            summarizer=SummarizationService(generative, timeout=5.0),
            normalizer=MedicalTermNormalizer(),
            interactions=MedicationInteractionEngine(advisor=advisor, advisor_timeout=1.0),
            action_item_generator=ActionItemGenerator(),
            audio_processor=audio_processor,
            blob_store=InMemoryBlobStore(),
        )

    return _make


@pytest.fixture
def orchestrator(make_orchestrator, transcription_backend, generative_client):
    return make_orchestrator(transcription_backend, generative_client)
