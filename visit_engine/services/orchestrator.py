"""
Visit Orchestrator

Owns the visit state machine and sequences one processing run:

    PROCESSING -> transcribe -> summarize -> normalize -> profile medications
    -> interaction check -> action items -> COMPLETED

A run either persists transcript, enriched summary and duration together with
COMPLETED in a single update, or leaves the visit FAILED with a
processing error and nothing else. The temporary audio file of a run is
deleted when the run ends, whatever the outcome.
"""

import asyncio
import functools
import time
from typing import Dict, List, Optional

from visit_engine.config import settings
from visit_engine.core.exceptions import ConflictError, InternalError, NotFoundError, VisitEngineError
from visit_engine.core.logging import get_logger
from visit_engine.core.metrics import visit_processing_duration, visit_processing_total
from visit_engine.models.medication import InteractionWarning, MedicationEntry, MedicationSource
from visit_engine.models.summary import ChangeType, EnrichedSummary, VisitSummary
from visit_engine.models.visit import ActionItem, AudioArtifact, Visit, VisitStatus, VisitTranscript, utcnow
from visit_engine.services.action_items import ActionItemGenerator
from visit_engine.services.audio_processor import AudioProcessor
from visit_engine.services.interactions import MedicationInteractionEngine
from visit_engine.services.normalizer import MedicalTermNormalizer, NormalizationResult
from visit_engine.services.repositories import (
    ActionItemRepository,
    BlobStore,
    ProfileRepository,
    VisitRepository,
)
from visit_engine.services.stt_service import TranscriptionService
from visit_engine.services.summarizer import SummarizationService

logger = get_logger(__name__)


class VisitOrchestrator:
    """Runs the visit pipeline and owns the visit state machine."""

    def __init__(
        self,
        visits: VisitRepository,
        profiles: ProfileRepository,
        action_items: ActionItemRepository,
        transcriber: TranscriptionService,
        summarizer: SummarizationService,
        normalizer: MedicalTermNormalizer,
        interactions: MedicationInteractionEngine,
        action_item_generator: Optional[ActionItemGenerator] = None,
        audio_processor: Optional[AudioProcessor] = None,
        blob_store: Optional[BlobStore] = None,
        default_language: str = settings.default_language,
    ):
        self.visits = visits
        self.profiles = profiles
        self.action_items = action_items
        self.transcriber = transcriber
        self.summarizer = summarizer
        self.normalizer = normalizer
        self.interactions = interactions
        self.action_item_generator = action_item_generator or ActionItemGenerator()
        self.audio_processor = audio_processor or AudioProcessor()
        self.blob_store = blob_store
        self.default_language = default_language

        # visit id -> running task; None while the run is being launched
        self._in_flight: Dict[str, Optional[asyncio.Task]] = {}
        self._launched: Dict[str, asyncio.Event] = {}
        self._audio_paths: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    # --- Visit lifecycle ---

    async def create_visit(self, owner_id: str) -> Visit:
        visit = await self.visits.create(Visit(owner_id=owner_id))
        logger.info("Visit created", visit_id=visit.id, owner_id=owner_id)
        return visit

    async def submit_visit(
        self,
        owner_id: str,
        audio: Optional[AudioArtifact],
        profile_context: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Visit:
        """Creates a visit and starts processing its audio in one call."""
        self.audio_processor.validate(audio)
        visit = await self.create_visit(owner_id)
        return await self.begin_processing(
            visit.id, audio, profile_context=profile_context, owner_id=owner_id, language=language
        )

    async def begin_processing(
        self,
        visit_id: str,
        audio: Optional[AudioArtifact],
        profile_context: Optional[str] = None,
        owner_id: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Visit:
        """
        Attaches audio to a RECORDING visit, moves it to UPLOADING and starts
        processing in the background. Returns without waiting for the run.
        """
        content_type = self.audio_processor.validate(audio)
        visit = await self.get_visit(visit_id, owner_id)

        async with self._lock:
            if visit_id in self._in_flight:
                raise ConflictError(f"Visit {visit_id} is already being processed")
            if not visit.status.can_transition_to(VisitStatus.UPLOADING):
                raise ConflictError(f"Visit {visit_id} cannot accept audio in status {visit.status.value}")
            self._in_flight[visit_id] = None
            launched = self._launched[visit_id] = asyncio.Event()

        audio_path = None
        stored = None
        try:
            if self.blob_store is not None:
                stored = await self.blob_store.upload(visit.owner_id, visit_id, audio.data, audio.file_name)

            audio_path = await self.audio_processor.save_temporary(audio, content_type)
            visit = await self._transition(
                visit_id,
                VisitStatus.UPLOADING,
                audio_reference=stored.url if stored is not None else None,
                audio_file_name=audio.file_name,
            )
        except asyncio.CancelledError:
            self._release_launch(visit_id, launched)
            raise
        except Exception as e:
            self._release_launch(visit_id, launched)
            await self.audio_processor.cleanup(audio_path)
            if stored is not None:
                await self._delete_blob(stored.key)
            logger.error(f"Audio upload failed for visit {visit_id}: {e}", exc_info=True)
            await self._mark_failed(visit_id, self._error_message(e, "Visit submission failed"))
            raise

        self._audio_paths[visit_id] = audio_path
        task = asyncio.create_task(
            self.process_visit(visit_id, audio_path, profile_context=profile_context, language=language),
            name=f"process-visit-{visit_id}",
        )
        self._in_flight[visit_id] = task
        self._launched.pop(visit_id, None)
        launched.set()
        task.add_done_callback(functools.partial(self._on_run_finished, visit_id))

        logger.info(
            "Audio uploaded, processing started",
            visit_id=visit_id,
            audio_bytes=audio.size_bytes,
            has_health_profile=bool(profile_context),
        )
        return visit

    def _release_launch(self, visit_id: str, launched: asyncio.Event):
        self._in_flight.pop(visit_id, None)
        self._launched.pop(visit_id, None)
        launched.set()

    def _on_run_finished(self, visit_id: str, task: asyncio.Task):
        self._in_flight.pop(visit_id, None)
        if task.cancelled():
            logger.warning("Background visit processing cancelled", visit_id=visit_id)
        elif task.exception() is not None:
            logger.error(f"Background visit processing failed: {task.exception()}", visit_id=visit_id)

    def is_processing(self, visit_id: str) -> bool:
        return visit_id in self._in_flight

    async def wait_for(self, visit_id: str) -> Visit:
        """Waits for the in-flight run of a visit (if any) and returns the stored visit."""
        launching = self._launched.get(visit_id)
        if launching is not None:
            await launching.wait()
        task = self._in_flight.get(visit_id)
        if task is not None:
            # The outcome is recorded on the visit itself
            await asyncio.gather(task, return_exceptions=True)
        return await self.visits.get(visit_id)

    async def shutdown(self):
        """Cancels in-flight runs; each leaves its visit FAILED."""
        runs = {visit_id: task for visit_id, task in self._in_flight.items() if task is not None}
        if not runs:
            return
        audio_paths = dict(self._audio_paths)

        for task in runs.values():
            task.cancel()
        await asyncio.gather(*runs.values(), return_exceptions=True)

        # A run cancelled before its first step never reached its own cleanup
        for visit_id in runs:
            visit = await self.visits.get(visit_id)
            if not visit.status.is_terminal:
                await self._mark_failed(visit_id, "Processing was cancelled")
            await self.audio_processor.cleanup(audio_paths.get(visit_id))
            self._audio_paths.pop(visit_id, None)

        logger.info(f"Cancelled {len(runs)} in-flight visit run(s)")

    # --- Pipeline ---

    async def process_visit(
        self,
        visit_id: str,
        audio_path: str,
        profile_context: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Visit:
        """
        Full processing run for one visit. Raises on failure after the visit
        has been marked FAILED.
        """
        try:
            # A visit enters PROCESSING at most once; a losing concurrent run stops here
            visit = await self._transition(visit_id, VisitStatus.PROCESSING)
            return await self._run_pipeline(visit, audio_path, profile_context, language)
        finally:
            self._audio_paths.pop(visit_id, None)
            await self.audio_processor.cleanup(audio_path)

    async def _run_pipeline(
        self,
        visit: Visit,
        audio_path: str,
        profile_context: Optional[str],
        language: Optional[str],
    ) -> Visit:
        visit_id = visit.id
        start_time = time.monotonic()
        logger.info("Starting visit audio processing", visit_id=visit_id, has_health_profile=bool(profile_context))

        try:
            transcription = await self.transcriber.transcribe(audio_path, language or self.default_language)
            summary = await self.summarizer.summarize(transcription.text, profile_context)

            normalized = self.normalizer.normalize_summary(summary)
            if normalized.warnings:
                logger.warning(
                    "Medical term validation warnings detected",
                    visit_id=visit_id,
                    warning_count=len(normalized.warnings),
                )

            current_medications = await self.profiles.list_active_medications(visit.owner_id)
            new_medications = self._new_medications(normalized)
            logger.info(
                "Medication interaction check details",
                visit_id=visit_id,
                current=[m.name for m in current_medications],
                new=[m.name for m in new_medications],
            )
            warnings = await self.interactions.check(current_medications, new_medications)

            enriched = self._enrich(summary, normalized, warnings)

            items = self.action_item_generator.generate(visit.owner_id, visit_id, summary.action_items, warnings)
            for item in items:
                await self.action_items.create(item)

            completed = await self._transition(
                visit_id,
                VisitStatus.COMPLETED,
                transcript=transcription.text,
                summary=enriched,
                duration_seconds=transcription.duration_seconds,
                processing_error=None,
            )
        except asyncio.CancelledError:
            await self._mark_failed(visit_id, "Processing was cancelled")
            visit_processing_total.labels(status=VisitStatus.FAILED.value).inc()
            raise
        except VisitEngineError as e:
            logger.error(f"Visit processing failed: {e.message}", visit_id=visit_id, error_type=type(e).__name__)
            await self._mark_failed(visit_id, self._error_message(e, "Processing failed"))
            visit_processing_total.labels(status=VisitStatus.FAILED.value).inc()
            raise
        except Exception as e:
            logger.error(f"Visit processing failed unexpectedly: {e}", visit_id=visit_id, exc_info=True)
            message = self._error_message(e, "Processing failed")
            await self._mark_failed(visit_id, message)
            visit_processing_total.labels(status=VisitStatus.FAILED.value).inc()
            raise InternalError(message) from e

        visit_processing_total.labels(status=VisitStatus.COMPLETED.value).inc()
        visit_processing_duration.observe(time.monotonic() - start_time)
        logger.info(
            "Visit processing completed successfully",
            visit_id=visit_id,
            interaction_warnings=len(warnings),
            action_items=len(items),
        )
        return completed

    @staticmethod
    def _new_medications(normalized: NormalizationResult) -> List[MedicationEntry]:
        # A medication stopped during the visit is not being added
        return [
            MedicationEntry(name=m.name, dosage=m.dosage, source=MedicationSource.VISIT)
            for m in normalized.medications
            if m.change_type != ChangeType.STOP
        ]

    @staticmethod
    def _enrich(
        summary: VisitSummary,
        normalized: NormalizationResult,
        warnings: List[InteractionWarning],
    ) -> EnrichedSummary:
        return EnrichedSummary(
            overview=summary.overview,
            key_points=summary.key_points,
            discussed_conditions=normalized.discussed_conditions,
            diagnoses=normalized.diagnoses,
            medications=normalized.medications,
            action_items=summary.action_items,
            entities=summary.entities,
            validation_warnings=normalized.warnings,
            medication_interactions=warnings,
            has_validation_warnings=bool(normalized.warnings),
            has_interaction_warnings=bool(warnings),
            validated_at=utcnow(),
        )

    # --- State machine ---

    async def _transition(self, visit_id: str, target: VisitStatus, **changes) -> Visit:
        """Moves the visit to `target` and applies `changes` in one compare-and-set update."""
        visit = await self.visits.get(visit_id)
        if not visit.status.can_transition_to(target):
            raise ConflictError(
                f"Visit {visit_id} cannot move from {visit.status.value} to {target.value}"
            )
        updated = await self.visits.update(
            visit_id, {**changes, "status": target}, expected_status=visit.status
        )
        logger.info(f"Visit {visit_id}: {visit.status.value} -> {target.value}")
        return updated

    async def _mark_failed(self, visit_id: str, message: str):
        """Best effort; errors are logged, not raised."""
        try:
            await self._transition(visit_id, VisitStatus.FAILED, processing_error=message)
        except Exception as e:
            logger.warning(f"Failed to mark visit {visit_id} as FAILED: {e}")

    async def _delete_blob(self, key: str):
        """Best effort; errors are logged, not raised."""
        try:
            await self.blob_store.delete(key)
        except Exception as e:
            logger.warning(f"Failed to delete stored audio {key}: {e}")

    @staticmethod
    def _error_message(error: BaseException, fallback: str) -> str:
        if isinstance(error, VisitEngineError):
            return error.message or fallback
        detail = str(error) or type(error).__name__
        return f"{fallback}: {detail}"

    # --- Queries ---

    async def get_visit(self, visit_id: str, owner_id: Optional[str] = None) -> Visit:
        visit = await self.visits.get(visit_id)
        if owner_id is not None and visit.owner_id != owner_id:
            raise NotFoundError("Visit not found", details={"visit_id": visit_id})
        return visit

    async def get_summary(self, visit_id: str, owner_id: Optional[str] = None) -> EnrichedSummary:
        visit = await self.get_visit(visit_id, owner_id)
        if visit.summary is None:
            raise NotFoundError("Visit summary not available yet", details={"visit_id": visit_id})
        return visit.summary

    async def get_transcript(self, visit_id: str, owner_id: Optional[str] = None) -> VisitTranscript:
        visit = await self.get_visit(visit_id, owner_id)
        if visit.transcript is None:
            raise NotFoundError("Visit transcript not available yet", details={"visit_id": visit_id})
        return VisitTranscript(
            visit_id=visit.id,
            transcript=visit.transcript,
            duration_seconds=visit.duration_seconds,
        )

    async def list_action_items(self, visit_id: str, owner_id: Optional[str] = None) -> List[ActionItem]:
        await self.get_visit(visit_id, owner_id)
        return await self.action_items.list_for_visit(visit_id)
