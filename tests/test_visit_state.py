import pytest

from visit_engine.core.exceptions import ConflictError, NotFoundError
from visit_engine.models.medication import MedicationSource
from visit_engine.models.visit import Visit, VisitStatus
from visit_engine.services.repositories import InMemoryBlobStore, InMemoryProfileRepository, InMemoryVisitRepository

FORWARD = [
    (VisitStatus.RECORDING, VisitStatus.UPLOADING),
    (VisitStatus.UPLOADING, VisitStatus.PROCESSING),
    (VisitStatus.PROCESSING, VisitStatus.COMPLETED),
]


@pytest.mark.parametrize("source, target", FORWARD)
def test_forward_transitions_are_allowed(source, target):
    assert source.can_transition_to(target)


@pytest.mark.parametrize("source", [VisitStatus.RECORDING, VisitStatus.UPLOADING, VisitStatus.PROCESSING])
def test_failed_is_reachable_from_any_non_terminal_state(source):
    assert not source.is_terminal
    assert source.can_transition_to(VisitStatus.FAILED)


@pytest.mark.parametrize("terminal", [VisitStatus.COMPLETED, VisitStatus.FAILED])
def test_terminal_states_have_no_exits(terminal):
    assert terminal.is_terminal
    assert not any(terminal.can_transition_to(target) for target in VisitStatus)


@pytest.mark.parametrize(
    "source, target",
    [
        (VisitStatus.RECORDING, VisitStatus.PROCESSING),
        (VisitStatus.RECORDING, VisitStatus.COMPLETED),
        (VisitStatus.PROCESSING, VisitStatus.UPLOADING),
        (VisitStatus.UPLOADING, VisitStatus.RECORDING),
    ],
)
def test_skipping_or_going_back_is_rejected(source, target):
    assert not source.can_transition_to(target)


def test_visit_serializes_with_camel_case():
    data = Visit(owner_id="user-1").model_dump(by_alias=True)

    assert data["ownerId"] == "user-1"
    assert data["status"] == VisitStatus.RECORDING
    assert data["processingError"] is None


async def test_update_with_expected_status_is_compare_and_set():
    repo = InMemoryVisitRepository()
    visit = await repo.create(Visit(owner_id="user-1"))

    updated = await repo.update(
        visit.id, {"status": VisitStatus.UPLOADING}, expected_status=VisitStatus.RECORDING
    )
    assert updated.status == VisitStatus.UPLOADING
    assert updated.updated_at >= visit.updated_at

    with pytest.raises(ConflictError):
        await repo.update(visit.id, {"status": VisitStatus.UPLOADING}, expected_status=VisitStatus.RECORDING)


async def test_repository_hands_out_copies():
    repo = InMemoryVisitRepository()
    visit = await repo.create(Visit(owner_id="user-1"))

    fetched = await repo.get(visit.id)
    fetched.status = VisitStatus.FAILED

    assert (await repo.get(visit.id)).status == VisitStatus.RECORDING


async def test_unknown_visit_is_not_found():
    repo = InMemoryVisitRepository()

    with pytest.raises(NotFoundError):
        await repo.get("missing")
    with pytest.raises(NotFoundError):
        await repo.update("missing", {"status": VisitStatus.FAILED})


async def test_profile_medications_are_marked_as_profile():
    profiles = InMemoryProfileRepository()
    profiles.set_medications("user-1", ["Lisinopril", "Metformin"])

    medications = await profiles.list_active_medications("user-1")

    assert [m.name for m in medications] == ["Lisinopril", "Metformin"]
    assert all(m.source == MedicationSource.PROFILE for m in medications)
    assert await profiles.list_active_medications("someone-else") == []


async def test_blob_store_keys_are_scoped_to_owner_and_visit():
    store = InMemoryBlobStore()

    blob = await store.upload("user-1", "visit-1", b"audio", "visit.wav")

    assert blob.key.startswith("visits/user-1/visit-1/")
    assert blob.url == f"memory://{blob.key}"
    await store.delete(blob.key)
    assert store.blobs == {}
