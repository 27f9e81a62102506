"""
Storage interfaces used by the visit pipeline, with in-memory implementations
"""

import asyncio
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from pydantic import BaseModel

from visit_engine.core.exceptions import ConflictError, NotFoundError
from visit_engine.core.logging import get_logger
from visit_engine.models.medication import MedicationEntry, MedicationSource
from visit_engine.models.visit import ActionItem, Visit, VisitStatus, new_id, utcnow

logger = get_logger(__name__)


class StoredBlob(BaseModel):
    url: str
    key: str


class BlobStore(Protocol):
    async def upload(self, owner_id: str, visit_id: str, data: bytes, file_name: Optional[str] = None) -> StoredBlob:
        ...

    async def delete(self, key: str) -> None:
        ...


class VisitRepository(Protocol):
    async def create(self, visit: Visit) -> Visit:
        ...

    async def get(self, visit_id: str) -> Visit:
        ...

    async def update(
        self, visit_id: str, changes: Dict[str, Any], expected_status: Optional[VisitStatus] = None
    ) -> Visit:
        """Applies all changes at once; ConflictError if the status is not `expected_status`."""
        ...


class ProfileRepository(Protocol):
    async def list_active_medications(self, owner_id: str) -> List[MedicationEntry]:
        ...


class ActionItemRepository(Protocol):
    async def create(self, item: ActionItem) -> ActionItem:
        ...

    async def list_for_visit(self, visit_id: str) -> List[ActionItem]:
        ...


class InMemoryVisitRepository:
    def __init__(self):
        self._visits: Dict[str, Visit] = {}
        self._lock = asyncio.Lock()

    async def create(self, visit: Visit) -> Visit:
        async with self._lock:
            self._visits[visit.id] = visit.model_copy(deep=True)
        return visit.model_copy(deep=True)

    async def get(self, visit_id: str) -> Visit:
        visit = self._visits.get(visit_id)
        if visit is None:
            raise NotFoundError("Visit not found", details={"visit_id": visit_id})
        return visit.model_copy(deep=True)

    async def update(
        self, visit_id: str, changes: Dict[str, Any], expected_status: Optional[VisitStatus] = None
    ) -> Visit:
        async with self._lock:
            visit = self._visits.get(visit_id)
            if visit is None:
                raise NotFoundError("Visit not found", details={"visit_id": visit_id})
            if expected_status is not None and visit.status != expected_status:
                raise ConflictError(
                    f"Visit {visit_id} is {visit.status.value}, expected {expected_status.value}"
                )
            updated = visit.model_copy(update={**changes, "updated_at": utcnow()}, deep=True)
            self._visits[visit_id] = updated
        return updated.model_copy(deep=True)


class InMemoryProfileRepository:
    def __init__(self):
        self._medications: Dict[str, List[MedicationEntry]] = {}

    def set_medications(self, owner_id: str, medications: Sequence[Union[str, MedicationEntry]]):
        self._medications[owner_id] = [
            MedicationEntry(name=m, source=MedicationSource.PROFILE) if isinstance(m, str)
            else m.model_copy(update={"source": MedicationSource.PROFILE})
            for m in medications
        ]

    async def list_active_medications(self, owner_id: str) -> List[MedicationEntry]:
        return [m.model_copy() for m in self._medications.get(owner_id, [])]


class InMemoryActionItemRepository:
    def __init__(self):
        self._items: Dict[str, ActionItem] = {}

    async def create(self, item: ActionItem) -> ActionItem:
        self._items[item.id] = item.model_copy()
        logger.info("Action item created", action_item_id=item.id, visit_id=item.visit_id)
        return item.model_copy()

    async def list_for_visit(self, visit_id: str) -> List[ActionItem]:
        return [i.model_copy() for i in self._items.values() if i.visit_id == visit_id]


class InMemoryBlobStore:
    def __init__(self):
        self.blobs: Dict[str, bytes] = {}

    async def upload(self, owner_id: str, visit_id: str, data: bytes, file_name: Optional[str] = None) -> StoredBlob:
        key = f"visits/{owner_id}/{visit_id}/{new_id()}-{file_name or 'audio'}"
        self.blobs[key] = data
        return StoredBlob(url=f"memory://{key}", key=key)

    async def delete(self, key: str) -> None:
        self.blobs.pop(key, None)
