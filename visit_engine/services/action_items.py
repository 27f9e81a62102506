"""
Action Item Generator

Creates follow-up tasks from the summary's action items and from
critical/major medication warnings.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Sequence

from visit_engine.core.logging import get_logger
from visit_engine.models.medication import InteractionWarning, Severity
from visit_engine.models.summary import SummaryActionItem
from visit_engine.models.visit import ActionItem, ActionItemOrigin, ActionItemType, utcnow

logger = get_logger(__name__)

WARNING_FOLLOW_UP = timedelta(hours=24)

_FOLLOW_UP_SEVERITIES = (Severity.CRITICAL, Severity.MAJOR)


def parse_due_date(value: Optional[str]) -> Optional[datetime]:
    """Parses an ISO date (YYYY-MM-DD) or datetime; None if absent or unparsable."""
    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        logger.warning(f"Ignoring unparsable action item due date: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ActionItemGenerator:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def generate(
        self,
        owner_id: str,
        visit_id: str,
        summary_items: Sequence[SummaryActionItem],
        warnings: Sequence[InteractionWarning],
    ) -> List[ActionItem]:
        now = self.clock()
        items = [self._from_summary(owner_id, visit_id, item, now) for item in summary_items]

        warning_items = [
            self._from_warning(owner_id, visit_id, warning, now)
            for warning in warnings
            if warning.severity in _FOLLOW_UP_SEVERITIES
        ]
        if warning_items:
            logger.info(f"Created {len(warning_items)} action item(s) for medication interactions", visit_id=visit_id)

        return items + warning_items

    @staticmethod
    def _from_summary(owner_id: str, visit_id: str, item: SummaryActionItem, now: datetime) -> ActionItem:
        description = f"{item.title}: {item.detail}" if item.detail else item.title
        return ActionItem(
            owner_id=owner_id,
            visit_id=visit_id,
            type=ActionItemType(item.type.value),
            description=description,
            due_date=parse_due_date(item.due_date),
            origin=ActionItemOrigin.SUMMARY,
            created_at=now,
        )

    @staticmethod
    def _from_warning(owner_id: str, visit_id: str, warning: InteractionWarning, now: datetime) -> ActionItem:
        return ActionItem(
            owner_id=owner_id,
            visit_id=visit_id,
            type=ActionItemType.MEDICATION_REVIEW,
            description=(
                f"Medication information: {warning.medication1} + {warning.medication2} may have potential "
                f"interactions. {warning.recommendation} This is informational only, not medical advice."
            ),
            due_date=now + WARNING_FOLLOW_UP,
            origin=ActionItemOrigin.INTERACTION_WARNING,
            created_at=now,
        )
