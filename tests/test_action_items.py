from datetime import datetime, timedelta, timezone

import pytest

from visit_engine.models.medication import InteractionWarning, Severity, WarningKind
from visit_engine.models.summary import SummaryActionItem, SummaryActionItemType
from visit_engine.models.visit import ActionItemOrigin, ActionItemType
from visit_engine.services.action_items import WARNING_FOLLOW_UP, ActionItemGenerator, parse_due_date
from visit_engine.services.interactions import MEDICAL_DISCLAIMER

NOW = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def warning(severity: Severity) -> InteractionWarning:
    return InteractionWarning(
        severity=severity,
        kind=WarningKind.INTERACTION,
        medication1="Warfarin",
        medication2="Ibuprofen",
        description="Increased bleeding risk.",
        recommendation="Discuss with your healthcare provider.",
        disclaimer=MEDICAL_DISCLAIMER,
    )


@pytest.fixture
def generator():
    return ActionItemGenerator(clock=lambda: NOW)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-05-01", datetime(2024, 5, 1, tzinfo=timezone.utc)),
        ("2024-05-01T14:00:00+02:00", datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
        ("next week", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_due_date(value, expected):
    assert parse_due_date(value) == expected


def test_summary_items_keep_type_and_due_date(generator):
    items = generator.generate(
        "user-1",
        "visit-1",
        [
            SummaryActionItem(
                type=SummaryActionItemType.LAB_WORK, title="Fasting lipid panel", detail="Before next visit",
                due_date="2024-04-15",
            ),
            SummaryActionItem(type=SummaryActionItemType.OTHER, title="Walk daily", detail=None, due_date=None),
        ],
        [],
    )

    assert [i.type for i in items] == [ActionItemType.LAB_WORK, ActionItemType.OTHER]
    assert items[0].description == "Fasting lipid panel: Before next visit"
    assert items[0].due_date == datetime(2024, 4, 15, tzinfo=timezone.utc)
    assert items[1].description == "Walk daily"
    assert items[1].due_date is None
    assert all(i.origin == ActionItemOrigin.SUMMARY for i in items)
    assert all(i.created_at == NOW for i in items)
    assert all(i.owner_id == "user-1" and i.visit_id == "visit-1" for i in items)
    assert not any(i.completed for i in items)


def test_only_critical_and_major_warnings_create_items(generator):
    items = generator.generate(
        "user-1",
        "visit-1",
        [],
        [warning(Severity.CRITICAL), warning(Severity.MAJOR), warning(Severity.MODERATE), warning(Severity.MINOR)],
    )

    assert len(items) == 2
    for item in items:
        assert item.type == ActionItemType.MEDICATION_REVIEW
        assert item.origin == ActionItemOrigin.INTERACTION_WARNING
        assert item.due_date == NOW + WARNING_FOLLOW_UP
        assert item.created_at == NOW
        assert "Warfarin + Ibuprofen" in item.description
        assert "not medical advice" in item.description


def test_follow_up_is_a_day_later():
    assert WARNING_FOLLOW_UP == timedelta(hours=24)
