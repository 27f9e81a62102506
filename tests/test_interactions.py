import pytest

from visit_engine.models.medication import (
    AdvisorFinding,
    KnownInteractionRule,
    MedicationEntry,
    MedicationSource,
    Severity,
    WarningKind,
)
from visit_engine.services.interactions import (
    MEDICAL_DISCLAIMER,
    PROVIDER_REFERRAL,
    MedicationInteractionEngine,
    comparable_name,
)

from tests.conftest import FakeAdvisor


def meds(*names, source=MedicationSource.VISIT):
    return [MedicationEntry(name=name, source=source) for name in names]


def current(*names):
    return meds(*names, source=MedicationSource.PROFILE)


@pytest.fixture
def engine():
    return MedicationInteractionEngine()


async def test_two_new_beta_blockers_are_one_critical_duplication(engine):
    warnings = await engine.check([], meds("Metoprolol", "Atenolol"))

    assert len(warnings) == 1
    warning = warnings[0]
    assert warning.kind == WarningKind.DUPLICATION
    assert warning.severity == Severity.CRITICAL
    assert warning.drug_class == "Beta-Blockers"


async def test_ace_inhibitor_with_arb_is_one_major_interaction(engine):
    warnings = await engine.check(current("Lisinopril"), meds("Losartan"))

    assert len(warnings) == 1
    warning = warnings[0]
    assert warning.kind == WarningKind.INTERACTION
    assert warning.severity == Severity.MAJOR
    assert warning.medication1 == "Lisinopril"
    assert warning.medication2 == "Losartan"
    assert "ACE inhibitors" in warning.description


async def test_cross_duplication_is_major(engine):
    warnings = await engine.check(current("Atorvastatin"), meds("Rosuvastatin"))

    assert len(warnings) == 1
    assert warnings[0].kind == WarningKind.DUPLICATION
    assert warnings[0].severity == Severity.MAJOR
    assert warnings[0].drug_class == "Statins"


async def test_brand_and_generic_share_a_class(engine):
    warnings = await engine.check(current("Zoloft"), meds("Sertraline 50mg"))

    assert [w.drug_class for w in warnings] == ["SSRIs (Antidepressants)"]


async def test_rules_match_in_both_directions(engine):
    forward = await engine.check(current("Warfarin"), meds("Clopidogrel"))
    reverse = await engine.check(current("Plavix"), meds("Coumadin"))

    assert [w.severity for w in forward] == [Severity.CRITICAL]
    assert [w.severity for w in reverse] == [Severity.CRITICAL]
    assert reverse[0].medication1 == "Plavix"


async def test_every_source_carries_the_same_disclaimer():
    advisor = FakeAdvisor(findings=[
        AdvisorFinding(
            severity=Severity.MODERATE,
            kind=WarningKind.INTERACTION,
            medication1="Metformin",
            medication2="Gabapentin",
            description="Both may cause dizziness.",
            recommendation="Discuss with your healthcare provider.",
        )
    ])
    engine = MedicationInteractionEngine(advisor=advisor)

    from_tables = await engine.check(current("Warfarin"), meds("Ibuprofen", "Advil"))
    from_advisor = await engine.check(current("Metformin"), meds("Gabapentin"))

    kinds = {w.kind for w in from_tables}
    assert kinds == {WarningKind.DUPLICATION, WarningKind.INTERACTION}
    assert len(from_advisor) == 1
    assert {w.disclaimer for w in from_tables + from_advisor} == {MEDICAL_DISCLAIMER}


async def test_advisor_only_consulted_when_tables_find_nothing():
    advisor = FakeAdvisor()
    engine = MedicationInteractionEngine(advisor=advisor)

    await engine.check(current("Lisinopril"), meds("Losartan"))
    assert advisor.calls == []

    await engine.check(current("Metformin"), meds("Gabapentin"))
    assert advisor.calls == [(["Metformin"], ["Gabapentin"])]


async def test_advisor_not_consulted_without_current_medications():
    advisor = FakeAdvisor()
    engine = MedicationInteractionEngine(advisor=advisor)

    assert await engine.check([], meds("Metformin")) == []
    assert advisor.calls == []


async def test_advisor_failure_yields_no_warnings():
    engine = MedicationInteractionEngine(advisor=FakeAdvisor(error=RuntimeError("model unavailable")))

    assert await engine.check(current("Metformin"), meds("Gabapentin")) == []


async def test_advisor_timeout_yields_no_warnings():
    engine = MedicationInteractionEngine(advisor=FakeAdvisor(delay=1.0), advisor_timeout=0.01)

    assert await engine.check(current("Metformin"), meds("Gabapentin")) == []


async def test_advisor_recommendation_refers_to_provider():
    advisor = FakeAdvisor(findings=[
        AdvisorFinding(
            severity=Severity.MINOR,
            kind=WarningKind.INTERACTION,
            medication1="Metformin",
            medication2="Gabapentin",
            description="Possible additive side effects.",
            recommendation="Monitor for dizziness.",
        )
    ])
    engine = MedicationInteractionEngine(advisor=advisor)

    [warning] = await engine.check(current("Metformin"), meds("Gabapentin"))

    assert warning.recommendation == f"Monitor for dizziness. {PROVIDER_REFERRAL}"


async def test_unusable_names_are_ignored(engine):
    warnings = await engine.check(current("1", ""), meds("Metoprolol", "x", "Atenolol"))

    assert len(warnings) == 1
    assert warnings[0].medication1 == "Metoprolol"


async def test_injected_tables_replace_defaults():
    engine = MedicationInteractionEngine(
        drug_classes={"Widgets": ("widgetol", "gizmoprin")},
        rules=[
            KnownInteractionRule(
                drug1=("alpha",),
                drug2=("beta",),
                severity=Severity.MODERATE,
                description="Alpha and beta interact.",
                recommendation="Ask your healthcare provider.",
            )
        ],
        disclaimer="Informational only.",
    )

    duplication = await engine.check([], meds("Widgetol", "Gizmoprin"))
    interaction = await engine.check(current("Alpha"), meds("Beta"))
    defaults = await engine.check([], meds("Metoprolol", "Atenolol"))

    assert [w.drug_class for w in duplication] == ["Widgets"]
    assert [w.severity for w in interaction] == [Severity.MODERATE]
    assert interaction[0].disclaimer == "Informational only."
    assert defaults == []


def test_blank_disclaimer_is_rejected():
    with pytest.raises(ValueError):
        MedicationInteractionEngine(disclaimer="  ")


def test_shared_drug_classes(engine):
    assert engine.shared_drug_classes("Lipitor", "simvastatin") == ["Statins"]
    assert engine.shared_drug_classes("Lisinopril", "Losartan") == []
    assert engine.shared_drug_classes("", "Losartan") == []


def test_comparable_name():
    assert comparable_name("  Toprol-XL ") == "toprolxl"
    assert comparable_name(None) == ""
