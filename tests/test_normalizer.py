import pytest

from visit_engine.data.medical_terms import CANONICAL_MEDICATIONS, CONDITION_CORRECTIONS
from visit_engine.models.summary import VisitSummary
from visit_engine.services.normalizer import (
    MedicalTermNormalizer,
    build_medication_corrections,
    is_valid_term,
    spelling_variants,
    term_key,
)

from tests.conftest import medication, summary_payload


@pytest.fixture(scope="module")
def normalizer():
    return MedicalTermNormalizer()


@pytest.mark.parametrize("name", ["LYSINOPRIL", "lysinopril", "Lysinopril", "  lysinopril "])
def test_lookup_is_case_insensitive(normalizer, name):
    result = normalizer.normalize_medication(name)

    assert result.name == "Lisinopril"
    assert result.original_name == name
    assert result.validation_warning


def test_canonical_medications_are_fixed_points(normalizer):
    for name in CANONICAL_MEDICATIONS:
        result = normalizer.normalize_medication(name)
        assert result.name == name
        assert result.validation_warning is None
        assert result.original_name is None


def test_canonical_conditions_are_fixed_points(normalizer):
    for name in set(CONDITION_CORRECTIONS.values()):
        result = normalizer.normalize_condition(name)
        assert result.name == name
        assert result.validation_warning is None


@pytest.mark.parametrize("name", ["carbadolol", "metropolol", "Zocor", "afib"])
def test_renormalizing_is_idempotent(normalizer, name):
    first = normalizer.normalize_medication(name) if name != "afib" else normalizer.normalize_condition(name)
    again = normalizer.normalize_medication(first.name) if name != "afib" else normalizer.normalize_condition(first.name)

    assert again.name == first.name
    assert again.validation_warning is None


@pytest.mark.parametrize(
    "name, expected",
    [("ßcodone", "Sscodone"), ("ﬁlgrastim", "Filgrastim"), ("éNALAPRILATE", "Énalaprilate")],
)
def test_non_ascii_names_are_fixed_points(normalizer, name, expected):
    first = normalizer.normalize_medication(name)
    again = normalizer.normalize_medication(first.name)

    assert first.name == expected
    assert again.name == first.name
    assert again.validation_warning is None


def test_known_corrections(normalizer):
    assert normalizer.normalize_medication("carbadolol").name == "Carvedilol"
    assert normalizer.normalize_medication("Zocor").name == "Simvastatin"
    assert normalizer.normalize_condition("AFib").name == "Atrial Fibrillation"


def test_warning_names_both_spellings(normalizer):
    result = normalizer.normalize_medication("carbadolol")

    assert result.suggested_name == "Carvedilol"
    assert result.validation_warning == 'Name normalized from "carbadolol" to "Carvedilol"'


def test_unknown_name_is_title_cased_without_warning(normalizer):
    result = normalizer.normalize_medication("foobarzine")

    assert result.name == "Foobarzine"
    assert result.validation_warning is None


def test_blank_name_is_left_alone(normalizer):
    assert normalizer.normalize_medication("").name == ""
    assert normalizer.normalize_medication("   ").validation_warning is None


def test_generated_variants_map_to_canonical(normalizer):
    assert "metopralol" in spelling_variants("Metoprolol")
    assert normalizer.normalize_medication("metopralol").name == "Metoprolol"


def test_brand_name_never_overrides_canonical():
    table = build_medication_corrections(
        canonical=["Aspirin", "Ecotrin"],
        brand_names={"Aspirin": ["Ecotrin"]},
        misspellings={},
    )

    assert table[term_key("Ecotrin")] == "Ecotrin"


def test_injected_tables_are_used():
    normalizer = MedicalTermNormalizer(
        medication_corrections={"tylenol": "Acetaminophen"},
        condition_corrections={"htn": "Hypertension"},
    )

    assert normalizer.normalize_medication("TYLENOL").name == "Acetaminophen"
    assert normalizer.normalize_medication("Acetaminophen").validation_warning is None
    assert normalizer.normalize_condition("htn").name == "Hypertension"


@pytest.mark.parametrize(
    "name, expected",
    [("Lisinopril", True), ("Xa", True), ("a", False), ("12", False), ("", False), (None, False), ("  ", False)],
)
def test_is_valid_term(name, expected):
    assert is_valid_term(name) is expected


def test_normalize_summary_collects_warnings(normalizer):
    summary = VisitSummary.model_validate_json(
        summary_payload(
            medications=[medication("lysinopril"), medication("Metformin")],
            discussedConditions=["afib"],
        )
    )

    result = normalizer.normalize_summary(summary)

    assert [m.name for m in result.medications] == ["Lisinopril", "Metformin"]
    assert result.medications[0].original_name == "lysinopril"
    assert result.medications[1].validation_warning is None
    assert result.discussed_conditions == ["Atrial Fibrillation"]
    assert len(result.warnings) == 2
