"""
Medical Term Normalizer

Corrects common misspellings, abbreviations and brand names of medications
and conditions extracted from a visit summary, e.g.

- "carbadolol" -> "Carvedilol"
- "LYSINOPRIL" -> "Lisinopril"
- "afib"       -> "Atrial Fibrillation"

Normalization is a pure mapping and a fixed point: normalizing a canonical
name returns it unchanged and without a validation warning.
"""

import re
import unicodedata
from typing import Dict, Iterable, List, Mapping, Optional, Set

from pydantic import BaseModel, Field

from visit_engine.core.logging import get_logger
from visit_engine.data.medical_terms import (
    BRAND_NAMES,
    CANONICAL_MEDICATIONS,
    CONDITION_CORRECTIONS,
    MEDICATION_MISSPELLINGS,
)
from visit_engine.models.summary import (
    NormalizedDiagnosis,
    NormalizedMedication,
    SummaryDiagnosis,
    SummaryMedication,
    VisitSummary,
)

logger = get_logger(__name__)

# Suffix confusions common in transcribed drug names
_SUFFIX_RULES = [
    ("olol", ("alol", "ol")),
    ("pril", ("prill", "pral")),
    ("statin", ("statine", "statan")),
    ("dipine", ("dipene", "dipin")),
    ("sartan", ("sarton", "sartin")),
]

_DOUBLE_LETTER = re.compile(r"([a-z])\1")


def term_key(name: str) -> str:
    """Lookup key: NFKC case-folded, trimmed, inner whitespace collapsed."""
    folded = unicodedata.normalize("NFKC", unicodedata.normalize("NFKC", name).casefold())
    return " ".join(folded.split())


def _capitalize(word: str) -> str:
    # "ß".upper() is "SS"; such letters stay as they are
    head = word[:1].upper()
    if len(head) != 1:
        return word
    return head + word[1:]


def title_case(name: str) -> str:
    return " ".join(_capitalize(word) for word in term_key(name).split())


def is_valid_term(name: Optional[str]) -> bool:
    """At least two characters and at least one letter."""
    if not name or not isinstance(name, str):
        return False
    trimmed = name.strip()
    return len(trimmed) >= 2 and any(ch.isalpha() for ch in trimmed)


def spelling_variants(name: str) -> Set[str]:
    """Rule-based misspellings of a canonical medication name."""
    lower = term_key(name)
    variants = set()

    collapsed = _DOUBLE_LETTER.sub(r"\1", lower)
    if collapsed != lower:
        variants.add(collapsed)

    for suffix, replacements in _SUFFIX_RULES:
        if lower.endswith(suffix):
            stem = lower[: -len(suffix)]
            variants.update(stem + replacement for replacement in replacements)

    return {v for v in variants if len(v) >= 4 and v != lower}


def build_medication_corrections(
    canonical: Iterable[str] = CANONICAL_MEDICATIONS,
    brand_names: Mapping[str, Iterable[str]] = BRAND_NAMES,
    misspellings: Mapping[str, str] = MEDICATION_MISSPELLINGS,
) -> Dict[str, str]:
    """
    Builds the medication correction table.

    Canonical names always map to themselves; a brand name, curated
    misspelling or generated variant never overrides a canonical name.
    """
    canonical = list(canonical)
    table = {term_key(name): name for name in canonical}
    reserved = set(table)

    def add(variant: str, target: str):
        key = term_key(variant)
        if key and key not in reserved:
            table.setdefault(key, target)

    for generic, brands in brand_names.items():
        for brand in brands:
            add(brand, generic)
            add(brand.replace("-", ""), generic)

    for misspelling, target in misspellings.items():
        add(misspelling, target)

    for name in canonical:
        for variant in spelling_variants(name):
            add(variant, name)

    return table


class NormalizedTerm(BaseModel):
    """Result of normalizing a single medication or condition name"""
    name: str
    original_name: Optional[str] = None
    suggested_name: Optional[str] = None
    validation_warning: Optional[str] = None


class NormalizationResult(BaseModel):
    """Normalized parts of a visit summary"""
    medications: List[NormalizedMedication] = Field(default_factory=list)
    diagnoses: List[NormalizedDiagnosis] = Field(default_factory=list)
    discussed_conditions: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class MedicalTermNormalizer:
    """Maps medication and condition names to their canonical form."""

    def __init__(
        self,
        medication_corrections: Optional[Mapping[str, str]] = None,
        condition_corrections: Optional[Mapping[str, str]] = None,
    ):
        if medication_corrections is None:
            medication_corrections = build_medication_corrections()
        if condition_corrections is None:
            condition_corrections = CONDITION_CORRECTIONS
        self.medication_corrections = self._with_fixed_points(medication_corrections)
        self.condition_corrections = self._with_fixed_points(condition_corrections)

    @staticmethod
    def _with_fixed_points(corrections: Mapping[str, str]) -> Dict[str, str]:
        table = {term_key(key): value for key, value in corrections.items()}
        for canonical in set(table.values()):
            table[term_key(canonical)] = canonical
        return table

    def normalize_medication(self, name: str) -> NormalizedTerm:
        return self._normalize(name, self.medication_corrections)

    def normalize_condition(self, name: str) -> NormalizedTerm:
        return self._normalize(name, self.condition_corrections)

    def _normalize(self, name: str, corrections: Mapping[str, str]) -> NormalizedTerm:
        if not name or not isinstance(name, str) or not name.strip():
            return NormalizedTerm(name=name or "")

        normalized = corrections.get(term_key(name)) or title_case(name)

        if term_key(normalized) == term_key(name):
            return NormalizedTerm(name=normalized)

        return NormalizedTerm(
            name=normalized,
            original_name=name,
            suggested_name=normalized,
            validation_warning=f'Name normalized from "{name}" to "{normalized}"',
        )

    def normalize_medications(self, medications: List[SummaryMedication]) -> List[NormalizedMedication]:
        normalized = []
        for medication in medications:
            term = self.normalize_medication(medication.name)
            normalized.append(NormalizedMedication(**{**medication.model_dump(), **term.model_dump()}))
        return normalized

    def normalize_diagnoses(self, diagnoses: List[SummaryDiagnosis]) -> List[NormalizedDiagnosis]:
        normalized = []
        for diagnosis in diagnoses:
            term = self.normalize_condition(diagnosis.name)
            normalized.append(NormalizedDiagnosis(**{**diagnosis.model_dump(), **term.model_dump()}))
        return normalized

    def normalize_conditions(self, conditions: List[str]) -> List[NormalizedTerm]:
        return [self.normalize_condition(condition) for condition in conditions]

    def normalize_summary(self, summary: VisitSummary) -> NormalizationResult:
        """Normalizes medications, diagnoses and discussed conditions of a summary."""
        medications = self.normalize_medications(summary.medications)
        diagnoses = self.normalize_diagnoses(summary.diagnoses)
        conditions = self.normalize_conditions(summary.discussed_conditions)

        warnings = [
            item.validation_warning
            for item in [*medications, *diagnoses, *conditions]
            if item.validation_warning
        ]

        if warnings:
            logger.info(
                "Medical validation completed",
                medications={"total": len(medications), "warnings": sum(1 for m in medications if m.validation_warning)},
                diagnoses={"total": len(diagnoses), "warnings": sum(1 for d in diagnoses if d.validation_warning)},
                conditions={"total": len(conditions), "warnings": sum(1 for c in conditions if c.validation_warning)},
            )

        return NormalizationResult(
            medications=medications,
            diagnoses=diagnoses,
            discussed_conditions=[c.name for c in conditions],
            warnings=warnings,
        )
