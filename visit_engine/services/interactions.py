"""
Medication Interaction Engine

Detects therapeutic duplication and known drug-drug interactions between a
patient's current medications and the medications extracted from a visit.
Static tables are always consulted; a generative review is only asked when
the tables found nothing. Every warning carries the same disclaimer.
"""

import asyncio
import re
from typing import List, Optional, Protocol, Sequence

from visit_engine.core.logging import get_logger
from visit_engine.core.metrics import interaction_warnings_total
from visit_engine.data.drug_classes import DRUG_CLASSES, DrugClassTable
from visit_engine.data.interaction_rules import KNOWN_INTERACTIONS
from visit_engine.models.medication import (
    AdvisorFinding,
    InteractionWarning,
    KnownInteractionRule,
    MedicationEntry,
    Severity,
    WarningKind,
)
from visit_engine.services.normalizer import is_valid_term

logger = get_logger(__name__)

MEDICAL_DISCLAIMER = (
    "This is informational only and not medical advice. Always consult your healthcare "
    "provider before starting, stopping, or changing any medication."
)

PROVIDER_REFERRAL = "Discuss this with your healthcare provider."

_PUNCTUATION = re.compile(r"[^\w\s]")


class InteractionAdvisor(Protocol):
    async def review_medications(
        self, current_medications: List[str], new_medications: List[str]
    ) -> Sequence[AdvisorFinding]:
        ...


def comparable_name(name: str) -> str:
    """Lower-cased, trimmed, punctuation stripped."""
    if not name or not isinstance(name, str):
        return ""
    return _PUNCTUATION.sub("", name.lower().strip())


def _contains_any(name: str, aliases: Sequence[str]) -> bool:
    return any(alias.lower() in name for alias in aliases)


class MedicationInteractionEngine:
    """Rule engine for medication duplication and interaction warnings."""

    def __init__(
        self,
        drug_classes: Optional[DrugClassTable] = None,
        rules: Optional[Sequence[KnownInteractionRule]] = None,
        advisor: Optional[InteractionAdvisor] = None,
        disclaimer: str = MEDICAL_DISCLAIMER,
        advisor_timeout: float = 30.0,
    ):
        if not disclaimer or not disclaimer.strip():
            raise ValueError("A non-empty disclaimer is required")
        self.drug_classes = DRUG_CLASSES if drug_classes is None else drug_classes
        self.rules = list(KNOWN_INTERACTIONS if rules is None else rules)
        self.advisor = advisor
        self.disclaimer = disclaimer
        self.advisor_timeout = advisor_timeout

    async def check(
        self,
        current_medications: Sequence[MedicationEntry],
        new_medications: Sequence[MedicationEntry],
    ) -> List[InteractionWarning]:
        """
        Check new medications against current ones and against each other.

        Warnings from every step are accumulated; the returned order carries
        no meaning.
        """
        current = self._usable(current_medications)
        new = self._usable(new_medications)

        logger.info(f"Checking medication interactions: {len(current)} current, {len(new)} new")

        warnings: List[InteractionWarning] = []
        warnings.extend(self.check_cross_duplication(current, new))
        warnings.extend(self.check_internal_duplication(new))
        warnings.extend(self.check_known_interactions(current, new))

        if not warnings and current and new:
            warnings.extend(await self.check_with_advisor(current, new))

        for warning in warnings:
            interaction_warnings_total.labels(severity=warning.severity.value, kind=warning.kind.value).inc()

        if warnings:
            logger.warning(
                "Medication interactions detected",
                count=len(warnings),
                critical=sum(1 for w in warnings if w.severity == Severity.CRITICAL),
                major=sum(1 for w in warnings if w.severity == Severity.MAJOR),
            )
        else:
            logger.info("No medication interactions detected")

        return warnings

    def _usable(self, medications: Sequence[MedicationEntry]) -> List[MedicationEntry]:
        usable = [m for m in medications if is_valid_term(m.name)]
        if len(usable) != len(medications):
            logger.warning(f"Ignoring {len(medications) - len(usable)} medication(s) without a usable name")
        return usable

    def shared_drug_classes(self, name1: str, name2: str) -> List[str]:
        """Names of every drug class both medications belong to."""
        first, second = comparable_name(name1), comparable_name(name2)
        if not first or not second:
            return []
        return [
            class_name
            for class_name, aliases in self.drug_classes.items()
            if _contains_any(first, aliases) and _contains_any(second, aliases)
        ]

    def check_cross_duplication(
        self, current: Sequence[MedicationEntry], new: Sequence[MedicationEntry]
    ) -> List[InteractionWarning]:
        """Same-class pairs of one current and one new medication."""
        warnings = []
        for new_med in new:
            for current_med in current:
                for drug_class in self.shared_drug_classes(current_med.name, new_med.name):
                    warnings.append(InteractionWarning(
                        severity=Severity.MAJOR,
                        kind=WarningKind.DUPLICATION,
                        medication1=current_med.name,
                        medication2=new_med.name,
                        drug_class=drug_class,
                        description=(
                            f"Medical literature indicates both medications are in the {drug_class} class. "
                            "Taking two medications from the same class is generally not recommended."
                        ),
                        recommendation=(
                            f"Consider discussing this with your healthcare provider before starting {new_med.name}. "
                            f"Your provider can advise whether to adjust {current_med.name} or your treatment plan."
                        ),
                        disclaimer=self.disclaimer,
                    ))
                    logger.warning(
                        "Therapeutic duplication detected",
                        drug_class=drug_class,
                        current=current_med.name,
                        new=new_med.name,
                    )
        return warnings

    def check_internal_duplication(self, new: Sequence[MedicationEntry]) -> List[InteractionWarning]:
        """
        Same-class pairs among the new medications themselves.

        Two same-class medications from one encounter point to a prescribing
        ambiguity, so these are always critical.
        """
        warnings = []
        for i, first in enumerate(new):
            for second in new[i + 1:]:
                for drug_class in self.shared_drug_classes(first.name, second.name):
                    warnings.append(InteractionWarning(
                        severity=Severity.CRITICAL,
                        kind=WarningKind.DUPLICATION,
                        medication1=first.name,
                        medication2=second.name,
                        drug_class=drug_class,
                        description=(
                            f"Both {first.name} and {second.name} are {drug_class}. These medications are from "
                            "the same therapeutic class and should generally not be taken together."
                        ),
                        recommendation=(
                            "This appears to have been prescribed in the same visit. Please verify with your "
                            "healthcare provider before taking both medications. Your provider can clarify "
                            "which medication you should take."
                        ),
                        disclaimer=self.disclaimer,
                    ))
                    logger.warning(
                        "Internal therapeutic duplication detected",
                        drug_class=drug_class,
                        med1=first.name,
                        med2=second.name,
                    )
        return warnings

    def check_known_interactions(
        self, current: Sequence[MedicationEntry], new: Sequence[MedicationEntry]
    ) -> List[InteractionWarning]:
        """Curated rules, matched in both directions."""
        warnings = []
        for rule in self.rules:
            for new_med in new:
                new_name = comparable_name(new_med.name)
                for current_med in current:
                    current_name = comparable_name(current_med.name)

                    forward = _contains_any(current_name, rule.drug1) and _contains_any(new_name, rule.drug2)
                    reverse = _contains_any(new_name, rule.drug1) and _contains_any(current_name, rule.drug2)
                    if not (forward or reverse):
                        continue

                    warnings.append(InteractionWarning(
                        severity=rule.severity,
                        kind=WarningKind.INTERACTION,
                        medication1=current_med.name,
                        medication2=new_med.name,
                        description=rule.description,
                        recommendation=rule.recommendation,
                        disclaimer=self.disclaimer,
                    ))
                    logger.warning(
                        "Known interaction detected",
                        severity=rule.severity.value,
                        current=current_med.name,
                        new=new_med.name,
                    )
        return warnings

    async def check_with_advisor(
        self, current: Sequence[MedicationEntry], new: Sequence[MedicationEntry]
    ) -> List[InteractionWarning]:
        """Best-effort generative review; never raises."""
        if self.advisor is None:
            return []

        try:
            findings = await asyncio.wait_for(
                self.advisor.review_medications([m.name for m in current], [m.name for m in new]),
                timeout=self.advisor_timeout,
            )
            warnings = [self._from_finding(finding) for finding in findings]
        except Exception as e:
            logger.error(f"Generative interaction check failed: {e!r}", exc_info=True)
            return []

        if warnings:
            logger.info(f"Generative interaction check reported {len(warnings)} concern(s)")
        return warnings

    def _from_finding(self, finding: AdvisorFinding) -> InteractionWarning:
        recommendation = (finding.recommendation or "").strip()
        if "healthcare provider" not in recommendation.lower():
            recommendation = f"{recommendation} {PROVIDER_REFERRAL}".strip()

        return InteractionWarning(
            severity=finding.severity,
            kind=finding.kind,
            medication1=finding.medication1,
            medication2=finding.medication2,
            description=finding.description,
            recommendation=recommendation,
            drug_class=finding.drug_class,
            disclaimer=self.disclaimer,
        )
