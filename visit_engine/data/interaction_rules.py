"""
Curated drug-drug interaction rules.

Descriptions summarize what the medical literature reports; recommendations
always refer the patient back to their healthcare provider.
"""

from typing import List

from visit_engine.models.medication import KnownInteractionRule, Severity

KNOWN_INTERACTIONS: List[KnownInteractionRule] = [
    KnownInteractionRule(
        drug1=("warfarin", "coumadin"),
        drug2=("aspirin", "ibuprofen", "advil", "naproxen", "aleve"),
        severity=Severity.MAJOR,
        description="Medical literature indicates increased risk of bleeding when combining anticoagulants with NSAIDs or aspirin.",
        recommendation="Consider discussing with your healthcare provider. Your provider can advise if this combination is appropriate for you.",
    ),
    KnownInteractionRule(
        drug1=("warfarin", "coumadin"),
        drug2=("clopidogrel", "plavix"),
        severity=Severity.CRITICAL,
        description="Medical literature indicates severe bleeding risk when combining warfarin with antiplatelet drugs.",
        recommendation="This combination typically requires careful monitoring by a healthcare provider. Discuss with your healthcare provider.",
    ),
    KnownInteractionRule(
        drug1=("metoprolol", "atenolol", "carvedilol", "propranolol"),
        drug2=("diltiazem", "verapamil"),
        severity=Severity.MAJOR,
        description="Medical literature indicates combining beta-blockers with certain calcium channel blockers may affect heart rate.",
        recommendation="Consider discussing this combination with your healthcare provider for monitoring guidance.",
    ),
    KnownInteractionRule(
        drug1=("lisinopril", "enalapril", "ramipril"),
        drug2=("losartan", "valsartan", "olmesartan"),
        severity=Severity.MAJOR,
        description="Medical literature generally does not recommend combining ACE inhibitors with ARBs.",
        recommendation="Discuss this combination with your healthcare provider. They can advise on the appropriate treatment plan.",
    ),
    KnownInteractionRule(
        drug1=("sertraline", "fluoxetine", "escitalopram", "zoloft", "prozac", "lexapro"),
        drug2=("tramadol", "ultram"),
        severity=Severity.MAJOR,
        description="Medical literature indicates potential risk of serotonin syndrome when combining SSRIs with tramadol.",
        recommendation="Consider discussing with your healthcare provider. They can monitor for symptoms if this combination is prescribed.",
    ),
    KnownInteractionRule(
        drug1=("alprazolam", "lorazepam", "clonazepam", "xanax", "ativan"),
        drug2=("oxycodone", "hydrocodone", "morphine", "fentanyl"),
        severity=Severity.CRITICAL,
        description="Medical literature indicates severe respiratory depression risk when combining benzodiazepines with opioids.",
        recommendation="This combination requires close medical supervision. Discuss with your healthcare provider immediately.",
    ),
    KnownInteractionRule(
        drug1=("simvastatin", "zocor"),
        drug2=("amlodipine", "norvasc"),
        severity=Severity.MODERATE,
        description="Medical literature indicates amlodipine may increase simvastatin levels, potentially raising risk of muscle effects.",
        recommendation="Inform your healthcare provider about this combination. They can advise if any adjustment is needed.",
    ),
]
