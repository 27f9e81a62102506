"""
Drug classes for therapeutic duplication detection.

Each class lists lower-case generic and brand-name aliases. A medication
belongs to a class when its normalized name contains one of the aliases.
"""

from typing import Dict, Tuple

DrugClassTable = Dict[str, Tuple[str, ...]]

DRUG_CLASSES: DrugClassTable = {
    "Beta-Blockers": (
        "metoprolol", "lopressor", "toprol",
        "carvedilol", "coreg",
        "atenolol", "tenormin",
        "propranolol", "inderal",
        "bisoprolol", "zebeta",
        "nebivolol", "bystolic",
    ),
    "ACE Inhibitors": (
        "lisinopril", "prinivil", "zestril",
        "enalapril", "vasotec",
        "ramipril", "altace",
        "benazepril", "lotensin",
        "captopril", "capoten",
    ),
    "ARBs (Angiotensin Receptor Blockers)": (
        "losartan", "cozaar",
        "valsartan", "diovan",
        "olmesartan", "benicar",
        "telmisartan", "micardis",
        "irbesartan", "avapro",
    ),
    "Statins": (
        "atorvastatin", "lipitor",
        "simvastatin", "zocor",
        "rosuvastatin", "crestor",
        "pravastatin", "pravachol",
        "lovastatin", "mevacor",
    ),
    "Calcium Channel Blockers": (
        "amlodipine", "norvasc",
        "diltiazem", "cardizem",
        "verapamil", "calan",
        "nifedipine", "procardia",
    ),
    "Diuretics (Loop)": (
        "furosemide", "lasix",
        "bumetanide", "bumex",
        "torsemide", "demadex",
    ),
    "Diuretics (Thiazide)": (
        "hydrochlorothiazide", "hctz", "microzide",
        "chlorthalidone", "thalitone",
    ),
    "SSRIs (Antidepressants)": (
        "sertraline", "zoloft",
        "fluoxetine", "prozac",
        "escitalopram", "lexapro",
        "citalopram", "celexa",
        "paroxetine", "paxil",
    ),
    "SNRIs (Antidepressants)": (
        "venlafaxine", "effexor",
        "duloxetine", "cymbalta",
        "desvenlafaxine", "pristiq",
    ),
    "Benzodiazepines": (
        "alprazolam", "xanax",
        "lorazepam", "ativan",
        "clonazepam", "klonopin",
        "diazepam", "valium",
    ),
    "Opioids": (
        "oxycodone", "oxycontin",
        "hydrocodone", "vicodin", "norco",
        "morphine",
        "tramadol", "ultram",
        "codeine",
        "fentanyl",
    ),
    "NSAIDs": (
        "ibuprofen", "advil", "motrin",
        "naproxen", "aleve", "naprosyn",
        "celecoxib", "celebrex",
        "diclofenac", "voltaren",
        "meloxicam", "mobic",
    ),
    "Anticoagulants": (
        "warfarin", "coumadin",
        "apixaban", "eliquis",
        "rivaroxaban", "xarelto",
        "dabigatran", "pradaxa",
        "edoxaban", "savaysa",
    ),
    "Antiplatelets": (
        "clopidogrel", "plavix",
        "prasugrel", "effient",
        "ticagrelor", "brilinta",
        "aspirin",
    ),
    "PPIs (Proton Pump Inhibitors)": (
        "omeprazole", "prilosec",
        "esomeprazole", "nexium",
        "lansoprazole", "prevacid",
        "pantoprazole", "protonix",
    ),
}
