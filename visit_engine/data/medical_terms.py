"""
Reference data for medical term normalization.

Canonical medication names are drawn from the most prescribed medications in
the US (ClinCalc DrugStats, 2023). Keys of the correction tables are
lower-case; values are the canonical spelling.
"""

from typing import Dict, List

CANONICAL_MEDICATIONS: List[str] = [
    "Atorvastatin", "Metformin", "Levothyroxine", "Lisinopril", "Amlodipine", "Metoprolol", "Albuterol",
    "Losartan", "Gabapentin", "Omeprazole", "Sertraline", "Rosuvastatin", "Pantoprazole", "Escitalopram",
    "Dextroamphetamine", "Hydrochlorothiazide", "Bupropion", "Fluoxetine", "Semaglutide", "Montelukast",
    "Trazodone", "Simvastatin", "Amoxicillin", "Tamsulosin", "Fluticasone", "Meloxicam", "Apixaban",
    "Furosemide", "Insulin Glargine", "Duloxetine", "Ibuprofen", "Famotidine", "Empagliflozin", "Carvedilol",
    "Tramadol", "Alprazolam", "Prednisone", "Hydroxyzine", "Buspirone", "Clopidogrel", "Glipizide",
    "Citalopram", "Potassium Chloride", "Allopurinol", "Aspirin", "Cyclobenzaprine", "Oxycodone",
    "Methylphenidate", "Venlafaxine", "Spironolactone", "Ondansetron", "Zolpidem", "Cetirizine", "Estradiol",
    "Pravastatin", "Lamotrigine", "Quetiapine", "Clonazepam", "Dulaglutide", "Azithromycin", "Propranolol",
    "Ezetimibe", "Topiramate", "Paroxetine", "Diclofenac", "Atenolol", "Doxycycline", "Pregabalin",
    "Glimepiride", "Tizanidine", "Clonidine", "Fenofibrate", "Valsartan", "Cephalexin", "Baclofen",
    "Rivaroxaban", "Amitriptyline", "Finasteride", "Dapagliflozin", "Aripiprazole", "Olmesartan",
    "Mirtazapine", "Lorazepam", "Levetiracetam", "Naproxen", "Loratadine", "Diltiazem", "Sumatriptan",
    "Hydralazine", "Tirzepatide", "Celecoxib", "Acetaminophen", "Warfarin", "Nifedipine", "Sitagliptin",
    "Chlorthalidone", "Donepezil", "Methotrexate", "Hydroxychloroquine", "Lovastatin", "Pioglitazone",
    "Irbesartan", "Esomeprazole", "Morphine", "Benazepril", "Verapamil", "Diazepam", "Telmisartan",
    "Desvenlafaxine", "Nebivolol", "Torsemide", "Enalapril", "Ramipril", "Ticagrelor", "Bisoprolol",
    "Labetalol", "Bumetanide", "Hydrocodone", "Fentanyl", "Codeine", "Captopril", "Prasugrel",
    "Lansoprazole", "Dabigatran", "Edoxaban",
]

# Common brand names for canonical medications
BRAND_NAMES: Dict[str, List[str]] = {
    "Atorvastatin": ["Lipitor"],
    "Metformin": ["Glucophage", "Fortamet", "Glumetza"],
    "Levothyroxine": ["Synthroid", "Levoxyl", "Unithroid"],
    "Lisinopril": ["Prinivil", "Zestril"],
    "Amlodipine": ["Norvasc"],
    "Metoprolol": ["Lopressor", "Toprol", "Toprol-XL"],
    "Albuterol": ["Proventil", "Ventolin", "ProAir"],
    "Losartan": ["Cozaar"],
    "Gabapentin": ["Neurontin"],
    "Omeprazole": ["Prilosec"],
    "Sertraline": ["Zoloft"],
    "Rosuvastatin": ["Crestor"],
    "Pantoprazole": ["Protonix"],
    "Escitalopram": ["Lexapro"],
    "Hydrochlorothiazide": ["Microzide", "HCTZ"],
    "Bupropion": ["Wellbutrin", "Zyban"],
    "Fluoxetine": ["Prozac"],
    "Semaglutide": ["Ozempic", "Wegovy", "Rybelsus"],
    "Montelukast": ["Singulair"],
    "Simvastatin": ["Zocor"],
    "Tamsulosin": ["Flomax"],
    "Meloxicam": ["Mobic"],
    "Apixaban": ["Eliquis"],
    "Furosemide": ["Lasix"],
    "Duloxetine": ["Cymbalta"],
    "Ibuprofen": ["Advil", "Motrin"],
    "Famotidine": ["Pepcid"],
    "Empagliflozin": ["Jardiance"],
    "Carvedilol": ["Coreg"],
    "Tramadol": ["Ultram"],
    "Alprazolam": ["Xanax"],
    "Clopidogrel": ["Plavix"],
    "Citalopram": ["Celexa"],
    "Zolpidem": ["Ambien"],
    "Quetiapine": ["Seroquel"],
    "Clonazepam": ["Klonopin"],
    "Paroxetine": ["Paxil"],
    "Atenolol": ["Tenormin"],
    "Valsartan": ["Diovan"],
    "Rivaroxaban": ["Xarelto"],
    "Naproxen": ["Aleve", "Naprosyn"],
    "Diltiazem": ["Cardizem"],
    "Celecoxib": ["Celebrex"],
    "Acetaminophen": ["Tylenol"],
    "Warfarin": ["Coumadin"],
    "Nifedipine": ["Procardia"],
    "Sitagliptin": ["Januvia"],
    "Esomeprazole": ["Nexium"],
    "Olmesartan": ["Benicar"],
    "Lorazepam": ["Ativan"],
    "Propranolol": ["Inderal"],
    "Enalapril": ["Vasotec"],
    "Ramipril": ["Altace"],
    "Benazepril": ["Lotensin"],
    "Verapamil": ["Calan"],
    "Diazepam": ["Valium"],
    "Venlafaxine": ["Effexor"],
    "Telmisartan": ["Micardis"],
    "Irbesartan": ["Avapro"],
    "Bisoprolol": ["Zebeta"],
    "Nebivolol": ["Bystolic"],
    "Ticagrelor": ["Brilinta"],
    "Lansoprazole": ["Prevacid"],
}

# Misspellings seen in transcripts that rule-based variants do not cover
MEDICATION_MISSPELLINGS: Dict[str, str] = {
    "carbadolol": "Carvedilol",
    "carvedolol": "Carvedilol",
    "metropolol": "Metoprolol",
    "metoprolal": "Metoprolol",
    "lysinopril": "Lisinopril",
    "lisinipril": "Lisinopril",
    "lipator": "Atorvastatin",
    "atorvastation": "Atorvastatin",
    "amlodapine": "Amlodipine",
    "metforman": "Metformin",
    "levothyroxin": "Levothyroxine",
    "gabapenten": "Gabapentin",
    "omeprazol": "Omeprazole",
    "sertaline": "Sertraline",
    "hydrochlorthiazide": "Hydrochlorothiazide",
    "furosemid": "Furosemide",
    "warfarine": "Warfarin",
    "clopidigrel": "Clopidogrel",
    "ibuprophen": "Ibuprofen",
    "acetominophen": "Acetaminophen",
    "albuteral": "Albuterol",
    "predisone": "Prednisone",
    "tramadal": "Tramadol",
    "alprazolan": "Alprazolam",
}

CONDITION_CORRECTIONS: Dict[str, str] = {
    "high blood pressure": "Hypertension",
    "htn": "Hypertension",
    "diabetes": "Diabetes Mellitus",
    "type 2 diabetes": "Type 2 Diabetes Mellitus",
    "t2dm": "Type 2 Diabetes Mellitus",
    "high cholesterol": "Hyperlipidemia",
    "heart attack": "Myocardial Infarction",
    "afib": "Atrial Fibrillation",
    "a-fib": "Atrial Fibrillation",
    "a fib": "Atrial Fibrillation",
    "copd": "Chronic Obstructive Pulmonary Disease",
    "gerd": "Gastroesophageal Reflux Disease",
    "acid reflux": "Gastroesophageal Reflux Disease",
    "uti": "Urinary Tract Infection",
    "chf": "Congestive Heart Failure",
    "ckd": "Chronic Kidney Disease",
    "cad": "Coronary Artery Disease",
    "hypothyroid": "Hypothyroidism",
    "underactive thyroid": "Hypothyroidism",
}
