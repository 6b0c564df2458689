import math

from lr_math import _is_number

# LR values are starter estimates for teaching; curate against published
# sensitivity/specificity before any clinical use.

# ======================
# Community-acquired pneumonia
# ======================
CAP_MODULE = {
    "id": "cap",
    "name": "CAP",
    "description": (
        "Community-acquired pneumonia: symptoms, vitals and exam plus a simplified "
        "chest radiograph and two labs."
    ),
    "pretest_presets": [
        {"id": "pc_adult", "label": "Primary Care", "p": 0.05},
        {"id": "ed_adult", "label": "Emergency Department", "p": 0.10},
    ],
    "items": [
        # Symptoms
        {"id": "cap_cough", "label": "Cough", "category": "symptom", "lr_pos": 1.2},
        {"id": "cap_purp_sputum", "label": "Purulent sputum", "category": "symptom", "lr_pos": 1.3,
         "notes": "Non-specific on its own."},
        {"id": "cap_pleuritic", "label": "Pleuritic chest pain", "category": "symptom", "lr_pos": 1.7},
        {"id": "cap_dyspnea", "label": "Dyspnea", "category": "symptom", "lr_pos": 1.5},

        # Vitals
        {"id": "cap_fever", "label": "Fever (≥38°C)", "category": "vital", "lr_pos": 2.0, "lr_neg": 0.7},
        {"id": "cap_rr", "label": "Tachypnea (RR ≥ 24)", "category": "vital", "lr_pos": 2.5, "lr_neg": 0.5},
        {"id": "cap_hr", "label": "Tachycardia (HR > 100)", "category": "vital", "lr_pos": 1.5, "lr_neg": 0.8},
        {"id": "cap_hypox", "label": "O2 sat < 95%", "category": "vital", "lr_pos": 2.3, "lr_neg": 0.6},

        # Exam
        {"id": "cap_crackles", "label": "Crackles/rales", "category": "exam", "lr_pos": 2.0, "lr_neg": 0.7},
        {"id": "cap_focal", "label": "Focal decreased breath sounds", "category": "exam", "lr_pos": 2.0, "lr_neg": 0.8},

        # Imaging: one radiograph result or "not done", never both
        {"id": "cap_cxr_consolidation", "label": "CXR: lobar or multilobar consolidation/infiltrate",
         "category": "imaging", "group": "cap_cxr", "lr_pos": 8.0, "lr_neg": 0.25,
         "notes": "Mark Present/Absent when a CXR was read; otherwise pick “CXR not done”."},
        {"id": "cap_cxr_not_done", "label": "CXR not done", "category": "imaging", "group": "cap_cxr",
         "notes": "Neutral."},

        # Labs
        {"id": "cap_wbc_ge15", "label": "WBC ≥ 15,000", "category": "lab", "lr_pos": 1.6, "lr_neg": 0.9,
         "notes": "Tracks severity better than diagnosis."},
        {"id": "cap_procal_high", "label": "Procalcitonin elevated", "category": "lab", "lr_pos": 1.8, "lr_neg": 0.7,
         "notes": "Assay-dependent."},

        # Host
        {"id": "cap_age_ge65", "label": "Age ≥ 65", "category": "host", "lr_pos": 1.15},
        {"id": "cap_copd", "label": "COPD", "category": "host", "lr_pos": 1.15},
        {"id": "cap_hf", "label": "Heart failure", "category": "host", "lr_pos": 1.10},
        {"id": "cap_ckd", "label": "Chronic kidney disease", "category": "host", "lr_pos": 1.10},
        {"id": "cap_dm", "label": "Diabetes", "category": "host", "lr_pos": 1.05},
    ],
}

# ======================
# Clostridioides difficile
# ======================
CDI_MODULE = {
    "id": "cdi",
    "name": "C. difficile",
    "description": (
        "C. difficile infection: diarrhea features, host/exposure risk and a simplified "
        "NAAT → toxin testing pathway."
    ),
    "pretest_presets": [
        {"id": "outpt_low", "label": "Outpatient", "p": 0.02},
        {"id": "inpt", "label": "Inpatient diarrhea after day 3", "p": 0.15},
    ],
    "items": [
        {"id": "cdi_freq", "label": "≥3 unformed stools / 24h", "category": "symptom", "lr_pos": 1.6},
        {"id": "cdi_watery", "label": "Watery diarrhea", "category": "symptom", "lr_pos": 1.4},
        {"id": "cdi_abd_pain", "label": "Abdominal pain/cramping", "category": "symptom", "lr_pos": 1.3},
        {"id": "cdi_fever", "label": "Fever (≥38°C)", "category": "vital", "lr_pos": 1.3, "lr_neg": 0.9},
        {"id": "cdi_blood", "label": "Gross blood in stool", "category": "symptom", "lr_pos": 0.6, "lr_neg": 1.0,
         "notes": "Points toward IBD flare, ischemia or invasive bacterial diarrhea."},

        # Host / exposure
        {"id": "cdi_abx", "label": "Antibiotics in prior 8–12 weeks", "category": "host", "lr_pos": 2.0, "lr_neg": 0.7},
        {"id": "cdi_healthcare", "label": "Recent hospitalization/healthcare exposure", "category": "host",
         "lr_pos": 1.8, "lr_neg": 0.8},
        {"id": "cdi_ppi", "label": "PPI use", "category": "host", "lr_pos": 1.2, "lr_neg": 0.95},
        {"id": "cdi_prev", "label": "Prior CDI", "category": "host", "lr_pos": 2.5, "lr_neg": 0.8},
        {"id": "cdi_age_ge65", "label": "Age ≥ 65", "category": "host", "lr_pos": 1.3, "lr_neg": 0.9},
        {"id": "cdi_immuno", "label": "Immunocompromised", "category": "host", "lr_pos": 1.3, "lr_neg": 0.9},
        {"id": "cdi_ibd", "label": "Inflammatory bowel disease", "category": "host", "lr_pos": 1.3, "lr_neg": 0.9},

        # Severity labs
        {"id": "cdi_wbc15", "label": "WBC ≥ 15k", "category": "lab", "lr_pos": 1.4, "lr_neg": 0.9,
         "notes": "Severity marker more than diagnostic."},
        {"id": "cdi_cr", "label": "Creatinine rise", "category": "lab", "lr_pos": 1.2, "lr_neg": 0.95,
         "notes": "Severity marker more than diagnostic."},

        # Stool testing: one result only
        {"id": "cdi_test_na", "label": "Stool testing not done/unknown", "category": "micro", "group": "cdi_test"},
        {"id": "cdi_naat_neg", "label": "NAAT/PCR: negative", "category": "micro", "group": "cdi_test", "lr_neg": 0.10},
        {"id": "cdi_naat_pos_tox_pos", "label": "NAAT/PCR positive + Toxin EIA positive", "category": "micro",
         "group": "cdi_test", "lr_pos": 12.0, "notes": "Best support for toxin-mediated disease."},
        {"id": "cdi_naat_pos_tox_neg", "label": "NAAT/PCR positive + Toxin EIA negative", "category": "micro",
         "group": "cdi_test", "lr_pos": 3.5, "notes": "Colonization or low toxin burden possible."},
        {"id": "cdi_naat_pos_tox_na", "label": "NAAT/PCR positive (toxin not sent/unknown)", "category": "micro",
         "group": "cdi_test", "lr_pos": 6.0, "notes": "A toxin result would refine this."},
    ],
}

# ======================
# Urinary tract infection
# ======================
UTI_MODULE = {
    "id": "uti",
    "name": "UTI",
    "description": (
        "UTI: symptoms plus urinalysis and optional culture. Presets are care settings; "
        "sex and other risk factors are host findings."
    ),
    "pretest_presets": [
        {"id": "uti_comm", "label": "Community / primary care", "p": 0.25},
        {"id": "uti_hc", "label": "Hospital / healthcare-associated", "p": 0.20},
    ],
    "items": [
        {"id": "uti_dysuria", "label": "Dysuria", "category": "symptom", "lr_pos": 2.0, "lr_neg": 0.6},
        {"id": "uti_freq", "label": "Frequency/urgency", "category": "symptom", "lr_pos": 1.6, "lr_neg": 0.8},
        {"id": "uti_suprapubic", "label": "Suprapubic pain", "category": "symptom", "lr_pos": 1.3, "lr_neg": 0.9},
        {"id": "uti_vaginitis", "label": "Vaginal discharge/irritation", "category": "symptom",
         "lr_pos": 0.4, "lr_neg": 1.0, "notes": "Suggests vaginitis/cervicitis rather than cystitis."},

        {"id": "uti_fever", "label": "Fever (≥38°C)", "category": "vital", "lr_pos": 1.3, "lr_neg": 0.9},
        {"id": "uti_cva", "label": "CVA tenderness", "category": "exam", "lr_pos": 2.0, "lr_neg": 0.8},

        # Host
        {"id": "uti_female", "label": "Female sex", "category": "host", "group": "uti_sex",
         "lr_pos": 1.4, "lr_neg": 0.95},
        {"id": "uti_male", "label": "Male sex", "category": "host", "group": "uti_sex",
         "lr_pos": 0.7, "lr_neg": 1.0, "notes": "Consider prostatitis or complicated UTI."},
        {"id": "uti_age_ge65", "label": "Age ≥ 65", "category": "host", "lr_pos": 1.2, "lr_neg": 0.95},
        {"id": "uti_diabetes", "label": "Diabetes mellitus", "category": "host", "lr_pos": 1.2, "lr_neg": 0.95},
        {"id": "uti_ckd", "label": "Chronic kidney disease", "category": "host", "lr_pos": 1.2, "lr_neg": 0.95},
        {"id": "uti_immuno", "label": "Immunocompromised", "category": "host", "lr_pos": 1.2, "lr_neg": 0.95},
        {"id": "uti_catheter", "label": "Indwelling catheter / recent instrumentation", "category": "host",
         "lr_pos": 1.6, "lr_neg": 0.9},
        {"id": "uti_obstruction", "label": "Urinary obstruction/BPH or anatomic abnormality", "category": "host",
         "lr_pos": 1.5, "lr_neg": 0.9},
        {"id": "uti_stones", "label": "Nephrolithiasis history", "category": "host", "lr_pos": 1.3, "lr_neg": 0.95},
        {"id": "uti_recurrent", "label": "Recurrent UTIs", "category": "host", "lr_pos": 1.3, "lr_neg": 0.95},

        # Urinalysis (Present = positive, Absent = negative)
        {"id": "ua_le_pos", "label": "Urine leukocyte esterase", "category": "lab", "group": "ua_le",
         "lr_pos": 2.5, "lr_neg": 0.3},
        {"id": "ua_nit_pos", "label": "Urine nitrite", "category": "lab", "group": "ua_nit",
         "lr_pos": 6.0, "lr_neg": 0.7},
        {"id": "ua_pyuria_pos", "label": "Pyuria on microscopy", "category": "lab", "group": "ua_pyuria",
         "lr_pos": 2.0, "lr_neg": 0.2},
        {"id": "ua_bact_pos", "label": "Bacteriuria on microscopy", "category": "lab", "group": "ua_bact",
         "lr_pos": 2.0, "lr_neg": 0.6},

        {"id": "uti_cx_pos", "label": "Urine culture >100,000 CFU", "category": "micro", "group": "uti_cx",
         "lr_pos": 10.0, "lr_neg": 0.1},
    ],
}

# ======================
# Infective endocarditis
# ======================
ENDO_MODULE = {
    "id": "endo",
    "name": "Endocarditis",
    "description": (
        "Infective endocarditis: host risk, microbiology, echocardiography and FDG PET/CT. "
        "Duke elements are correlated, so micro options are grouped to avoid stacking."
    ),
    "pretest_presets": [
        {"id": "endo_very_low", "label": "Very low suspicion (fever, no RF, alternate dx likely)", "p": 0.005},
        {"id": "endo_low", "label": "Low suspicion (fever + murmur or RF, not classic)", "p": 0.02},
        {"id": "endo_mod", "label": "Moderate suspicion (bacteremia or multiple RF)", "p": 0.08},
    ],
    "items": [
        # Host / risk
        {"id": "endo_ivdu", "label": "Injection drug use", "category": "host", "lr_pos": 2.5, "lr_neg": 0.9},
        {"id": "endo_prosthetic_valve", "label": "Prosthetic valve", "category": "host", "lr_pos": 2.5, "lr_neg": 0.9},
        {"id": "endo_prior_endo", "label": "Prior endocarditis", "category": "host", "lr_pos": 2.5, "lr_neg": 0.95},
        {"id": "endo_structural", "label": "Known structural valve disease", "category": "host",
         "lr_pos": 1.8, "lr_neg": 0.95},
        {"id": "endo_chd", "label": "Congenital heart disease", "category": "host", "lr_pos": 1.8, "lr_neg": 0.95},
        {"id": "endo_cied", "label": "Cardiac device (CIED/ICD/pacemaker)", "category": "host",
         "lr_pos": 2.2, "lr_neg": 0.95},
        {"id": "endo_hd", "label": "Hemodialysis", "category": "host", "lr_pos": 2.0, "lr_neg": 0.95},

        # Clinical (Duke minor)
        {"id": "endo_fever", "label": "Fever (≥38°C)", "category": "symptom", "lr_pos": 1.4, "lr_neg": 0.85},
        {"id": "endo_new_murmur", "label": "New regurgitant murmur", "category": "exam", "lr_pos": 2.5, "lr_neg": 0.9},
        {"id": "endo_vascular", "label": "Vascular phenomena (emboli/Janeway/splinter hemorrhages)",
         "category": "exam", "lr_pos": 2.0, "lr_neg": 0.95},
        {"id": "endo_immune", "label": "Immunologic phenomena (GN/Osler/RF)", "category": "exam",
         "lr_pos": 1.8, "lr_neg": 0.95},
        {"id": "endo_esr_crp", "label": "Elevated ESR/CRP", "category": "lab", "lr_pos": 1.1, "lr_neg": 0.95},
        {"id": "endo_anemia", "label": "Anemia of Chronic Disease", "category": "lab", "lr_pos": 1.1, "lr_neg": 0.95},

        # Microbiology: pick the single best-fitting option
        {"id": "endo_micro_na", "label": "Blood cultures / serology not done/unknown", "category": "micro",
         "group": "endo_micro"},
        {"id": "endo_bcx_major_typical", "label": "Blood cultures: Duke major (typical organism in ≥2 sets)",
         "category": "micro", "group": "endo_micro", "lr_pos": 12.0, "lr_neg": 0.9,
         "notes": "Duke major criterion."},
        {"id": "endo_bcx_major_persistent", "label": "Blood cultures: Duke major (persistent positivity)",
         "category": "micro", "group": "endo_micro", "lr_pos": 15.0, "lr_neg": 0.9,
         "notes": "Duke major criterion; correlated with organism and echo findings."},
        {"id": "endo_bcx_pos_not_major", "label": "Blood cultures: positive but NOT Duke major",
         "category": "micro", "group": "endo_micro", "lr_pos": 3.0, "lr_neg": 0.95,
         "notes": "Single positive set, atypical organism, or uncertain significance."},
        {"id": "endo_bcx_negative", "label": "Blood cultures: negative", "category": "micro",
         "group": "endo_micro", "lr_pos": 1.0, "lr_neg": 0.6},
        {"id": "endo_coxiella_major", "label": "Coxiella burnetii Phase I IgG ≥ 1:800", "category": "micro",
         "group": "endo_micro", "lr_pos": 20.0, "lr_neg": 0.95,
         "notes": "Major criterion; very specific for chronic Q fever endocarditis."},

        # Imaging: Present = positive, Absent = negative, Unknown = not done
        {"id": "endo_tte", "label": "Transthoracic echo (TTE) with new vegetation, regurgitation or perforation",
         "category": "imaging", "group": "endo_tte", "lr_pos": 10.2, "lr_neg": 0.41,
         "notes": "From pooled sensitivity ~0.61 / specificity ~0.94; weaker with prosthetic material."},
        {"id": "endo_tte_na", "label": "TTE not done/unknown", "category": "imaging", "group": "endo_tte"},
        {"id": "endo_tee", "label": "Transesophageal echo (TEE) with new vegetation, regurgitation or perforation",
         "category": "imaging", "group": "endo_tee", "lr_pos": 9.0, "lr_neg": 0.12},
        {"id": "endo_pet", "label": "FDG PET/CT (prosthetic valve/device infection)", "category": "imaging",
         "group": "endo_pet", "lr_pos": 5.5, "lr_neg": 0.20,
         "notes": "Best for prosthetic valve/device IE; a negative scan does not exclude native-valve IE."},
        {"id": "endo_pet_na", "label": "FDG PET/CT not done/unknown", "category": "imaging", "group": "endo_pet"},
    ],
}

PROBID_MODULES = [CAP_MODULE, CDI_MODULE, UTI_MODULE, ENDO_MODULE]


# ======================
# Lookups
# ======================
def get_module(module_id=None):
    for m in PROBID_MODULES:
        if m["id"] == module_id:
            return m
    return PROBID_MODULES[0]


def get_preset(module, preset_id=None):
    presets = module.get("pretest_presets", [])
    for p in presets:
        if p["id"] == preset_id:
            return p
    return presets[0] if presets else None


def items_by_id(module):
    return {it["id"]: it for it in module["items"]}


# ======================
# Catalog families
# ======================
FAMILY_ORDER = ["Location", "Host", "Symptoms", "Vitals", "Exam", "Imaging", "Labs", "Micro", "Other"]

_FAMILY_BY_CATEGORY = {
    "symptom": "Symptoms",
    "vital": "Vitals",
    "exam": "Exam",
    "imaging": "Imaging",
    "lab": "Labs",
    "micro": "Micro",
    "host": "Host",
}


def family_for(item):
    return _FAMILY_BY_CATEGORY.get(item.get("category"), "Other")


def matches_query(item, query):
    """Case-insensitive substring match over label and notes; a blank query matches everything."""
    q = (query or "").strip().lower()
    if not q:
        return True
    hay = f"{item['label']} {item.get('notes', '')}".lower()
    return q in hay


def group_items_by_family(module, query=""):
    out = {}
    for it in module["items"]:
        if matches_query(it, query):
            out.setdefault(family_for(it), []).append(it)
    return {fam: out[fam] for fam in FAMILY_ORDER if fam in out}


def validate_module(module):
    """List data problems in a module (empty list when the module is consistent)."""
    problems = []
    seen = set()
    for it in module["items"]:
        if it["id"] in seen:
            problems.append(f"duplicate finding id: {it['id']}")
        seen.add(it["id"])
        for key in ("lr_pos", "lr_neg"):
            v = it.get(key)
            if v is not None and (not _is_number(v) or not math.isfinite(v) or v <= 0):
                problems.append(f"{it['id']}: {key} must be a positive number")
    for p in module.get("pretest_presets", []):
        if not 0 < p["p"] < 1:
            problems.append(f"preset {p['id']}: p must be in (0, 1)")
    return problems
