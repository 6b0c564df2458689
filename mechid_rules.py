import logging

import pandas as pd

logger = logging.getLogger(__name__)

SIR_CHOICES = ("Susceptible", "Intermediate", "Resistant")
SOURCE_USER = "User-entered"
SOURCE_INTRINSIC = "Intrinsic rule"
SOURCE_CASCADE = "Cascade rule"
ROW_COLUMNS = ["Antibiotic", "Result", "Source"]

# ======================
# Organisms
# ======================
GNR_CANON = [
    "Achromobacter xylosoxidans",
    "Acinetobacter baumannii complex",
    "Citrobacter freundii complex",
    "Citrobacter koseri",
    "Enterobacter cloacae complex",
    "Escherichia coli",
    "Klebsiella aerogenes",
    "Klebsiella oxytoca",
    "Klebsiella pneumoniae",
    "Morganella morganii",
    "Proteus mirabilis",
    "Proteus vulgaris group",
    "Pseudomonas aeruginosa",
    "Salmonella enterica",
    "Serratia marcescens",
    "Stenotrophomonas maltophilia",
]

# (lower-case prefix, canonical name); first match wins, so specific prefixes go first
_ORG_PREFIXES = [
    ("achromobacter", "Achromobacter xylosoxidans"),
    ("acinetobacter", "Acinetobacter baumannii complex"),
    ("citrobacter freun", "Citrobacter freundii complex"),
    ("citrobacter kos", "Citrobacter koseri"),
    ("enterobacter clo", "Enterobacter cloacae complex"),
    ("enterobacter aer", "Klebsiella aerogenes"),
    ("escherichia", "Escherichia coli"),
    ("e. coli", "Escherichia coli"),
    ("e.coli", "Escherichia coli"),
    ("klebsiella aer", "Klebsiella aerogenes"),
    ("klebsiella oxy", "Klebsiella oxytoca"),
    ("klebsiella pneu", "Klebsiella pneumoniae"),
    ("morganella", "Morganella morganii"),
    ("proteus mira", "Proteus mirabilis"),
    ("proteus vulg", "Proteus vulgaris group"),
    ("pseudomonas", "Pseudomonas aeruginosa"),
    ("ps.", "Pseudomonas aeruginosa"),
    ("salmonella", "Salmonella enterica"),
    ("serratia", "Serratia marcescens"),
    ("stenotrophomonas", "Stenotrophomonas maltophilia"),
]


def normalize_org(name: str) -> str:
    """Map free-form lab organism names onto GNR_CANON; unrecognized names pass through stripped."""
    if not isinstance(name, str):
        return name
    n = name.strip()
    ln = n.lower()
    if "freundii" in ln:
        return "Citrobacter freundii complex"
    for prefix, canon in _ORG_PREFIXES:
        if ln.startswith(prefix):
            return canon
    return n


# ======================
# Panels (antibiotics each organism is usually reported against)
# ======================
_BL_ENTERO = [
    "Ampicillin/Sulbactam", "Piperacillin/Tazobactam",
    "Cefoxitin", "Ceftriaxone", "Ceftazidime", "Cefepime", "Aztreonam",
    "Imipenem", "Meropenem", "Ertapenem",
]
_AMINOGLYCOSIDES = ["Gentamicin", "Tobramycin", "Amikacin"]
_FQS = ["Ciprofloxacin", "Levofloxacin"]
_TMPSMX = ["Trimethoprim/Sulfamethoxazole"]

_ENTERO_FULL = (
    ["Ampicillin", "Ampicillin/Sulbactam", "Piperacillin/Tazobactam", "Cefazolin"]
    + _BL_ENTERO[2:] + _AMINOGLYCOSIDES + _FQS + ["Nitrofurantoin"] + _TMPSMX
)
_AMPC_ENTERO = ["Ampicillin", "Cefazolin"] + _BL_ENTERO + _AMINOGLYCOSIDES + _FQS + _TMPSMX

PANEL = {
    "Escherichia coli": _ENTERO_FULL,
    "Klebsiella pneumoniae": _ENTERO_FULL,
    "Klebsiella oxytoca": _ENTERO_FULL,
    "Citrobacter koseri": _ENTERO_FULL,
    "Klebsiella aerogenes": _AMPC_ENTERO,
    "Enterobacter cloacae complex": _AMPC_ENTERO,
    "Citrobacter freundii complex": _AMPC_ENTERO[:5] + ["Cefotetan"] + _AMPC_ENTERO[5:],
    "Serratia marcescens": _AMPC_ENTERO + ["Tetracycline"],
    "Proteus mirabilis": _ENTERO_FULL,
    "Proteus vulgaris group": _AMPC_ENTERO + ["Nitrofurantoin", "Tetracycline"],
    "Morganella morganii": _AMPC_ENTERO + ["Nitrofurantoin"],
    "Salmonella enterica": ["Ampicillin", "Ceftriaxone", "Ciprofloxacin"] + _TMPSMX,
    "Acinetobacter baumannii complex": (
        ["Ampicillin/Sulbactam", "Piperacillin/Tazobactam", "Cefazolin", "Ceftriaxone", "Ceftazidime",
         "Cefepime", "Aztreonam", "Imipenem", "Meropenem", "Minocycline", "Tetracycline"]
        + _AMINOGLYCOSIDES + _FQS + _TMPSMX
    ),
    "Achromobacter xylosoxidans": (
        ["Piperacillin/Tazobactam", "Cefepime", "Ceftazidime", "Aztreonam", "Imipenem", "Meropenem"]
        + _AMINOGLYCOSIDES + _FQS + _TMPSMX
    ),
    "Pseudomonas aeruginosa": (
        ["Ampicillin", "Cefazolin", "Ceftriaxone", "Ertapenem",
         "Piperacillin/Tazobactam", "Cefepime", "Ceftazidime", "Aztreonam", "Imipenem", "Meropenem"]
        + _AMINOGLYCOSIDES + _FQS
    ),
    "Stenotrophomonas maltophilia": _TMPSMX + ["Levofloxacin", "Minocycline"],
}

# ======================
# Organism rules
# ======================
# Cascade rules run once, top to bottom. A rule only sees targets filled by
# rules above it, so list dependencies before their dependents.
RULES = {
    "Escherichia coli": {
        "intrinsic_resistance": [],
        "cascade": [
            {"target": "Ceftriaxone", "rule": "same_as", "ref": "Cefotaxime"},
            {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime", "Cefazolin"]},
            {"target": "Ceftazidime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime", "Cefazolin"]},
            {"target": "Cefuroxime", "rule": "sus_if_sus", "ref": "Cefazolin"},
            {"target": "Cefoxitin", "rule": "sus_if_sus", "ref": "Cefazolin"},
            {"target": "Cefotetan", "rule": "sus_if_sus", "ref": "Cefazolin"},
            {"target": "Cefpodoxime", "rule": "same_as_else_sus_if_sus",
             "primary": "Ceftriaxone", "fallback": "Cefazolin"},
            {"target": "Doxycycline", "rule": "sus_if_sus_else_res", "ref": "Tetracycline"},
        ],
    },
    "Klebsiella pneumoniae": {"intrinsic_resistance": ["Ampicillin"], "cascade": []},
    "Klebsiella oxytoca": {"intrinsic_resistance": ["Ampicillin"], "cascade": []},
    "Klebsiella aerogenes": {
        "intrinsic_resistance": ["Ampicillin", "Cefazolin"],
        "cascade": [
            {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone"]},
        ],
    },
    "Enterobacter cloacae complex": {
        "intrinsic_resistance": ["Ampicillin", "Cefazolin"],
        "cascade": [
            {"target": "Ceftriaxone", "rule": "same_as", "ref": "Cefotaxime"},
            {"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"},
            {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime"]},
            {"target": "Doxycycline", "rule": "sus_if_sus_else_res", "ref": "Tetracycline"},
        ],
    },
    "Citrobacter freundii complex": {
        "intrinsic_resistance": ["Ampicillin", "Cefazolin", "Cefoxitin", "Cefotetan"],
        "cascade": [
            {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime"]},
            {"target": "Ceftazidime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime"]},
        ],
    },
    "Citrobacter koseri": {
        "intrinsic_resistance": [],
        "cascade": [
            {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime", "Cefazolin"]},
            {"target": "Ceftazidime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime", "Cefazolin"]},
        ],
    },
    "Serratia marcescens": {"intrinsic_resistance": ["Ampicillin", "Cefazolin", "Tetracycline"], "cascade": []},
    "Proteus mirabilis": {"intrinsic_resistance": ["Nitrofurantoin"], "cascade": []},
    "Proteus vulgaris group": {
        "intrinsic_resistance": ["Nitrofurantoin", "Tetracycline", "Tigecycline", "Colistin"],
        "cascade": [],
    },
    "Morganella morganii": {"intrinsic_resistance": ["Nitrofurantoin"], "cascade": []},
    "Salmonella enterica": {"intrinsic_resistance": [], "cascade": []},
    "Acinetobacter baumannii complex": {
        "intrinsic_resistance": ["Aztreonam", "Cefazolin", "Minocycline", "Tetracycline"],
        "cascade": [
            {"target": "Ceftriaxone", "rule": "same_as", "ref": "Cefotaxime"},
            {"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"},
            {"target": "Imipenem", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefotaxime"]},
            {"target": "Meropenem", "rule": "sus_if_any_sus", "refs": ["Imipenem", "Ceftriaxone", "Cefotaxime"]},
            {"target": "Doripenem", "rule": "same_as", "ref": "Meropenem"},
        ],
    },
    "Achromobacter xylosoxidans": {"intrinsic_resistance": [], "cascade": []},
    "Pseudomonas aeruginosa": {
        "intrinsic_resistance": ["Ampicillin", "Cefazolin", "Ceftriaxone", "Ertapenem", "Tetracycline", "Tigecycline"],
        "cascade": [],
    },
    "Stenotrophomonas maltophilia": {"intrinsic_resistance": [], "cascade": []},
}

EMPTY_RULES = {"intrinsic_resistance": [], "cascade": []}


def get_rules(org):
    return RULES.get(normalize_org(org), EMPTY_RULES)


def get_panel(org):
    return list(PANEL.get(normalize_org(org), []))


# ======================
# Cascade
# ======================
def _rule_refs(rule):
    kind = rule.get("rule")
    if kind == "same_as_else_sus_if_sus":
        return [r for r in (rule.get("primary"), rule.get("fallback")) if r]
    return rule.get("refs") or [r for r in [rule.get("ref")] if r]


def apply_cascade(org_rules, inputs):
    """
    Fill untested antibiotics from tested ones.

    Returns only the inferred results. A rule never touches a target that
    already has a value, whether user-entered or set by an earlier rule.
    """
    inferred = {}

    def get_status(ab):
        val = inputs.get(ab)
        return val if val else inferred.get(ab)

    for rule in (org_rules or {}).get("cascade", []):
        tgt = rule["target"]
        if get_status(tgt) is not None:
            continue
        kind = rule.get("rule")
        if kind == "same_as":
            val = get_status(rule["ref"])
            if val is not None:
                inferred[tgt] = val
        elif kind == "sus_if_sus":
            if any(get_status(r) == "Susceptible" for r in _rule_refs(rule)):
                inferred[tgt] = "Susceptible"
        elif kind == "sus_if_any_sus":
            if any(get_status(r) == "Susceptible" for r in rule["refs"]):
                inferred[tgt] = "Susceptible"
        elif kind == "sus_if_sus_else_res":
            val = get_status(rule["ref"])
            if val == "Susceptible":
                inferred[tgt] = "Susceptible"
            elif val is not None:
                inferred[tgt] = "Resistant"
        elif kind == "same_as_else_sus_if_sus":
            pv = get_status(rule["primary"])
            if pv is not None:
                inferred[tgt] = pv
            elif get_status(rule["fallback"]) == "Susceptible":
                inferred[tgt] = "Susceptible"
        else:
            logger.debug("skipping unknown cascade rule kind %r for %s", kind, tgt)
            continue
        if tgt in inferred:
            logger.debug("cascade %s: %s -> %s", kind, tgt, inferred[tgt])
    return inferred


def find_rule_order_issues(org_rules):
    """
    Rules that read an antibiotic only a later rule fills in.

    Mirror pairs (A same_as B followed by B same_as A) are not reported: the
    later rule can only copy a value the earlier one already saw.
    """
    cascade = (org_rules or {}).get("cascade", [])
    issues = []
    for i, rule in enumerate(cascade):
        for later in cascade[i + 1:]:
            if later["target"] in _rule_refs(rule) and rule["target"] not in _rule_refs(later):
                issues.append(f"{rule['target']} reads {later['target']} before it is inferred")
    return issues


# ======================
# Consolidation
# ======================
def consolidate(panel, user, org_rules):
    """
    Merge user entries, cascade inferences and intrinsic resistance.

    Intrinsic resistance always wins, even over a contradicting user entry.
    Rows cover panel antibiotics that end up with a value, in panel order.
    """
    org_rules = org_rules or EMPTY_RULES
    intrinsic = list(org_rules.get("intrinsic_resistance", []))
    inferred = apply_cascade(org_rules, user)

    final = {}
    for ab in panel:
        final[ab] = inferred.get(ab) or user.get(ab) or None
    for ab in intrinsic:
        if user.get(ab) and user[ab] != "Resistant":
            logger.info("intrinsic resistance overrides user entry %s=%s", ab, user[ab])
        final[ab] = "Resistant"

    rows = []
    for ab in panel:
        val = final.get(ab)
        if val is None:
            continue
        source = SOURCE_USER
        if ab in intrinsic:
            source = SOURCE_INTRINSIC
        elif inferred.get(ab) is not None and not user.get(ab):
            source = SOURCE_CASCADE
        rows.append({"Antibiotic": ab, "Result": val, "Source": source})

    return {"final": final, "inferred": inferred, "rows": rows, "intrinsic": intrinsic}


def rows_frame(rows):
    return pd.DataFrame(rows, columns=ROW_COLUMNS)
