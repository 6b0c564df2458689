"""
Mechanism and therapy annotation for consolidated antibiograms.

Each organism gets a ``mech_*`` function returning (mechanisms, banners,
favorable) and a ``tx_*`` function returning therapy notes; both read the
``final`` result map produced by ``mechid_rules.consolidate``. Text uses
Markdown emphasis so the Streamlit front end can render it directly.
"""

import logging

from mechid_rules import normalize_org

logger = logging.getLogger(__name__)

# ======================
# Small shared helpers
# ======================
CARBAPENEMS = ["Imipenem", "Meropenem", "Ertapenem", "Doripenem"]
THIRD_GENS = ["Ceftriaxone", "Cefotaxime", "Ceftazidime", "Cefpodoxime"]
FLUOROQUINOLONES = ["Ciprofloxacin", "Levofloxacin", "Moxifloxacin"]
AMINOGLYCOSIDES = ["Gentamicin", "Tobramycin", "Amikacin"]
NON_SUSCEPTIBLE = {"Intermediate", "Resistant"}


def _get(R, ab): return R.get(ab)
def _any_R(R, names): return any(R.get(n) == "Resistant" for n in names)
def _any_S(R, names): return any(R.get(n) == "Susceptible" for n in names)


def _dedup_list(items):
    seen, out = set(), []
    for x in items:
        if x and x not in seen:
            out.append(x); seen.add(x)
    return out


def _fq_notes(R, mechs, banners):
    """Fluoroquinolone lines shared by the Enterobacterales engines."""
    cip = _get(R, "Ciprofloxacin")
    lev = _get(R, "Levofloxacin")
    if cip == "Resistant" or lev == "Resistant":
        mechs.append(
            "Fluoroquinolone resistance: usually **QRDR mutations** (gyrA/parC) ± **efflux upregulation**, "
            "sometimes plasmid-mediated **qnr** or **AAC(6')-Ib-cr**."
        )
    if cip == "Resistant" and lev == "Susceptible":
        mechs.append(
            "Fluoroquinolone discordance (**Ciprofloxacin R / Levofloxacin S**) points to low-level, "
            "non-target resistance (**PMQR** and/or **efflux**) that can step up to high-level resistance on therapy."
        )
        banners.append(
            "Caution with **levofloxacin** despite apparent susceptibility: PMQR/efflux phenotypes fail more often on therapy."
        )


def _fq_therapy(R, out, beta_lactams):
    cip = _get(R, "Ciprofloxacin")
    lev = _get(R, "Levofloxacin")
    if _any_S(R, beta_lactams) and _any_R(R, FLUOROQUINOLONES):
        out.append("**Fluoroquinolone R but β-lactam S** → prefer a susceptible **β-lactam**.")
    if cip == "Resistant" and lev == "Susceptible":
        out.append(
            "**Ciprofloxacin R / Levofloxacin S** → levofloxacin only for **low-risk sites** with close follow-up; "
            "use a confirmed-active β-lactam for **severe/invasive** infection."
        )
    if _any_R(R, FLUOROQUINOLONES) and not _any_S(R, FLUOROQUINOLONES):
        out.append("**All tested fluoroquinolones are resistant** → avoid FQs.")


def _tmpsmx_notes(R, mechs):
    if _get(R, "Trimethoprim/Sulfamethoxazole") == "Resistant":
        mechs.append(
            "TMP-SMX resistance: **dfrA** (trimethoprim-resistant DHFR) and/or **sul1/sul2** (DHPS), "
            "often carried on **class 1 integrons**."
        )


def _tmpsmx_therapy(R, out):
    if _get(R, "Trimethoprim/Sulfamethoxazole") == "Susceptible":
        out.append(
            "**TMP-SMX susceptible** → reasonable **oral step-down** once improving with source control; "
            "not as sole therapy for severe sepsis or uncontrolled bacteremia."
        )


# ======================
# Enterobacterales (non-AmpC)
# ======================
def mech_enterobacterales(R):
    mechs, banners, greens = [], [], []
    carp_R = _any_R(R, CARBAPENEMS)
    third_R = _any_R(R, THIRD_GENS)
    ctx_S = _get(R, "Ceftriaxone") == "Susceptible"
    caz = _get(R, "Ceftazidime")

    if carp_R:
        mechs.append("Carbapenem resistance (screen for carbapenemase; confirm by phenotypic/molecular tests).")
    elif third_R:
        mechs.append("ESBL pattern (3rd-generation cephalosporin resistance).")

    # Amp R + Cefazolin R + Ceftriaxone S
    if (not carp_R and _get(R, "Cefazolin") == "Resistant" and ctx_S
            and _get(R, "Ampicillin") == "Resistant" and caz not in NON_SUSCEPTIBLE):
        banners.append(
            "β-lactam pattern **Amp R + Cefazolin R + Ceftriaxone S** → "
            "**broad-spectrum β-lactamase (TEM-1/SHV), not ESBL**."
        )

    if not carp_R and _get(R, "Cefepime") == "Resistant" and ctx_S:
        mechs.append(
            "Uncommon: **Cefepime R** with **Ceftriaxone S**; consider an ESBL variant, porin/efflux changes or a testing artifact."
        )

    if _get(R, "Ertapenem") == "Resistant" and _any_S(R, ["Imipenem", "Meropenem"]):
        banners.append("**Ertapenem R** with **Imipenem/Meropenem S** → usually ESBL or AmpC plus porin loss.")

    if not carp_R and not third_R and ctx_S:
        greens.append("Ceftriaxone susceptible without carbapenem resistance: no ESBL signal on the current panel.")

    _fq_notes(R, mechs, banners)
    _tmpsmx_notes(R, mechs)
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_enterobacterales(R):
    out = []
    carp_R = _any_R(R, CARBAPENEMS)

    if _any_R(R, THIRD_GENS) and not carp_R:
        out.append("**ESBL pattern** → use a **carbapenem** for serious infections.")
    if _get(R, "Ertapenem") == "Resistant" and _any_S(R, ["Imipenem", "Meropenem"]):
        out.append("**Ertapenem R / IMI or MEM S** → consider **extended-infusion meropenem**.")
    if _get(R, "Meropenem") == "Resistant" and _get(R, "Ertapenem") == "Resistant":
        out.append("**CRE phenotype** → send for **carbapenemase** testing and involve ID.")
    if (_get(R, "Cefazolin") == "Resistant" and _get(R, "Ceftriaxone") == "Susceptible"
            and _get(R, "Ampicillin") == "Resistant" and _get(R, "Ceftazidime") not in NON_SUSCEPTIBLE):
        out.append(
            "**TEM-1/SHV pattern** → **ceftriaxone preferred** when susceptible; piperacillin/tazobactam is usually active."
        )

    _fq_therapy(R, out, ["Piperacillin/Tazobactam", "Ceftriaxone", "Cefepime", "Aztreonam"] + CARBAPENEMS)
    _tmpsmx_therapy(R, out)
    return _dedup_list(out)


# ======================
# Chromosomal AmpC producers (K. aerogenes, E. cloacae, C. freundii)
# ======================
def mech_ampc(R):
    mechs, banners, greens = [], [], []
    carp_R = _any_R(R, CARBAPENEMS)
    fep = _get(R, "Cefepime")

    mechs.append(
        "Intrinsic **chromosomal AmpC β-lactamase** (inducible/derepressible): 3rd-gen cephalosporins and "
        "sometimes piperacillin/tazobactam can fail on therapy in serious infections."
    )
    if _get(R, "Cefoxitin") in NON_SUSCEPTIBLE or _get(R, "Cefotetan") == "Resistant":
        banners.append("**Cefoxitin/Cefotetan non-susceptible** supports AmpC expression/derepression.")

    if carp_R:
        mechs.append(
            "Carbapenem resistance: carbapenemase (KPC/NDM/VIM/IMP/OXA-48-like) versus AmpC/ESBL + porin loss; confirm."
        )
    elif _any_R(R, THIRD_GENS):
        mechs.append(
            "3rd-gen cephalosporin resistance: **AmpC derepression** and/or an acquired **ESBL** "
            "(ESBL confirmation is less reliable in AmpC organisms)."
        )

    if _get(R, "Ertapenem") == "Resistant" and _any_S(R, ["Imipenem", "Meropenem"]):
        banners.append("**Ertapenem R** with **Imipenem/Meropenem S** → AmpC/ESBL plus porin loss (non-carbapenemase).")

    if fep == "Susceptible":
        greens.append("Cefepime susceptible: usually stays active despite AmpC.")
    elif fep in NON_SUSCEPTIBLE:
        banners.append(
            "Cefepime non-susceptible in an AmpC organism → high-level AmpC with porin/efflux changes"
            + (", or a carbapenemase given carbapenem resistance." if carp_R else ".")
        )

    _fq_notes(R, mechs, banners)
    _tmpsmx_notes(R, mechs)
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_ampc(R):
    out = []
    fep = _get(R, "Cefepime")
    if _get(R, "Meropenem") == "Resistant" and _get(R, "Ertapenem") == "Resistant":
        out.append("**CRE phenotype** → request a **carbapenemase workup**; involve ID.")
    if fep == "Susceptible":
        out.append("**AmpC producer** → **cefepime preferred**; avoid 3rd-gen cephalosporins for serious infections.")
    elif fep in NON_SUSCEPTIBLE:
        out.append("AmpC producer with cefepime not susceptible → **carbapenem** for serious infections.")
    _fq_therapy(R, out, ["Cefepime", "Piperacillin/Tazobactam", "Imipenem", "Meropenem"])
    _tmpsmx_therapy(R, out)
    return _dedup_list(out)


# ======================
# Serratia marcescens
# ======================
def mech_serratia(R):
    mechs, banners, greens = [], [], []
    carp_R = _any_R(R, ["Imipenem", "Meropenem", "Ertapenem"])
    ceph_S = _any_S(R, ["Ceftriaxone", "Cefepime", "Ceftazidime"])

    mechs.append(
        "*Serratia marcescens* carries an **inducible chromosomal AmpC**, hence baseline resistance to "
        "ampicillin and 1st-generation cephalosporins."
    )
    if _get(R, "Cefoxitin") in NON_SUSCEPTIBLE:
        banners.append("**Cefoxitin non-susceptible** supports an AmpC signal; read 3rd-gen results with care.")
    if _any_R(R, THIRD_GENS) and not carp_R:
        mechs.append("3rd-gen cephalosporin resistance → **ESBL** and/or **AmpC derepression**.")
    if carp_R:
        mechs.append(
            "Carbapenem resistance in *Serratia*: chromosomal **SME-type** carbapenemase or an acquired enzyme such as **KPC**."
        )
        if ceph_S:
            banners.append(
                "Carbapenem R with **cephalosporins still susceptible** fits an SME-type phenotype; "
                "do not assume every cephalosporin is inactive."
            )
    if not carp_R and _get(R, "Ceftriaxone") == "Susceptible":
        greens.append(
            "Ceftriaxone susceptible: usable in many scenarios; *Serratia* carries lower AmpC-induction risk than classic inducers."
        )
    if _get(R, "Ertapenem") == "Resistant" and _any_S(R, ["Imipenem", "Meropenem"]):
        banners.append("**Ertapenem R** with **Imipenem/Meropenem S** → β-lactamase plus permeability changes.")

    _fq_notes(R, mechs, banners)
    _tmpsmx_notes(R, mechs)
    if _get(R, "Trimethoprim/Sulfamethoxazole") == "Susceptible":
        greens.append("TMP-SMX susceptible: possible oral option depending on site and severity.")
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_serratia(R):
    out = []
    carp_R = _any_R(R, ["Imipenem", "Meropenem", "Ertapenem"])
    if _any_R(R, THIRD_GENS) and not carp_R:
        out.append("3rd-gen cephalosporin resistance → **cefepime** if susceptible, otherwise a **carbapenem**.")
    if carp_R:
        choices = [f"**{ab.lower()}**" for ab in ["Ceftriaxone", "Cefepime", "Ceftazidime"] if _get(R, ab) == "Susceptible"]
        if choices:
            out.append(f"**Carbapenem R with cephalosporin S** → use a susceptible cephalosporin: {', '.join(choices)}.")
        else:
            out.append("**Carbapenem resistance** → confirmed actives only; request carbapenemase workup and involve ID.")
    _fq_therapy(R, out, ["Ceftriaxone", "Cefepime", "Ceftazidime", "Piperacillin/Tazobactam", "Aztreonam"] + CARBAPENEMS)
    _tmpsmx_therapy(R, out)
    return _dedup_list(out)


# ======================
# Pseudomonas aeruginosa
# ======================
_PSA_BETA_LACTAMS = ["Piperacillin/Tazobactam", "Cefepime", "Ceftazidime", "Aztreonam"]


def mech_pseudomonas(R):
    mechs, banners, greens = [], [], []
    carb_R = _any_R(R, ["Imipenem", "Meropenem"])
    bl_R = _any_R(R, _PSA_BETA_LACTAMS)
    bl_S = _any_S(R, _PSA_BETA_LACTAMS)

    if carb_R:
        mechs.append("Carbapenem resistance: **carbapenemase (VIM/IMP/NDM/GES)** versus **OprD loss ± AmpC/efflux**; confirm.")
    if carb_R and bl_S:
        mechs.append("Carbapenem R with other β-lactams S → **OprD porin loss** (non-carbapenemase) likely.")
    if bl_R and not carb_R:
        mechs.append("β-lactam resistance without carbapenem resistance → **AmpC overproduction ± efflux**.")

    if _get(R, "Imipenem") == "Resistant" and _get(R, "Meropenem") == "Susceptible":
        banners.append("**Imipenem R / Meropenem S** is typical of isolated **OprD** loss.")
    if _get(R, "Cefepime") == "Resistant" and _get(R, "Ceftazidime") == "Susceptible":
        banners.append("**Cefepime R / Ceftazidime S** suggests **MexXY-OprM efflux**.")

    if _any_R(R, ["Ciprofloxacin", "Levofloxacin"]):
        mechs.append("Fluoroquinolone resistance: **gyrA/parC** mutations and **MexAB/MexCD/MexEF** efflux.")
    if _any_R(R, AMINOGLYCOSIDES):
        mechs.append("Aminoglycoside resistance: **modifying enzymes** and/or **MexXY** efflux.")
        if _get(R, "Amikacin") == "Susceptible":
            greens.append("Amikacin susceptible despite other aminoglycoside resistance (enzyme-specific pattern).")

    if not carb_R and not bl_R and bl_S:
        greens.append("Anti-pseudomonal β-lactams active on the current panel.")
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_pseudomonas(R):
    out = []
    carb_R = _any_R(R, ["Imipenem", "Meropenem"])
    active = [ab for ab in _PSA_BETA_LACTAMS + ["Imipenem", "Meropenem"] if _get(R, ab) == "Susceptible"]

    if active:
        out.append(f"Choose a susceptible anti-pseudomonal β-lactam: {', '.join(active)} (extended infusion for serious infections).")
    if carb_R and not active:
        out.append(
            "**Difficult-to-treat phenotype** → request ceftolozane/tazobactam, ceftazidime/avibactam or cefiderocol testing; involve ID."
        )
    if _any_R(R, ["Ciprofloxacin", "Levofloxacin"]) and not _any_S(R, ["Ciprofloxacin", "Levofloxacin"]):
        out.append("Fluoroquinolones resistant → no oral FQ step-down.")
    elif _any_S(R, ["Ciprofloxacin", "Levofloxacin"]):
        out.append("FQ susceptible → **ciprofloxacin/levofloxacin** are the only oral options once stable.")
    if _any_S(R, AMINOGLYCOSIDES):
        out.append("Aminoglycosides: reserve for UTI or short combination therapy.")
    return _dedup_list(out)


# ======================
# Acinetobacter baumannii complex
# ======================
_ACB_BETA_LACTAMS = ["Ampicillin/Sulbactam", "Piperacillin/Tazobactam", "Cefepime", "Ceftriaxone", "Ceftazidime"]


def mech_acinetobacter(R):
    mechs, banners, greens = [], [], []
    carb_R = _any_R(R, ["Imipenem", "Meropenem"])
    bl_R = _any_R(R, _ACB_BETA_LACTAMS)

    banners.append("*Acinetobacter* often **colonizes** airways, wounds and devices; separate infection from colonization.")
    if carb_R:
        mechs.append("Carbapenem resistance: most often **OXA-type (class D) carbapenemase**; MBLs are less common.")
    if bl_R:
        mechs.append("β-lactam resistance: **AmpC** (ADC) ± ESBLs with **efflux** and **porin** changes.")
    if bl_R and (_any_R(R, ["Ciprofloxacin", "Levofloxacin"]) or _any_R(R, AMINOGLYCOSIDES)):
        mechs.append("Multidrug phenotype → **AdeABC** RND efflux likely contributes.")
    if _get(R, "Ampicillin/Sulbactam") == "Susceptible":
        greens.append("Ampicillin/sulbactam susceptible: sulbactam is intrinsically active against *A. baumannii*.")
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_acinetobacter(R):
    out = []
    carb_R = _any_R(R, ["Imipenem", "Meropenem"])
    if carb_R:
        out.append(
            "**CRAB** → high-dose **ampicillin/sulbactam** (or sulbactam/durlobactam) as backbone, usually in combination; involve ID."
        )
    elif _any_S(R, ["Imipenem", "Meropenem"]):
        out.append("Carbapenem susceptible → **meropenem** or **imipenem** for serious infection.")
    if _get(R, "Ampicillin/Sulbactam") == "Susceptible" and not carb_R:
        out.append("Ampicillin/sulbactam susceptible → reasonable option for less severe infection.")
    return _dedup_list(out)


# ======================
# Stenotrophomonas maltophilia
# ======================
def mech_steno(R):
    mechs, banners, greens = [], [], []
    tmpsmx = _get(R, "Trimethoprim/Sulfamethoxazole")
    lev = _get(R, "Levofloxacin")
    mino = _get(R, "Minocycline")

    banners.append(
        "*S. maltophilia* is **intrinsically resistant** to most β-lactams (L1/L2 β-lactamases) and aminoglycosides."
    )
    if tmpsmx == "Resistant":
        mechs.append("TMP-SMX resistance: **sul1/sul2** on class 1 integrons.")
    elif tmpsmx == "Susceptible":
        greens.append("TMP-SMX susceptible: first-line agent.")
    if lev == "Resistant":
        mechs.append("Fluoroquinolone resistance: **SmeDEF** efflux overexpression ± **Smqnr**.")
    elif lev == "Susceptible":
        banners.append("Levofloxacin susceptible, but resistance can emerge during monotherapy.")
    if mino == "Susceptible":
        greens.append("Minocycline susceptible: alternative oral option.")
    elif mino == "Resistant":
        mechs.append("Minocycline resistance: efflux-mediated, often alongside an MDR phenotype.")
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_steno(R):
    out = []
    n_active = sum(_get(R, ab) == "Susceptible" for ab in ["Trimethoprim/Sulfamethoxazole", "Levofloxacin", "Minocycline"])
    if _get(R, "Trimethoprim/Sulfamethoxazole") == "Susceptible":
        out.append("**TMP-SMX** preferred; consider combination for severe infection.")
    if n_active >= 2:
        out.append("Two active agents available → combination therapy for severe infection or neutropenia.")
    if n_active == 0 and any(_get(R, ab) for ab in ["Trimethoprim/Sulfamethoxazole", "Levofloxacin", "Minocycline"]):
        out.append("No tested oral agent active → request **cefiderocol** or **aztreonam + ceftazidime/avibactam** testing.")
    return _dedup_list(out)


# ======================
# Achromobacter xylosoxidans
# ======================
def mech_achromobacter(R):
    mechs, banners, greens = [], [], []
    banners.append("*Achromobacter* has **AxyABM/AxyXY-OprZ efflux** and an intrinsic **OXA-114** β-lactamase.")
    if _any_R(R, ["Imipenem", "Meropenem"]):
        mechs.append("Carbapenem resistance: acquired **MBL** (e.g., VIM/IMP) or efflux upregulation.")
    if _any_R(R, AMINOGLYCOSIDES):
        mechs.append("Aminoglycoside resistance: **AxyXY-OprZ** efflux (intrinsic).")
    if _get(R, "Piperacillin/Tazobactam") == "Susceptible":
        greens.append("Piperacillin/tazobactam susceptible.")
    return _dedup_list(mechs), _dedup_list(banners), _dedup_list(greens)


def tx_achromobacter(R):
    out = []
    active = [ab for ab in ["Piperacillin/Tazobactam", "Meropenem", "Imipenem", "Trimethoprim/Sulfamethoxazole"]
              if _get(R, ab) == "Susceptible"]
    if active:
        out.append(f"Active options on this panel: {', '.join(active)}.")
    return _dedup_list(out)


# ======================
# Registry
# ======================
class OrganismAnnotator:
    """Pairs a mechanism function with a therapy function for one organism."""

    def __init__(self, mechanisms=None, therapy=None):
        self.mechanisms = mechanisms
        self.therapy = therapy

    def annotate(self, final):
        mechs, banners, greens = self.mechanisms(final) if self.mechanisms else ([], [], [])
        therapy = self.therapy(final) if self.therapy else []
        return {
            "mechanisms": _dedup_list(mechs),
            "banners": _dedup_list(banners),
            "favorable": _dedup_list(greens),
            "therapy": _dedup_list(therapy),
        }


NULL_ANNOTATOR = OrganismAnnotator()

_ENTERO = OrganismAnnotator(mech_enterobacterales, tx_enterobacterales)
_AMPC = OrganismAnnotator(mech_ampc, tx_ampc)

ORGANISM_REGISTRY = {
    "Escherichia coli": _ENTERO,
    "Klebsiella pneumoniae": _ENTERO,
    "Klebsiella oxytoca": _ENTERO,
    "Citrobacter koseri": _ENTERO,
    "Proteus mirabilis": _ENTERO,
    "Proteus vulgaris group": _ENTERO,
    "Morganella morganii": _ENTERO,
    "Salmonella enterica": _ENTERO,
    "Klebsiella aerogenes": _AMPC,
    "Enterobacter cloacae complex": _AMPC,
    "Citrobacter freundii complex": _AMPC,
    "Serratia marcescens": OrganismAnnotator(mech_serratia, tx_serratia),
    "Pseudomonas aeruginosa": OrganismAnnotator(mech_pseudomonas, tx_pseudomonas),
    "Acinetobacter baumannii complex": OrganismAnnotator(mech_acinetobacter, tx_acinetobacter),
    "Stenotrophomonas maltophilia": OrganismAnnotator(mech_steno, tx_steno),
    "Achromobacter xylosoxidans": OrganismAnnotator(mech_achromobacter, tx_achromobacter),
}


def get_annotator(org):
    annotator = ORGANISM_REGISTRY.get(normalize_org(org))
    if annotator is None:
        logger.debug("no annotator registered for %r", org)
        return NULL_ANNOTATOR
    return annotator


def annotate(org, final):
    return get_annotator(org).annotate(final)


# ======================
# References
# ======================
MECH_REF_MAP = {
    "esbl": ["IDSA Guidance on the Treatment of Antimicrobial-Resistant Gram-Negative Infections (ESBL-E)."],
    "ampc": [
        "IDSA Guidance on AmpC-producing Enterobacterales.",
        "CLSI M100 (current edition): AmpC reporting comments.",
    ],
    "cre": [
        "IDSA Guidance on carbapenem-resistant Enterobacterales (CRE).",
        "CLSI M100 (current edition): carbapenemase detection (mCIM/eCIM).",
    ],
    "porin_oprd": ["Livermore DM. Multiple mechanisms of antimicrobial resistance in Pseudomonas aeruginosa."],
    "fq_qrdr": ["Hooper DC, Jacoby GA. Mechanisms of drug resistance: quinolone resistance."],
    "tmpsmx_folate": ["Sköld O. Resistance to trimethoprim and sulfonamides."],
    "crab": ["IDSA Guidance on carbapenem-resistant Acinetobacter baumannii (CRAB)."],
    "serr_sme": ["Queenan AM et al. SME-type carbapenem-hydrolyzing class A β-lactamases from Serratia marcescens."],
}


def collect_references(org, mechanisms, banners):
    """References matched from mechanism/banner wording, deduplicated in map order."""
    org = normalize_org(org)
    text = " ".join((mechanisms or []) + (banners or [])).lower()
    keys = []
    if "esbl" in text:
        keys.append("esbl")
    if "ampc" in text:
        keys.append("ampc")
    if "carbapenemase" in text or "cre phenotype" in text:
        keys.append("cre")
    if org == "Pseudomonas aeruginosa" and ("oprd" in text or "porin" in text):
        keys.append("porin_oprd")
    if "fluoroquinolone" in text or "qrdr" in text:
        keys.append("fq_qrdr")
    if "tmp-smx" in text or "dfra" in text or "sul1" in text:
        keys.append("tmpsmx_folate")
    if org == "Acinetobacter baumannii complex" and "carbapenem" in text:
        keys.append("crab")
    if org == "Serratia marcescens" and "sme" in text:
        keys.append("serr_sme")

    refs = []
    for k in MECH_REF_MAP:
        if k in keys:
            refs.extend(MECH_REF_MAP[k])
    return _dedup_list(refs)
