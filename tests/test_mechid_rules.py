"""
Cascade inference and consolidation of antibiogram results.
"""

import pytest

from mechid_rules import (
    PANEL,
    RULES,
    apply_cascade,
    consolidate,
    find_rule_order_issues,
    get_panel,
    get_rules,
    normalize_org,
    rows_frame,
)


def _rules(*cascade, intrinsic=()):
    return {"intrinsic_resistance": list(intrinsic), "cascade": list(cascade)}


def test_same_as_copies_reference():
    rules = _rules({"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"})
    out = consolidate(["Ceftriaxone", "Cefotaxime"], {"Ceftriaxone": "Susceptible", "Cefotaxime": None}, rules)
    assert out["inferred"] == {"Cefotaxime": "Susceptible"}
    assert {r["Antibiotic"]: r["Source"] for r in out["rows"]} == {
        "Ceftriaxone": "User-entered",
        "Cefotaxime": "Cascade rule",
    }


def test_sus_if_sus_never_asserts_resistant():
    rules = _rules({"target": "Cefuroxime", "rule": "sus_if_sus", "ref": "Cefazolin"})
    for ref_val in ("Resistant", "Intermediate", None):
        assert apply_cascade(rules, {"Cefazolin": ref_val}) == {}
    assert apply_cascade(rules, {"Cefazolin": "Susceptible"}) == {"Cefuroxime": "Susceptible"}


def test_sus_if_sus_accepts_ref_list():
    rules = _rules({"target": "Ertapenem", "rule": "sus_if_sus", "refs": ["Ceftriaxone", "Cefotaxime"]})
    assert apply_cascade(rules, {"Cefotaxime": "Susceptible"}) == {"Ertapenem": "Susceptible"}


def test_sus_if_any_sus():
    rules = _rules({"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone", "Cefazolin"]})
    assert apply_cascade(rules, {"Ceftriaxone": "Resistant", "Cefazolin": "Susceptible"}) == {"Cefepime": "Susceptible"}
    assert apply_cascade(rules, {"Ceftriaxone": "Resistant", "Cefazolin": "Intermediate"}) == {}


def test_sus_if_sus_else_res():
    rules = _rules({"target": "Doxycycline", "rule": "sus_if_sus_else_res", "ref": "Tetracycline"})
    assert apply_cascade(rules, {"Tetracycline": "Susceptible"}) == {"Doxycycline": "Susceptible"}
    assert apply_cascade(rules, {"Tetracycline": "Intermediate"}) == {"Doxycycline": "Resistant"}
    assert apply_cascade(rules, {"Tetracycline": "Resistant"}) == {"Doxycycline": "Resistant"}
    assert apply_cascade(rules, {}) == {}


def test_same_as_else_sus_if_sus():
    rules = _rules({"target": "Cefpodoxime", "rule": "same_as_else_sus_if_sus",
                    "primary": "Ceftriaxone", "fallback": "Cefazolin"})
    assert apply_cascade(rules, {"Ceftriaxone": "Resistant", "Cefazolin": "Susceptible"}) == {"Cefpodoxime": "Resistant"}
    assert apply_cascade(rules, {"Cefazolin": "Susceptible"}) == {"Cefpodoxime": "Susceptible"}
    assert apply_cascade(rules, {"Cefazolin": "Resistant"}) == {}


def test_user_value_never_overwritten_regardless_of_order():
    cascade = [
        {"target": "Cefepime", "rule": "sus_if_any_sus", "refs": ["Ceftriaxone"]},
        {"target": "Cefepime", "rule": "same_as", "ref": "Ceftriaxone"},
        {"target": "Doxycycline", "rule": "sus_if_sus_else_res", "ref": "Tetracycline"},
    ]
    user = {"Ceftriaxone": "Susceptible", "Cefepime": "Resistant", "Tetracycline": "Susceptible",
            "Doxycycline": "Intermediate"}
    for rules in (_rules(*cascade), _rules(*reversed(cascade))):
        inferred = apply_cascade(rules, user)
        assert "Cefepime" not in inferred
        assert "Doxycycline" not in inferred


def test_first_writer_wins_between_rules():
    rules = _rules(
        {"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"},
        {"target": "Cefotaxime", "rule": "sus_if_sus_else_res", "ref": "Cefazolin"},
    )
    assert apply_cascade(rules, {"Ceftriaxone": "Susceptible", "Cefazolin": "Resistant"}) == {
        "Cefotaxime": "Susceptible"
    }


def test_single_forward_pass():
    # B reads A before A is inferred, so B stays unset
    rules = _rules(
        {"target": "B", "rule": "same_as", "ref": "A"},
        {"target": "A", "rule": "same_as", "ref": "C"},
    )
    assert apply_cascade(rules, {"C": "Susceptible"}) == {"A": "Susceptible"}
    assert find_rule_order_issues(rules) == ["B reads A before it is inferred"]


def test_chained_rules_in_declared_order():
    rules = _rules(
        {"target": "A", "rule": "same_as", "ref": "C"},
        {"target": "B", "rule": "same_as", "ref": "A"},
    )
    assert apply_cascade(rules, {"C": "Resistant"}) == {"A": "Resistant", "B": "Resistant"}


def test_unknown_rule_kind_is_skipped():
    rules = _rules({"target": "X", "rule": "mystery", "ref": "Y"})
    assert apply_cascade(rules, {"Y": "Susceptible"}) == {}
    assert apply_cascade(None, {"Y": "Susceptible"}) == {}


def test_shipped_rules_respect_ordering_contract():
    for org, rules in RULES.items():
        assert find_rule_order_issues(rules) == [], org


def test_mirror_pair_not_reported():
    assert find_rule_order_issues(RULES["Acinetobacter baumannii complex"]) == []


def test_intrinsic_overrides_user_entry():
    out = consolidate(["Ampicillin", "Ceftriaxone"], {"Ampicillin": "Susceptible"}, _rules(intrinsic=["Ampicillin"]))
    assert out["final"]["Ampicillin"] == "Resistant"
    assert out["rows"] == [{"Antibiotic": "Ampicillin", "Result": "Resistant", "Source": "Intrinsic rule"}]


def test_intrinsic_overrides_inferred():
    rules = _rules({"target": "Ampicillin", "rule": "same_as", "ref": "Ceftriaxone"}, intrinsic=["Ampicillin"])
    out = consolidate(["Ampicillin", "Ceftriaxone"], {"Ceftriaxone": "Susceptible"}, rules)
    assert out["final"]["Ampicillin"] == "Resistant"
    assert out["rows"][0]["Source"] == "Intrinsic rule"


def test_intrinsic_outside_panel_still_in_final():
    out = consolidate(["Ceftriaxone"], {}, _rules(intrinsic=["Tigecycline"]))
    assert out["final"]["Tigecycline"] == "Resistant"
    assert out["rows"] == []
    assert out["intrinsic"] == ["Tigecycline"]


def test_user_entry_labelled_user_when_rule_would_fire():
    rules = _rules({"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"})
    out = consolidate(["Ceftriaxone", "Cefotaxime"], {"Ceftriaxone": "Susceptible", "Cefotaxime": "Resistant"}, rules)
    row = next(r for r in out["rows"] if r["Antibiotic"] == "Cefotaxime")
    assert row == {"Antibiotic": "Cefotaxime", "Result": "Resistant", "Source": "User-entered"}


def test_rows_follow_panel_order_and_skip_blanks():
    panel = get_panel("Escherichia coli")
    user = {"Levofloxacin": "Susceptible", "Ampicillin": "Resistant", "Gentamicin": None}
    out = consolidate(panel, user, get_rules("Escherichia coli"))
    assert [r["Antibiotic"] for r in out["rows"]] == ["Ampicillin", "Levofloxacin"]
    assert out["final"]["Gentamicin"] is None


def test_blank_strings_count_as_untested():
    rules = _rules({"target": "Cefotaxime", "rule": "same_as", "ref": "Ceftriaxone"})
    out = consolidate(["Ceftriaxone", "Cefotaxime"], {"Ceftriaxone": "Susceptible", "Cefotaxime": ""}, rules)
    assert out["final"]["Cefotaxime"] == "Susceptible"


def test_ecoli_panel_cascade():
    panel = get_panel("E. coli")
    user = {"Cefazolin": "Resistant", "Ceftriaxone": "Susceptible", "Ampicillin": "Resistant"}
    out = consolidate(panel, user, get_rules("E. coli"))
    assert out["inferred"]["Cefepime"] == "Susceptible"
    assert out["inferred"]["Ceftazidime"] == "Susceptible"
    assert "Cefoxitin" not in out["inferred"]


def test_unknown_organism_has_empty_rules():
    assert get_rules("Bacillus cereus") == {"intrinsic_resistance": [], "cascade": []}
    assert get_panel("Bacillus cereus") == []


@pytest.mark.parametrize("raw,canon", [
    ("  Escherichia coli  ", "Escherichia coli"),
    ("E. coli", "Escherichia coli"),
    ("Citrobacter freundii", "Citrobacter freundii complex"),
    ("Enterobacter aerogenes", "Klebsiella aerogenes"),
    ("PSEUDOMONAS AERUGINOSA", "Pseudomonas aeruginosa"),
    ("Some other bug", "Some other bug"),
])
def test_normalize_org(raw, canon):
    assert normalize_org(raw) == canon


def test_normalize_org_passes_non_strings():
    assert normalize_org(None) is None


def test_every_panel_has_rules():
    assert set(PANEL) == set(RULES)


def test_rows_frame():
    df = rows_frame([{"Antibiotic": "Ampicillin", "Result": "Resistant", "Source": "Intrinsic rule"}])
    assert list(df.columns) == ["Antibiotic", "Result", "Source"]
    assert df.iloc[0]["Source"] == "Intrinsic rule"
    assert rows_frame([]).empty
