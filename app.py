import streamlit as st
import pandas as pd

from config import configure_logging
from lr_math import compute_posttest, fagan_curve, format_pct
from lr_selection import (
    is_disabled_by_group,
    new_session,
    pretest_for,
    set_finding_state,
    toggle_target,
)
from lr_syndromes import PROBID_MODULES, get_module, group_items_by_family
from mechid_mechanisms import annotate, collect_references
from mechid_rules import GNR_CANON, SIR_CHOICES, consolidate, get_panel, get_rules, rows_frame

configure_logging()

st.set_page_config(page_title="ProbID + MechID", page_icon="🧫", layout="centered")


def badge(text, bg="#1f6f4a", fg="#ffffff"):
    return (
        f"<span style='display:inline-block;padding:0.12rem 0.45rem;border-radius:999px;"
        f"font-size:0.7rem;font-weight:600;background:{bg};color:{fg};margin-right:0.4rem;"
        f"text-transform:uppercase;'>{text}</span>"
    )


def card(kind, text, border, bg, fg="#ffffff"):
    st.markdown(f"""
    <div style="border-left:4px solid {border}; padding:0.4rem 0.6rem; margin-bottom:0.4rem;">
    {badge(kind, bg=bg, fg=fg)} {text}
    </div>
    """, unsafe_allow_html=True)


# ======================
# ProbID: likelihood-ratio workbench
# ======================
def probid_page():
    st.title("ProbID")
    st.caption("Pretest probability × likelihood ratios → posttest probability. Educational aid, not a guideline.")

    module_id = st.selectbox(
        "Clinical syndrome", [m["id"] for m in PROBID_MODULES],
        format_func=lambda mid: get_module(mid)["name"], key="probid_module",
    )
    module = get_module(module_id)

    session = st.session_state.get("probid")
    if session is None or session["module_id"] != module["id"]:
        session = new_session(module)
        st.session_state["probid"] = session

    if module.get("description"):
        st.caption(module["description"])

    presets = module["pretest_presets"]
    preset_ids = [p["id"] for p in presets]
    labels = {p["id"]: f"{p['label']} ({round(p['p'] * 100)}%)" for p in presets}
    session["preset_id"] = st.radio(
        "Location / setting (pretest)", preset_ids,
        index=preset_ids.index(session["preset_id"]) if session["preset_id"] in preset_ids else 0,
        format_func=labels.get, key=f"preset_{module['id']}",
    )
    pretest_p = pretest_for(module, session["preset_id"])

    query = st.text_input("Filter findings", key=f"q_{module['id']}")
    items = module["items"]
    for family, fam_items in group_items_by_family(module, query).items():
        st.subheader(family)
        for it in fam_items:
            state = session["states"].get(it["id"], "unknown")
            disabled = is_disabled_by_group(items, session["states"], it)
            lr_text = f"LR+ {it.get('lr_pos', '—')} / LR− {it.get('lr_neg', '—')}"
            cols = st.columns([5, 1, 1])
            cols[0].markdown(f"**{it['label']}**  \n<small>{lr_text}</small>", unsafe_allow_html=True)
            for col, target, text in ((cols[1], "present", "Present"), (cols[2], "absent", "Absent")):
                pressed = col.button(
                    ("✓ " if state == target else "") + text,
                    key=f"{it['id']}_{target}", disabled=disabled,
                )
                if pressed:
                    session["states"], session["order"] = set_finding_state(
                        items, session["states"], session["order"], it["id"], toggle_target(state, target)
                    )
                    st.rerun()

    result = compute_posttest(pretest_p, items, session["states"], session["order"])

    st.divider()
    st.metric("Post-test probability", format_pct(result["posttest_p"]),
              help=f"Pretest {format_pct(pretest_p)} • Combined LR {result['combined_lr']:.2f}")
    st.caption("LR stacking assumes conditional independence; correlated findings overstate certainty.")

    st.subheader("Stepwise update")
    if result["trace"]:
        lines = [f"Start (pretest): **{format_pct(pretest_p)}**"]
        for i, step in enumerate(result["trace"], 1):
            sign = "LR+" if step["state"] == "present" else "LR−"
            lines.append(f"{i}. {step['label']} ({sign} {step['lr_used']:.2f}) → **{format_pct(step['p_after'])}**")
        st.markdown("\n\n".join(lines))
    else:
        st.write("Select findings to see the probability update step by step.")

    st.subheader("Fagan curve")
    st.line_chart(fagan_curve(pretest_p, result["combined_lr"]), x="pretest", y="posttest")

    if st.button("Reset selections"):
        st.session_state["probid"] = new_session(module)
        # keyed widgets keep their value across reruns unless dropped
        st.session_state.pop(f"preset_{module['id']}", None)
        st.session_state.pop(f"q_{module['id']}", None)
        st.rerun()


# ======================
# MechID: antibiogram interpretation
# ======================
def mechid_page():
    st.title("🧪 MechID")
    st.caption("Enter results only for antibiotics actually tested. Intrinsic and cascade rules fill in the rest.")

    organism = st.selectbox("Organism", sorted(GNR_CANON), key="gnr_org")
    panel = get_panel(organism)
    rules = get_rules(organism)
    intrinsic = rules.get("intrinsic_resistance", [])

    user = {}
    choices = [""] + list(SIR_CHOICES)
    for i, ab in enumerate(panel):
        if ab in intrinsic:
            st.selectbox(f"{ab} (intrinsic)", choices, index=3, key=f"ab_{organism}_{i}", disabled=True,
                         help="Intrinsic resistance by rule for this organism")
            user[ab] = None
        else:
            val = st.selectbox(ab, choices, index=0, key=f"ab_{organism}_{i}")
            user[ab] = val if val else None

    if intrinsic:
        st.info("**Intrinsic resistance to:** " + ", ".join(intrinsic))

    out = consolidate(panel, user, rules)

    st.subheader("Consolidated results")
    if out["rows"]:
        st.dataframe(rows_frame(out["rows"]), use_container_width=True)
    else:
        st.write("No results yet. Enter at least one result above.")

    notes = annotate(organism, out["final"])
    st.subheader("Mechanism of resistance")
    if notes["mechanisms"]:
        for m in notes["mechanisms"]:
            card("Mechanism", m, "#c62828", "#c62828")
    else:
        st.success("No major resistance mechanism identified based on current inputs.")
    for b in notes["banners"]:
        card("Caution", b, "#f9a825", "#f9a825", fg="#000000")
    for g in notes["favorable"]:
        card("Favorable", g, "#2e7d32", "#2e7d32")

    st.subheader("Therapy guidance")
    if notes["therapy"]:
        for t in notes["therapy"]:
            card("Therapy", t, "#00838f", "#00838f")
    else:
        st.caption("No specific guidance triggered yet; enter more susceptibilities.")

    refs = collect_references(organism, notes["mechanisms"], notes["banners"])
    if refs:
        st.subheader("📚 References")
        st.dataframe(pd.DataFrame({"Reference": refs}), use_container_width=True, hide_index=True)

    st.caption("Heuristic output; confirm with phenotypic/molecular tests per your lab policy.")


tool = st.sidebar.radio("Tool", ["ProbID", "MechID"], key="tool")
if tool == "ProbID":
    probid_page()
else:
    mechid_page()
