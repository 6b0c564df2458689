"""
Finding selection: toggling, group exclusivity, click order and session reset.
"""

from lr_selection import (
    active_ids,
    is_disabled_by_group,
    new_session,
    pretest_for,
    set_finding_state,
    toggle_target,
)
from lr_syndromes import CAP_MODULE, CDI_MODULE, ENDO_MODULE

CAP_ITEMS = CAP_MODULE["items"]
CDI_ITEMS = CDI_MODULE["items"]


def _click(items, states, order, fid, clicked):
    return set_finding_state(items, states, order, fid, toggle_target(states.get(fid, "unknown"), clicked))


def test_toggle_target():
    assert toggle_target("unknown", "present") == "present"
    assert toggle_target("present", "present") == "unknown"
    assert toggle_target("present", "absent") == "absent"


def test_activation_appends_to_order():
    states, order = set_finding_state(CAP_ITEMS, {}, [], "cap_fever", "present")
    states, order = set_finding_state(CAP_ITEMS, states, order, "cap_rr", "absent")
    assert states == {"cap_fever": "present", "cap_rr": "absent"}
    assert order == ["cap_fever", "cap_rr"]


def test_reactivation_moves_to_end():
    states, order = set_finding_state(CAP_ITEMS, {}, [], "cap_fever", "present")
    states, order = set_finding_state(CAP_ITEMS, states, order, "cap_rr", "present")
    states, order = set_finding_state(CAP_ITEMS, states, order, "cap_fever", "absent")
    assert order == ["cap_rr", "cap_fever"]


def test_toggle_cycle_keeps_single_entry():
    states, order = {}, []
    states, order = _click(CAP_ITEMS, states, order, "cap_cough", "present")
    states, order = _click(CAP_ITEMS, states, order, "cap_fever", "present")
    states, order = _click(CAP_ITEMS, states, order, "cap_fever", "absent")
    states, order = _click(CAP_ITEMS, states, order, "cap_fever", "absent")  # back to unknown
    assert states["cap_fever"] == "unknown"
    assert order == ["cap_cough"]
    states, order = _click(CAP_ITEMS, states, order, "cap_rr", "present")
    states, order = _click(CAP_ITEMS, states, order, "cap_fever", "present")
    assert order == ["cap_cough", "cap_rr", "cap_fever"]
    assert order.count("cap_fever") == 1


def test_group_exclusivity_is_atomic():
    states, order = set_finding_state(CAP_ITEMS, {}, [], "cap_cxr_not_done", "present")
    states, order = set_finding_state(CAP_ITEMS, states, order, "cap_fever", "present")
    new_states, new_order = set_finding_state(CAP_ITEMS, states, order, "cap_cxr_consolidation", "present")
    assert new_states["cap_cxr_not_done"] == "unknown"
    assert new_states["cap_cxr_consolidation"] == "present"
    assert new_order == ["cap_fever", "cap_cxr_consolidation"]
    # inputs untouched
    assert states["cap_cxr_not_done"] == "present"
    assert order == ["cap_cxr_not_done", "cap_fever"]


def test_group_never_has_two_active_members():
    states, order = {}, []
    for fid in ["cdi_naat_neg", "cdi_naat_pos_tox_pos", "cdi_test_na", "cdi_naat_pos_tox_neg"]:
        states, order = set_finding_state(CDI_ITEMS, states, order, fid, "present")
        active_in_group = [i for i in active_ids(CDI_ITEMS, states)
                           if next(it for it in CDI_ITEMS if it["id"] == i).get("group") == "cdi_test"]
        assert active_in_group == [fid]
        assert order == [fid]


def test_deactivating_grouped_member_leaves_siblings_alone():
    states, order = set_finding_state(CAP_ITEMS, {}, [], "cap_cxr_consolidation", "present")
    states, order = set_finding_state(CAP_ITEMS, states, order, "cap_cxr_consolidation", "unknown")
    assert states.get("cap_cxr_not_done", "unknown") == "unknown"
    assert order == []


def test_order_only_holds_active_ids():
    states, order = {}, []
    for fid, s in [("cap_fever", "present"), ("cap_rr", "absent"), ("cap_fever", "unknown"),
                   ("cap_cxr_not_done", "present"), ("cap_cxr_consolidation", "absent")]:
        states, order = set_finding_state(CAP_ITEMS, states, order, fid, s)
        assert len(order) == len(set(order))
        assert set(order) == set(active_ids(CAP_ITEMS, states))


def test_unknown_target_or_state_is_ignored():
    states, order = {"cap_fever": "present"}, ["cap_fever"]
    assert set_finding_state(CAP_ITEMS, states, order, "nope", "present") == (states, order)
    assert set_finding_state(CAP_ITEMS, states, order, "cap_fever", "maybe") == (states, order)


def test_is_disabled_by_group():
    states = {"cap_cxr_consolidation": "absent"}
    by_id = {it["id"]: it for it in CAP_ITEMS}
    assert is_disabled_by_group(CAP_ITEMS, states, by_id["cap_cxr_not_done"])
    assert not is_disabled_by_group(CAP_ITEMS, states, by_id["cap_cxr_consolidation"])
    assert not is_disabled_by_group(CAP_ITEMS, states, by_id["cap_fever"])


def test_new_session_resets_to_first_preset():
    session = new_session(ENDO_MODULE)
    assert session == {"module_id": "endo", "preset_id": "endo_very_low", "states": {}, "order": []}
    assert new_session(ENDO_MODULE, "endo_mod")["preset_id"] == "endo_mod"
    assert new_session(ENDO_MODULE, "bogus")["preset_id"] == "endo_very_low"


def test_pretest_for():
    assert pretest_for(CAP_MODULE, "ed_adult") == 0.10
    assert pretest_for(CAP_MODULE, "missing") == 0.05
    assert pretest_for({"id": "empty", "pretest_presets": [], "items": []}) == 0.05
    assert pretest_for({"id": "x", "pretest_presets": [{"id": "a", "label": "a", "p": 0.0}], "items": []}) == 0.001
