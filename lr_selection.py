import logging

from config import DEFAULT_PRETEST, PRETEST_MAX, PRETEST_MIN
from lr_math import clamp
from lr_syndromes import get_preset

logger = logging.getLogger(__name__)

FINDING_STATES = ("present", "absent", "unknown")


def toggle_target(current, clicked):
    """State after clicking ``clicked``: the active state toggles back to unknown."""
    if clicked == current:
        return "unknown"
    return clicked


def set_finding_state(items, states, order, target_id, next_state):
    """
    Move one finding to ``next_state`` and return ``(states, order)``.

    Activating a grouped finding resets every other member of its group to
    unknown and drops them from the click order in the same update. The click
    order only ever holds active ids, most recent activation last. Inputs are
    not mutated.
    """
    by_id = {it["id"]: it for it in items}
    target = by_id.get(target_id)
    if target is None or next_state not in FINDING_STATES:
        logger.debug("ignored transition %r -> %r", target_id, next_state)
        return dict(states), list(order)

    group = target.get("group")
    activating = next_state != "unknown"

    new_states = dict(states)
    new_states[target_id] = next_state
    if group and activating:
        for other in items:
            if other["id"] != target_id and other.get("group") == group:
                new_states[other["id"]] = "unknown"

    base = list(order)
    if group and activating:
        base = [fid for fid in base if by_id.get(fid, {}).get("group") != group]

    if activating:
        new_order = [fid for fid in base if fid != target_id] + [target_id]
    else:
        new_order = [fid for fid in base if fid != target_id]

    return new_states, new_order


def is_disabled_by_group(items, states, item):
    """True when another member of ``item``'s group is already present/absent."""
    group = item.get("group")
    if not group:
        return False
    for other in items:
        if other.get("group") == group and states.get(other["id"], "unknown") != "unknown":
            return other["id"] != item["id"]
    return False


def active_ids(items, states):
    return [it["id"] for it in items if states.get(it["id"], "unknown") != "unknown"]


def pretest_for(module, preset_id=None):
    preset = get_preset(module, preset_id)
    p = preset["p"] if preset else DEFAULT_PRETEST
    return clamp(p, PRETEST_MIN, PRETEST_MAX)


def new_session(module, preset_id=None):
    """Fresh per-syndrome state: nothing selected, first (or requested) preset."""
    preset = get_preset(module, preset_id)
    return {
        "module_id": module["id"],
        "preset_id": preset["id"] if preset else None,
        "states": {},
        "order": [],
    }
