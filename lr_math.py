import logging
import math
import numbers

import pandas as pd

from config import (
    AGG_LR_MAX,
    AGG_LR_MIN,
    FAGAN_POINTS,
    FAGAN_X_MAX,
    ITEM_LR_MAX,
    ITEM_LR_MIN,
    PRETEST_MAX,
    PRETEST_MIN,
    PROB_FLOOR,
)

logger = logging.getLogger(__name__)


# ======================
# Numeric primitives
# ======================
def clamp(n, lo, hi):
    return max(lo, min(hi, n))


def _is_number(x):
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


def prob_to_odds(p):
    if not _is_number(p) or math.isnan(p):
        p = PROB_FLOOR
    pp = clamp(p, PROB_FLOOR, 1 - PROB_FLOOR)
    return pp / (1 - pp)


def odds_to_prob(o):
    if not _is_number(o) or math.isnan(o):
        return 0.0
    if math.isinf(o):
        return 1.0 if o > 0 else 0.0
    oo = max(o, 0.0)
    return oo / (1 + oo)


def clamp_lr(lr, lo=ITEM_LR_MIN, hi=ITEM_LR_MAX):
    """Bound a likelihood ratio; anything non-finite or <= 0 counts as no evidence (1.0)."""
    if not _is_number(lr) or not math.isfinite(lr) or lr <= 0:
        return 1.0
    return clamp(float(lr), lo, hi)


# ======================
# Combining findings
# ======================
def lr_for_state(item: dict, state: str):
    """LR carried by ``item`` in ``state``, or None when that state is uninformative."""
    if state == "present" and item.get("lr_pos"):
        return item["lr_pos"]
    if state == "absent" and item.get("lr_neg"):
        return item["lr_neg"]
    return None


def combined_lr(items, states):
    lr = 1.0
    for it in items:
        use = lr_for_state(it, states.get(it["id"], "unknown"))
        if use is not None:
            lr *= clamp_lr(use)
    return clamp_lr(lr, AGG_LR_MIN, AGG_LR_MAX)


def post_test_prob(pretest_p, lr):
    pre_odds = prob_to_odds(pretest_p)
    post_odds = pre_odds * clamp_lr(lr, AGG_LR_MIN, AGG_LR_MAX)
    return odds_to_prob(post_odds)


def build_stepwise_path(pretest_p, ordered_ids, items_by_id, states):
    """
    Replay the odds update in the order findings were activated.

    Each step reports the LR actually applied (after per-item clamping) and
    the probability reached after it. Ids that are not in the catalog, or
    whose current state carries no LR, are skipped.
    """
    steps = []
    odds = prob_to_odds(pretest_p)

    for fid in ordered_ids:
        item = items_by_id.get(fid)
        if item is None:
            continue
        state = states.get(fid, "unknown")
        raw = lr_for_state(item, state)
        if raw is None:
            continue

        lr_used = clamp_lr(raw)
        odds *= lr_used
        steps.append({
            "id": fid,
            "label": item["label"],
            "lr_used": lr_used,
            "state": state,
            "p_after": odds_to_prob(odds),
        })

    return steps


def compute_posttest(pretest_p, items, states, order=None):
    """
    Posttest probability, combined LR and stepwise trace for one module.

    ``order`` is the click order; without it the trace follows catalog order
    of the findings that are currently active.
    """
    if order is None:
        order = [it["id"] for it in items if states.get(it["id"], "unknown") != "unknown"]
    lr = combined_lr(items, states)
    post = post_test_prob(pretest_p, lr)
    trace = build_stepwise_path(pretest_p, order, {it["id"]: it for it in items}, states)
    logger.debug("pretest=%.4f combined_lr=%.4f posttest=%.4f steps=%d", pretest_p, lr, post, len(trace))
    return {"posttest_p": post, "combined_lr": lr, "trace": trace}


# ======================
# Display helpers
# ======================
def format_pct(p):
    pp = clamp(p, 0.0, 1.0) * 100
    if pp < 10:
        return f"{pp:.1f}%"
    return f"{pp:.0f}%"


def fagan_curve(pretest_p, lr, x_max=FAGAN_X_MAX, n=FAGAN_POINTS):
    """Posttest probability as a function of pretest probability for a fixed combined LR."""
    pre = clamp(pretest_p, PRETEST_MIN, PRETEST_MAX)
    x_right = min(0.99, max(clamp(x_max, 0.05, 0.99), pre * 1.15))  # keep the current pretest in view
    xs = [x_right * i / n for i in range(n + 1)]
    ys = [post_test_prob(clamp(x, PRETEST_MIN, PRETEST_MAX), lr) for x in xs]
    return pd.DataFrame({"pretest": xs, "posttest": ys})
