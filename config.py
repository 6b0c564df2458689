"""
ProbID / MechID configuration
=============================
Clamping bounds for the likelihood-ratio engine, pretest defaults, and
logging setup for the Streamlit front end.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = str(Path(__file__).resolve().parent)

load_dotenv()

# --- Probability / odds ---
PROB_FLOOR = 1e-6  # p is kept inside [PROB_FLOOR, 1 - PROB_FLOOR] before odds

# --- Likelihood-ratio bounds ---
# Single finding: limits how far one item can move the estimate
ITEM_LR_MIN = 0.05
ITEM_LR_MAX = 20.0
# Product of all findings: limits stacking of correlated evidence
AGG_LR_MIN = 0.001
AGG_LR_MAX = 1000.0

# --- Pretest ---
PRETEST_MIN = 0.001
PRETEST_MAX = 0.999
DEFAULT_PRETEST = 0.05  # used when a module ships no presets

# --- Fagan curve ---
FAGAN_X_MAX = 0.30
FAGAN_POINTS = 140

# --- Logging ---
LOG_LEVEL = os.environ.get("PROBID_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level=None):
    """Attach one stream handler to the root logger (idempotent across Streamlit reruns)."""
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)
    if not any(getattr(h, "_probid", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._probid = True
        root.addHandler(handler)
    return root
