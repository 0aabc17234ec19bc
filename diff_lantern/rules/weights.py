"""Fixed risk weights and thresholds.

These constants define the one canonical ruleset; nothing overrides them at
runtime.
"""

from __future__ import annotations

RISK_WEIGHTS: dict[str, int] = {
    "ci_failing": 35,
    "sensitive_path": 25,
    "loc_medium": 10,
    "loc_large": 20,
    "no_tests": 20,
    "high_churn": 10,
    "high_complexity": 10,
    "dependency_change": 15,
    "workflow_insecurity": 40,
}

LOC_MEDIUM_THRESHOLD = 100
LOC_LARGE_THRESHOLD = 500

CHURN_THRESHOLD = 70
COMPLEXITY_THRESHOLD = 5

# Inclusive upper bounds; anything above DARK_MAX is "cursed".
BRIGHT_MAX = 20
DIM_MAX = 50
DARK_MAX = 80

MAX_SCORE = 100
