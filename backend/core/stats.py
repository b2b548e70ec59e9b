"""
stats.py - Descriptive statistics shared by every analytical view.

Computes:
- Mean, pass rate, population standard deviation
- Mode (first value to reach the top frequency)
- Coefficient of variation
- Pearson correlation (scipy.stats.pearsonr)

None of these raise: degenerate inputs (empty series, zero variance) give 0.
"""

import dataclasses
from typing import Dict, Optional, Sequence

import numpy as np
from scipy import stats as sp_stats

PASS_MARK = 10.0


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else v
    except (TypeError, ValueError):
        return None


def sanitize(obj):
    """Recursively coerce records and numpy scalars to JSON-safe Python types."""
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return sanitize(dataclasses.asdict(obj))
    if isinstance(obj, dict):
        return {k: sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        return _safe_float(obj)
    return obj


# ── Core statistics ─────────────────────────────────────────────────

def average(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def pass_percentage(values: Sequence[float], threshold: float = PASS_MARK) -> float:
    """Share of values at or above ``threshold``, as a percentage."""
    if len(values) == 0:
        return 0.0
    passed = int(np.count_nonzero(np.asarray(values, dtype=float) >= threshold))
    return passed / len(values) * 100


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=0))


def mode(values: Sequence[float]) -> float:
    """
    Most frequent value. On a tie the winner is the value that reached the
    top frequency first while scanning left to right.
    """
    if len(values) == 0:
        return 0.0
    frequency: Dict[float, int] = {}
    best = values[0]
    best_count = 0
    for value in values:
        frequency[value] = frequency.get(value, 0) + 1
        if frequency[value] > best_count:
            best_count = frequency[value]
            best = value
    return best


def coefficient_of_variation(avg: float, std_dev: float) -> float:
    """
    std_dev / avg as a percentage. A zero mean gives 0, which also hides a
    non-zero spread around a zero mean.
    """
    if avg == 0:
        return 0.0
    return std_dev / avg * 100


def correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """
    Pearson correlation of index-aligned pairs.

    Callers pass only pairs where both values exist. Mismatched or empty
    series, and series without variance, give 0.
    """
    if len(xs) != len(ys) or len(xs) == 0:
        return 0.0
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0
    r = _safe_float(sp_stats.pearsonr(x, y)[0])
    return 0.0 if r is None else max(-1.0, min(1.0, r))


def correlation_strength(r: float) -> str:
    """Qualitative label used next to a correlation coefficient."""
    magnitude = abs(r)
    if magnitude >= 0.7:
        return "strong"
    if magnitude >= 0.3:
        return "moderate"
    if magnitude > 0:
        return "weak"
    return "none"
