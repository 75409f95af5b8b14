# thodemy/scoring/normalize.py
import math

from .catalogue import DEFAULT_MAX_SCORE


def to_number(value):
    """Coerce a loose value (str/int/float/None) to float, or None."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    return n if math.isfinite(n) else None


def clamp(value, lo, hi):
    return min(max(value, lo), hi)


def round_to(value, places=2):
    n = to_number(value)
    if n is None:
        return 0
    return round(n, places)


def effective_max(max_score):
    m = to_number(max_score)
    return m if m is not None and m > 0 else DEFAULT_MAX_SCORE


def normalize_to_five(score, max_score=None):
    """Map score/max_score onto 0-5. None means ungraded; <=0 maps to 0."""
    s = to_number(score)
    if s is None:
        return None
    return clamp((s / effective_max(max_score)) * 5, 0, 5)


def convert_between_scales(score, from_max, to_max):
    normalized = normalize_to_five(score, from_max)
    if normalized is None:
        return None
    return (normalized / 5) * effective_max(to_max)


def normalize_activity_score(raw_score):
    """Bucket a legacy activity score (out of 5/10/20/50/100) onto 0-5."""
    s = to_number(raw_score)
    if s is None:
        return None
    for bound in (5, 10, 20, 50):
        if s <= bound:
            return clamp(s if bound == 5 else (s / bound) * 5, 0, 5)
    return clamp((s / 100) * 5, 0, 5)


def average(values):
    nums = [n for n in (to_number(v) for v in values) if n is not None]
    if not nums:
        return None
    return sum(nums) / len(nums)
