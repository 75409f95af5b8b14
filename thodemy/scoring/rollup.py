# thodemy/scoring/rollup.py
"""Category, profile and overall rollups over a set of score records.

Everything here is a pure function of the records passed in (a ScoreStore
or any iterable of ScoreRecord), so the same numbers come out of the
client workspace, the service summary and the spreadsheet export.
"""
from .catalogue import (
    CATEGORIES,
    CATEGORY_LETTERS,
    PROFILE_WEIGHTS,
    SUMMATIVE_CRITERION,
    WeightProfile,
    get_category,
)
from .normalize import clamp, normalize_to_five
from .quiz import equivalent_to_five, quiz_grades_average
from .scoreboard import scoreboard_records


# (lower bound in percent, adjectival, interpretation, recommendation)
ADJECTIVAL_BANDS = (
    (91, "OUTSTANDING", "Exceeds expectations across all areas.", "FOR ENDORSEMENT"),
    (86, "SATISFACTORY", "Meets baseline expectations.", "FOR ENDORSEMENT"),
    (71, "NEEDS IMPROVEMENT", "Close to target but needs focused improvement.", "FOR COACHING"),
    (61, "UNSATISFACTORY", "Below target and needs immediate intervention.", "FOR IMPROVEMENT PLAN"),
)
_POOR = ("POOR", "Consistently failed to expectations.", "FOR IMPROVEMENT PLAN")


def _entries_for(scores, criterion_key):
    # rubric rows carry the criterion in category; legacy rows use it as the key
    return [e for e in scoreboard_records(scores) if e.category == criterion_key or e.criterion_key == criterion_key]


def criterion_score(scores, criterion_key):
    """Resolved 0-5 score for one criterion, or None when nothing contributes.

    The summative criterion comes from the quiz_grades average when there is
    one and falls back to scoreboard entries otherwise.
    """
    if criterion_key == SUMMATIVE_CRITERION:
        quiz_avg = quiz_grades_average(scores)
        if quiz_avg is not None:
            return equivalent_to_five(quiz_avg)

    normalized = [normalize_to_five(e.score, e.max_score) for e in _entries_for(scores, criterion_key)]
    normalized = [n for n in normalized if n is not None]
    if not normalized:
        return None
    return sum(normalized) / len(normalized)


def category_score(scores, letter) -> float:
    category = get_category(letter)
    if category is None:
        return 0
    total_weighted = 0
    total_weight = 0
    for item in category.criteria:
        score = criterion_score(scores, item.key)
        if score is None:
            continue
        total_weighted += score * item.weight
        total_weight += item.weight
    if total_weight <= 0:
        return 0
    return clamp(total_weighted / total_weight, 0, 5)


def profile_percent(scores, profile=WeightProfile.BOOTCAMP) -> float:
    weights = PROFILE_WEIGHTS[WeightProfile(profile)]
    return sum((category_score(scores, letter) / 5) * weights.get(letter, 0) for letter in CATEGORY_LETTERS)


def bootcamp_percent(scores) -> float:
    return profile_percent(scores, WeightProfile.BOOTCAMP)


def performance_percent(scores) -> float:
    return profile_percent(scores, WeightProfile.PERFORMANCE)


def overall_score(scores) -> float:
    return (bootcamp_percent(scores) + performance_percent(scores)) / 2


def adjectival_band(percent):
    """(adjectival, interpretation, recommendation) for an overall percent."""
    value = percent or 0
    for lower, adjectival, interpretation, recommendation in ADJECTIVAL_BANDS:
        if value >= lower:
            return adjectival, interpretation, recommendation
    return _POOR


def adjectival_rating(percent) -> str:
    return adjectival_band(percent)[0]


class Rollup:
    """Snapshot of every rollup for one set of records.

    Category scores are computed once on construction; use a new Rollup
    after the records change.
    """

    def __init__(self, scores):
        self.scores = list(scores)
        self.category_scores = {letter: category_score(self.scores, letter) for letter in CATEGORY_LETTERS}

    def criterion(self, key):
        return criterion_score(self.scores, key)

    def percent(self, profile):
        weights = PROFILE_WEIGHTS[WeightProfile(profile)]
        return sum((self.category_scores[letter] / 5) * weights.get(letter, 0) for letter in CATEGORY_LETTERS)

    @property
    def bootcamp(self):
        return self.percent(WeightProfile.BOOTCAMP)

    @property
    def performance(self):
        return self.percent(WeightProfile.PERFORMANCE)

    @property
    def overall(self):
        return (self.bootcamp + self.performance) / 2

    def summary(self):
        overall = self.overall
        adjectival, interpretation, recommendation = adjectival_band(overall)
        return {
            "categories": [
                {
                    "category": c.letter,
                    "label": c.label,
                    "score": round(self.category_scores[c.letter], 4),
                    "bootcamp_weight": PROFILE_WEIGHTS[WeightProfile.BOOTCAMP][c.letter],
                    "performance_weight": PROFILE_WEIGHTS[WeightProfile.PERFORMANCE][c.letter],
                }
                for c in CATEGORIES
            ],
            "bootcamp_percent": round(self.bootcamp, 2),
            "performance_percent": round(self.performance, 2),
            "overall_percent": round(overall, 2),
            "adjectival": adjectival,
            "interpretation": interpretation,
            "recommendation": recommendation,
        }
