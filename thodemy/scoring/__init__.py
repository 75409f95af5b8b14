# thodemy/scoring/__init__.py
from .catalogue import CATEGORIES, CRITERIA, WeightProfile, get_criterion
from .normalize import convert_between_scales, normalize_activity_score, normalize_to_five
from .quiz import QuizScoreError, apply_quiz_score, compute_quiz_equivalent, compute_quiz_rating
from .rollup import Rollup, adjectival_rating, category_score, overall_score
from .scoreboard import (
    ActivityStatus,
    GradingError,
    ScoreboardKey,
    aggregate_activities,
    delete_activity,
    grade_activity,
    mark_not_submitted,
)
from .store import ScoreRecord, ScoreStore

__all__ = [
    "ActivityStatus",
    "CATEGORIES",
    "CRITERIA",
    "GradingError",
    "QuizScoreError",
    "Rollup",
    "ScoreRecord",
    "ScoreStore",
    "ScoreboardKey",
    "WeightProfile",
    "adjectival_rating",
    "aggregate_activities",
    "apply_quiz_score",
    "category_score",
    "compute_quiz_equivalent",
    "compute_quiz_rating",
    "convert_between_scales",
    "delete_activity",
    "get_criterion",
    "grade_activity",
    "mark_not_submitted",
    "normalize_activity_score",
    "normalize_to_five",
    "overall_score",
]
