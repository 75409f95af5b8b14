# thodemy/scoring/quiz.py
from .catalogue import META_CATEGORY, QUIZ_GRADES_SHEET, SCOREBOARD_SHEET
from .normalize import clamp, to_number

RATING_LABELS = {
    0: "Failed",
    1: "Not yet capable",
    2: "Some capability",
    3: "Needs improvement",
    4: "Capable",
    5: "Expert",
}

# upper bounds (inclusive) of each rating bucket; anything above the last is 5
_RATING_BOUNDS = ((0, 0), (60, 1), (70, 2), (85, 3), (96, 4))


class QuizScoreError(ValueError):
    pass


def compute_quiz_equivalent(raw_score, total_items):
    """Map a raw quiz score onto the 50-100 equivalent scale (0 when nothing was scored)."""
    score = to_number(raw_score)
    total = to_number(total_items)
    if score is None or total is None or total <= 0:
        return None
    if score <= 0:
        return 0
    return (score / total) * 50 + 50


def compute_quiz_rating(equivalent) -> int:
    eq = to_number(equivalent)
    if eq is None:
        return 0
    for bound, rating in _RATING_BOUNDS:
        if eq <= bound:
            return rating
    return 5


def rating_label(rating) -> str:
    return RATING_LABELS.get(rating, "N/A")


def equivalent_to_five(equivalent):
    eq = to_number(equivalent)
    if eq is None:
        return None
    return clamp((eq / 100) * 5, 0, 5)


def quiz_grade_records(scores):
    out = [r for r in scores if r.sheet == QUIZ_GRADES_SHEET]
    out.sort(key=lambda r: str(r.criterion_label or "").lower())
    return out


def quiz_grades_average(scores):
    """Average equivalent over every quiz_grades row with a usable total, or None."""
    equivalents = [compute_quiz_equivalent(r.score, r.max_score) for r in quiz_grade_records(scores)]
    equivalents = [e for e in equivalents if e is not None]
    if not equivalents:
        return None
    return sum(equivalents) / len(equivalents)


def build_quiz_score_rows(criterion_key, label, score, total_items):
    """Rows for a quiz entry: raw score on quiz_grades, 0-5 equivalent on the scoreboard."""
    raw = to_number(score)
    total = to_number(total_items)
    if raw is None or raw < 0:
        raise QuizScoreError("Score must be a non-negative number.")
    if total is None or total <= 0:
        raise QuizScoreError("Total items must be greater than zero.")
    key = str(criterion_key or "").strip()
    if not key:
        raise QuizScoreError("Quiz key is required.")
    normalized = equivalent_to_five(compute_quiz_equivalent(raw, total))
    return [
        {
            "sheet": QUIZ_GRADES_SHEET,
            "criterion_key": key,
            "criterion_label": label or key,
            "category": None,
            "score": raw,
            "max_score": total,
            "weight": None,
            "source": "manual",
        },
        {
            "sheet": SCOREBOARD_SHEET,
            "criterion_key": key,
            "criterion_label": label or key,
            "category": META_CATEGORY,
            "score": round(normalized, 3),
            "max_score": 5,
            "source": "manual",
        },
    ]


def apply_quiz_score(store, criterion_key, label, score, total_items):
    rows = build_quiz_score_rows(criterion_key, label, score, total_items)
    for row in rows:
        store = store.delete(row["sheet"], row["criterion_key"])
    return store.upsert_many(rows)
