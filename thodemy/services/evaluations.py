"""Evaluation CRUD, score persistence and auto-population.

Routes stay thin: every operation here raises an ``AppError`` subclass on
bad input and commits its own session work.
"""
from datetime import date, datetime

from flask import current_app

from ..errors import BadRequestError, NotFoundError, ValidationError
from ..extensions import db
from ..models import (
    ActivitySubmission,
    Evaluation,
    EvaluationScore,
    LearningPath,
    Quiz,
    QuizScore,
    User,
)
from ..models.evaluation import STATUSES
from ..scoring import ScoreStore, Rollup
from ..scoring.catalogue import (
    DEFAULT_MAX_SCORE,
    DEFAULT_SOURCE,
    QUIZ_GRADES_SHEET,
    SCOREBOARD_SHEET,
    SOURCES,
)
from ..scoring.normalize import clamp, normalize_activity_score, normalize_to_five, round_to, to_number
from ..scoring.scoreboard import (
    ActivityStatus,
    activity_records,
    build_grade_rows,
    build_not_submitted_rows,
)

UPDATABLE_FIELDS = ("status", "trainee_info", "period_start", "period_end", "learning_path_id", "evaluator_id")
_STATUS_VALUES = {s.value for s in ActivityStatus}


def _display_name(user):
    return user.display_name if user else ""


def _get_or_404(evaluation_id):
    evaluation = db.session.get(Evaluation, evaluation_id)
    if evaluation is None:
        raise NotFoundError("Evaluation not found")
    return evaluation


def _parse_date(value, field):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD).", details={"field": field})


def _parse_int(value, field):
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer.", details={"field": field})


def _parse_trainee_info(value):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError("trainee_info must be an object.", details={"field": "trainee_info"})
    return value


# evaluations

def list_evaluations(user_id=None, status=None):
    query = Evaluation.query
    if user_id:
        query = query.filter(Evaluation.user_id == _parse_int(user_id, "userId"))
    if status:
        query = query.filter(Evaluation.status == status)
    evaluations = query.order_by(Evaluation.created_at.desc(), Evaluation.id.desc()).all()

    user_ids = {e.user_id for e in evaluations} | {e.evaluator_id for e in evaluations if e.evaluator_id}
    users = {u.id: u for u in User.query.filter(User.id.in_(user_ids)).all()} if user_ids else {}
    path_ids = {e.learning_path_id for e in evaluations if e.learning_path_id}
    paths = {p.id: p for p in LearningPath.query.filter(LearningPath.id.in_(path_ids)).all()} if path_ids else {}

    out = []
    for e in evaluations:
        trainee = users.get(e.user_id)
        path = paths.get(e.learning_path_id)
        row = e.to_dict()
        row.update(
            trainee_name=_display_name(trainee),
            trainee_email=trainee.email if trainee else "",
            evaluator_name=_display_name(users.get(e.evaluator_id)),
            learning_path_title=path.title if path else "",
        )
        out.append(row)
    return out


def get_evaluation(evaluation_id):
    evaluation = _get_or_404(evaluation_id)
    scores = get_scores(evaluation_id)
    trainee = db.session.get(User, evaluation.user_id)
    out = evaluation.to_dict()
    out.update(
        scores=scores,
        trainee_name=_display_name(trainee),
        trainee_email=trainee.email if trainee else "",
        summary=Rollup(ScoreStore.from_scores(scores)).summary(),
    )
    return out


def create_evaluation(data, evaluator_id=None):
    data = data or {}
    user_id = _parse_int(data.get("userId") or data.get("user_id"), "userId")
    if not user_id:
        raise BadRequestError("userId is required.")
    if db.session.get(User, user_id) is None:
        raise NotFoundError("Trainee not found")

    learning_path_id = _parse_int(data.get("learningPathId") or data.get("learning_path_id"), "learningPathId")
    if learning_path_id and db.session.get(LearningPath, learning_path_id) is None:
        raise NotFoundError("Learning path not found")

    evaluation = Evaluation(
        user_id=user_id,
        learning_path_id=learning_path_id,
        evaluator_id=evaluator_id,
        status="draft",
        trainee_info=_parse_trainee_info(data.get("traineeInfo", data.get("trainee_info"))),
        period_start=_parse_date(data.get("periodStart") or data.get("period_start"), "periodStart"),
        period_end=_parse_date(data.get("periodEnd") or data.get("period_end"), "periodEnd"),
    )
    db.session.add(evaluation)
    db.session.commit()
    current_app.logger.info("Created evaluation %s for user %s", evaluation.id, user_id)
    return {"id": evaluation.id}


def update_evaluation(evaluation_id, updates):
    evaluation = _get_or_404(evaluation_id)
    updates = updates or {}
    ignored = sorted(k for k in updates if k not in UPDATABLE_FIELDS)
    if ignored:
        current_app.logger.warning("Ignoring non-updatable evaluation fields: %s", ", ".join(ignored))
    if "status" in updates:
        if updates["status"] not in STATUSES:
            raise BadRequestError(f"Invalid status. Expected one of: {', '.join(STATUSES)}.")
        evaluation.status = updates["status"]
    if "trainee_info" in updates:
        evaluation.trainee_info = _parse_trainee_info(updates["trainee_info"])
    if "period_start" in updates:
        evaluation.period_start = _parse_date(updates["period_start"], "period_start")
    if "period_end" in updates:
        evaluation.period_end = _parse_date(updates["period_end"], "period_end")
    if "learning_path_id" in updates:
        evaluation.learning_path_id = _parse_int(updates["learning_path_id"], "learning_path_id")
    if "evaluator_id" in updates:
        evaluation.evaluator_id = _parse_int(updates["evaluator_id"], "evaluator_id")
    evaluation.updated_at = datetime.utcnow()
    db.session.commit()
    return {"id": evaluation.id, "status": evaluation.status, "updated_at": evaluation.updated_at.isoformat()}


def delete_evaluation(evaluation_id):
    evaluation = _get_or_404(evaluation_id)
    db.session.delete(evaluation)
    db.session.commit()
    current_app.logger.info("Deleted evaluation %s", evaluation_id)


# scores

def _normalize_score_input(row):
    sheet = str(row.get("sheet") or "").strip()
    criterion_key = str(row.get("criterion_key") or "").strip()
    if not sheet or not criterion_key:
        return None
    max_score = to_number(row.get("max_score"))
    safe_max = max_score if max_score and max_score > 0 else DEFAULT_MAX_SCORE
    score = to_number(row.get("score"))
    status = row.get("status")
    return {
        "sheet": sheet,
        "category": row.get("category") or None,
        "criterion_key": criterion_key,
        "criterion_label": row.get("criterion_label") or None,
        "score": None if score is None else clamp(score, 0, safe_max),
        "max_score": safe_max,
        "weight": to_number(row.get("weight")),
        "remarks": row.get("remarks") or None,
        "source": row.get("source") if row.get("source") in SOURCES else DEFAULT_SOURCE,
        "source_ref_id": str(row["source_ref_id"]) if row.get("source_ref_id") not in (None, "") else None,
        "status": status if isinstance(status, str) and status in _STATUS_VALUES else None,
    }


def upsert_scores(evaluation_id, scores):
    _get_or_404(evaluation_id)
    if not isinstance(scores, list):
        raise BadRequestError("Scores payload must be an array.")

    deduped = {}
    skipped = 0
    for row in scores:
        values = _normalize_score_input(row) if isinstance(row, dict) else None
        if values is None:
            skipped += 1
            continue
        deduped[(values["sheet"], values["criterion_key"])] = values
    if skipped:
        current_app.logger.warning("Skipped %s score rows without sheet/criterion_key (evaluation %s)", skipped, evaluation_id)
    if not deduped:
        return []

    existing = {
        (s.sheet, s.criterion_key): s
        for s in EvaluationScore.query.filter_by(evaluation_id=evaluation_id).all()
    }
    saved = []
    for key, values in deduped.items():
        record = existing.get(key)
        if record is None:
            record = EvaluationScore(evaluation_id=evaluation_id)
            db.session.add(record)
        for field, value in values.items():
            setattr(record, field, value)
        saved.append(record)
    db.session.commit()
    return [{"id": r.id, "sheet": r.sheet, "criterion_key": r.criterion_key, "score": r.score} for r in saved]


def get_scores(evaluation_id, sheet=None):
    query = EvaluationScore.query.filter_by(evaluation_id=evaluation_id)
    if sheet:
        query = query.filter_by(sheet=sheet)
    query = query.order_by(EvaluationScore.sheet, EvaluationScore.category, EvaluationScore.criterion_key)
    return [s.to_dict() for s in query.all()]


def delete_score(evaluation_id, sheet, criterion_key):
    sheet = str(sheet or "").strip()
    criterion_key = str(criterion_key or "").strip()
    if not sheet or not criterion_key:
        raise BadRequestError("Both sheet and criterion key are required.")
    deleted = EvaluationScore.query.filter_by(
        evaluation_id=evaluation_id, sheet=sheet, criterion_key=criterion_key
    ).delete()
    db.session.commit()
    return {"deleted": bool(deleted)}


# scoreboard

def grade_activity(evaluation_id, activity_key, label, scores, remarks=None):
    """Upsert the meta row and every rubric row for one graded activity.

    Raises GradingError when the draft is incomplete or out of range.
    """
    rows = build_grade_rows(activity_key, label, scores, remarks)
    return upsert_scores(evaluation_id, rows)


def mark_not_submitted(evaluation_id, activity_key, label, remarks=None):
    rows = build_not_submitted_rows(activity_key, label, remarks)
    return upsert_scores(evaluation_id, rows)


def delete_activity(evaluation_id, activity_key):
    _get_or_404(evaluation_id)
    activity_key = str(activity_key or "").strip()
    if not activity_key:
        raise BadRequestError("Activity key is required.")
    store = ScoreStore.from_scores(get_scores(evaluation_id))
    removed = activity_records(store, activity_key)
    for rec in removed:
        EvaluationScore.query.filter_by(
            evaluation_id=evaluation_id, sheet=rec.sheet, criterion_key=rec.criterion_key
        ).delete()
    db.session.commit()
    current_app.logger.info("Deleted activity %s (%s rows) from evaluation %s", activity_key, len(removed), evaluation_id)
    return {"deleted": len(removed)}


# auto-populate

def _latest_by(rows, key_fn, ts_fn):
    latest = {}
    for row in rows:
        key = key_fn(row)
        current = latest.get(key)
        if current is None or (ts_fn(row) or datetime.min) > (ts_fn(current) or datetime.min):
            latest[key] = row
    return list(latest.values())


def _scoped_course_ids(evaluation):
    if not evaluation.learning_path_id:
        return None
    path = db.session.get(LearningPath, evaluation.learning_path_id)
    if path is None:
        return None
    return path.course_id_set() or None


def _quiz_rows(user_id):
    default_max = current_app.config.get("DEFAULT_QUIZ_MAX_SCORE", 100)
    attempts = _latest_by(
        QuizScore.query.filter_by(user_id=user_id).all(),
        lambda qs: qs.quiz_id,
        lambda qs: qs.submitted_at,
    )
    by_quiz = {qs.quiz_id: qs for qs in attempts}
    rows = []
    for quiz in Quiz.query.order_by(Quiz.id).all():
        attempt = by_quiz.get(quiz.id)
        raw = (to_number(attempt.score) or 0) if attempt else 0
        total_items = to_number(quiz.total_questions) or to_number(quiz.max_score) or default_max
        label = quiz.title or f"Quiz {quiz.id}"
        ref = str(attempt.id) if attempt else None
        common = {
            "category": None,
            "criterion_key": f"quiz_{quiz.id}",
            "criterion_label": label,
            "weight": None,
            "source": "auto_quiz",
            "source_ref_id": ref,
        }
        rows.append(dict(common, sheet=SCOREBOARD_SHEET, max_score=5,
                         score=round_to(normalize_to_five(raw, quiz.max_score or default_max) or 0)))
        rows.append(dict(common, sheet=QUIZ_GRADES_SHEET, max_score=total_items, score=raw))
    return rows


def _activity_rows(user_id, scoped_course_ids):
    submissions = _latest_by(
        ActivitySubmission.query.filter_by(user_id=user_id).all(),
        lambda s: s.activity_id or s.id,
        lambda s: s.reviewed_at or s.updated_at,
    )
    rows = []
    for sub in submissions:
        if scoped_course_ids and sub.course_id and str(sub.course_id) not in scoped_course_ids:
            continue
        normalized = normalize_activity_score(sub.score)
        if normalized is None:
            continue
        rows.append({
            "sheet": SCOREBOARD_SHEET,
            "category": None,
            "criterion_key": f"activity_{sub.activity_id or sub.id}",
            "criterion_label": sub.title or f"Activity {sub.activity_id or sub.id}",
            "score": round_to(normalized),
            "max_score": 5,
            "weight": None,
            "source": "auto_activity",
            "source_ref_id": str(sub.id),
        })
    return rows


def auto_populate(evaluation_id):
    """Derive scoreboard and quiz_grades rows from the trainee's quizzes and activities.

    Rows the admin entered manually are never overwritten.
    """
    evaluation = _get_or_404(evaluation_id)
    populated = _quiz_rows(evaluation.user_id) + _activity_rows(evaluation.user_id, _scoped_course_ids(evaluation))
    if not populated:
        return {"count": 0, "scores": []}

    manual = {
        (s.sheet, s.criterion_key)
        for s in EvaluationScore.query.filter_by(evaluation_id=evaluation_id, source="manual").all()
    }
    to_upsert = [p for p in populated if (p["sheet"], p["criterion_key"]) not in manual]
    if to_upsert:
        upsert_scores(evaluation_id, to_upsert)
    current_app.logger.info("Auto-populated %s rows for evaluation %s", len(to_upsert), evaluation_id)
    return {"count": len(to_upsert), "scores": to_upsert}

