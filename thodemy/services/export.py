"""Evaluation workbook export.

The workbook is generated from scratch with openpyxl; every number on it
comes from the same rollups the API summary uses.
"""
import re
from datetime import date
from io import BytesIO

from flask import current_app
from openpyxl import Workbook
from openpyxl.styles import Font

from ..scoring import Rollup, ScoreStore
from ..scoring.catalogue import (
    BEHAVIORAL_CRITERIA,
    BEHAVIORAL_SHEET,
    BOOTCAMP_FEEDBACK_SHEET,
    CATEGORIES,
    CRITERIA,
    PERFORMANCE_FEEDBACK_SHEET,
    PROFILE_WEIGHTS,
    QUIZ_GRADES_SHEET,
    TECHNICAL_CRITERIA,
    TECHNICAL_SHEET,
    WeightProfile,
)
from ..scoring.normalize import average, round_to
from ..scoring.quiz import compute_quiz_equivalent, compute_quiz_rating, quiz_grade_records, rating_label
from ..scoring.rollup import adjectival_band
from ..scoring.scoreboard import aggregate_activities
from .evaluations import get_evaluation

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
ENDORSEMENT_THRESHOLD = 86
BEHAVIORAL_MAX_TOTAL = 75
UNKNOWN_USER = "Unknown User"

_BOLD = Font(bold=True)


def safe_file_token(name):
    token = re.sub(r"[^A-Za-z0-9\s_-]", " ", str(name or ""))
    token = re.sub(r"\s+", "_", token).strip()
    return token


def export_filename(trainee_name, today=None):
    day = (today or date.today()).isoformat()
    return f"{safe_file_token(trainee_name) or 'evaluation'}_evaluation_{day}.xlsx"


def _format_date(value):
    if not value:
        return ""
    return str(value)[:10]


def covered_period(start, end):
    if start and end:
        return f"{_format_date(start)} - {_format_date(end)}"
    return _format_date(start or end)


def _header(ws, *titles):
    ws.append(list(titles))
    for cell in ws[ws.max_row]:
        cell.font = _BOLD


def _remarks(store, sheet, key):
    return store.get_remarks(sheet, key)


def _is_lab_activity(store, activity):
    if activity.activity_key.startswith("quiz_"):
        return False
    return store.get_record(QUIZ_GRADES_SHEET, activity.activity_key) is None


def _scoreboard_sheet(wb, store):
    ws = wb.create_sheet("ScoreBoard")
    activities = [a for a in aggregate_activities(store) if _is_lab_activity(store, a)]
    _header(ws, "Activity Key", "Activity", *[f"{c.key} (/{c.max_score})" for c in CRITERIA], "Average (/5)", "Status", "Remarks")
    averages = [average(a.criteria_scores.get(c.key) for a in activities) for c in CRITERIA]
    ws.append(["", "Criterion average", *[round_to(v) if v is not None else None for v in averages], None, None, None])
    for a in activities:
        values = [round_to(a.criteria_scores[c.key]) if a.criteria_scores.get(c.key) is not None else None for c in CRITERIA]
        avg = round_to(a.criteria_average) if a.criteria_average is not None else None
        ws.append([a.activity_key, a.label, *values, avg, a.status.value, a.remarks])
    return ws


def _quiz_sheet(wb, store):
    ws = wb.create_sheet("Quiz Grades")
    _header(ws, "Quiz Key", "Quiz", "Score", "Total Items", "Equivalent", "Rating", "Rating Label")
    equivalents = []
    for rec in quiz_grade_records(store):
        eq = compute_quiz_equivalent(rec.score, rec.max_score)
        rating = compute_quiz_rating(eq)
        if eq is not None:
            equivalents.append(eq)
        ws.append([
            rec.criterion_key,
            rec.criterion_label or rec.criterion_key,
            rec.score,
            rec.max_score,
            round_to(eq) if eq is not None else None,
            rating,
            rating_label(rating),
        ])
    avg = average(equivalents)
    ws.append(["", "Average equivalent", None, None, round_to(avg) if avg is not None else None, None, None])
    return ws


def _scorecard_sheet(wb, store, rollup):
    ws = wb.create_sheet("BootCamp ScoreCard")
    weights = PROFILE_WEIGHTS[WeightProfile.BOOTCAMP]
    _header(ws, "Category", "Criterion", "Item Weight", "Score (/5)", "Category Weight", "Contribution (%)")
    for cat in CATEGORIES:
        ws.append([cat.letter, cat.label, None, None, None, None])
        for item in cat.criteria:
            score = rollup.criterion(item.key)
            ws.append(["", item.label, item.weight, round_to(score) if score is not None else None, None, None])
        cat_score = rollup.category_scores[cat.letter]
        ws.append(["", f"{cat.letter} average", None, round_to(cat_score), weights[cat.letter],
                   round_to((cat_score / 5) * weights[cat.letter])])
    total = rollup.bootcamp
    ws.append(["", "TOTAL", None, None, 100, round_to(total)])
    ws.append(["", "For endorsement", "Yes" if total >= ENDORSEMENT_THRESHOLD else "No", None, None, None])

    feedback = store.records(BOOTCAMP_FEEDBACK_SHEET)
    if feedback:
        ws.append([])
        _header(ws, "Endorsement Feedback", "Remarks")
        for rec in sorted(feedback, key=lambda r: r.criterion_key):
            ws.append([rec.criterion_label or rec.criterion_key, rec.remarks or ""])
    return ws


def _performance_sheet(wb, store, rollup):
    ws = wb.create_sheet("Performance Evaluation")
    weights = PROFILE_WEIGHTS[WeightProfile.PERFORMANCE]
    _header(ws, "Category", "Label", "Weight", "Score (/5)", "Contribution (%)", "Strength", "Improvement")
    for cat in CATEGORIES:
        score = rollup.category_scores[cat.letter]
        ws.append([
            cat.letter,
            cat.label,
            weights[cat.letter],
            round_to(score),
            round_to((score / 5) * weights[cat.letter]),
            _remarks(store, PERFORMANCE_FEEDBACK_SHEET, f"cat_{cat.letter}_strength"),
            _remarks(store, PERFORMANCE_FEEDBACK_SHEET, f"cat_{cat.letter}_improvement"),
        ])
    ws.append(["", "TOTAL", 100, None, round_to(rollup.performance), None, None])
    return ws


def technical_rows(store):
    """(key, label, weight, score, weighted percent) per technical criterion."""
    rows = []
    for key, label, weight in TECHNICAL_CRITERIA:
        score = store.get(TECHNICAL_SHEET, key)
        weighted = (score / 5) * weight * 100 if score is not None else 0
        rows.append((key, label, weight, score, weighted))
    return rows


def _technical_sheet(wb, store):
    ws = wb.create_sheet("Technical Evaluation")
    _header(ws, "Key", "Criterion", "Weight", "Score (/5)", "Weighted (%)")
    rows = technical_rows(store)
    for key, label, weight, score, weighted in rows:
        ws.append([key, label, weight, score, round_to(weighted)])
    ws.append(["", "TOTAL", round_to(sum(r[2] for r in rows)), None, round_to(sum(r[4] for r in rows))])
    return ws


def behavioral_total(store):
    return sum(store.get(BEHAVIORAL_SHEET, key) or 0 for key, _ in BEHAVIORAL_CRITERIA)


def _behavioral_sheet(wb, store):
    ws = wb.create_sheet("Behavioral Evaluation")
    _header(ws, "Key", "Criterion", "Score (/5)", "Remarks")
    for key, label in BEHAVIORAL_CRITERIA:
        ws.append([key, label, store.get(BEHAVIORAL_SHEET, key), _remarks(store, BEHAVIORAL_SHEET, key)])
    total = behavioral_total(store)
    ws.append(["", "TOTAL", round_to(total), None])
    ws.append(["", "Weighted score (/5)", round_to((total / BEHAVIORAL_MAX_TOTAL) * 5), None])
    return ws


def _summary_sheet(wb, evaluation, rollup, exported_by, today):
    ws = wb.create_sheet("Performance Summary")
    info = evaluation.get("trainee_info") or {}
    overall = rollup.overall
    adjectival, interpretation, recommendation = adjectival_band(overall)
    rows = [
        ("Name", (evaluation.get("trainee_name") or UNKNOWN_USER).upper()),
        ("Department", str(info.get("department") or "").upper()),
        ("Position", str(info.get("position") or "TRAINEE").upper()),
        ("Trainer", str(info.get("trainer") or "").upper()),
        ("Covered Period", covered_period(evaluation.get("period_start"), evaluation.get("period_end"))),
        ("Bootcamp (%)", round_to(rollup.bootcamp)),
        ("Performance (%)", round_to(rollup.performance)),
        ("Overall (%)", round_to(overall)),
        ("Adjectival Rating", adjectival),
        ("Interpretation", interpretation),
        ("Recommendation", recommendation),
        ("Exported By", exported_by or ""),
        ("Date", today.isoformat()),
    ]
    for label, value in rows:
        ws.append([label, value])
        ws.cell(row=ws.max_row, column=1).font = _BOLD
    return ws


def build_workbook(evaluation, exported_by=None, today=None):
    """Workbook for an evaluation dict as returned by ``get_evaluation``."""
    today = today or date.today()
    store = ScoreStore.from_scores(evaluation.get("scores") or [])
    rollup = Rollup(store)

    wb = Workbook()
    wb.remove(wb.active)
    _summary_sheet(wb, evaluation, rollup, exported_by, today)
    _scoreboard_sheet(wb, store)
    _quiz_sheet(wb, store)
    _scorecard_sheet(wb, store, rollup)
    _performance_sheet(wb, store, rollup)
    _technical_sheet(wb, store)
    _behavioral_sheet(wb, store)
    return wb


def build_export(evaluation_id, exported_by=None, today=None):
    """Returns ``(BytesIO, filename)`` for the evaluation's workbook."""
    today = today or date.today()
    evaluation = get_evaluation(evaluation_id)
    wb = build_workbook(evaluation, exported_by=exported_by, today=today)
    bio = BytesIO()
    wb.save(bio)
    bio.seek(0)
    filename = export_filename(evaluation.get("trainee_name"), today)
    current_app.logger.info("Exported evaluation %s as %s", evaluation_id, filename)
    return bio, filename
