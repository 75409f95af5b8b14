# thodemy/scoring/scoreboard.py
"""ScoreBoard aggregation and activity grading.

Scoreboard rows are flat ``(sheet, criterion_key)`` records. One activity
owns a meta row (``criterion_key == activity_key``) and one row per rubric
criterion. ``ScoreboardKey`` is the two-level identifier; the
``activity::rubric`` string only exists on persisted rows.
"""
import re
from dataclasses import dataclass, field
from enum import Enum

from .catalogue import (
    CRITERIA,
    CRITERION_KEYS,
    DEFAULT_SOURCE,
    KEY_SEPARATOR,
    META_CATEGORY,
    QUIZ_GRADES_SHEET,
    SCOREBOARD_SHEET,
    criterion_display_label,
    criterion_max_score,
)
from .normalize import convert_between_scales, normalize_to_five, to_number

DID_NOT_SUBMIT = "Did not submit"
_WHOLE_NUMBER = re.compile(r"^\d+$")


class ActivityStatus(Enum):
    GRADED = "graded"
    NOT_SUBMITTED = "not_submitted"
    UNGRADED = "ungraded"


class GradingError(ValueError):
    def __init__(self, criterion_key, message):
        super().__init__(message)
        self.criterion_key = criterion_key
        self.message = message


@dataclass(frozen=True)
class ScoreboardKey:
    activity_key: str
    rubric_key: str = None

    @classmethod
    def parse(cls, record):
        raw_key = str(getattr(record, "criterion_key", "") or "").strip()
        raw_category = str(getattr(record, "category", "") or "").strip()
        if KEY_SEPARATOR in raw_key:
            activity, rubric = raw_key.split(KEY_SEPARATOR, 1)
            return cls(activity or raw_key, rubric if rubric in CRITERION_KEYS else None)
        if raw_category in CRITERION_KEYS:
            return cls(raw_key, raw_category)
        return cls(raw_key, None)

    @property
    def criterion_key(self) -> str:
        if self.rubric_key:
            return f"{self.activity_key}{KEY_SEPARATOR}{self.rubric_key}"
        return self.activity_key


@dataclass
class ScoreboardActivity:
    activity_key: str
    label: str
    source: str = DEFAULT_SOURCE
    remarks: str = ""
    criteria_scores: dict = field(default_factory=dict)
    max_scores: dict = field(default_factory=dict)
    legacy_score: float = None
    entry_keys: list = field(default_factory=list)
    marked_status: str = None
    criteria_graded: int = 0
    criteria_average: float = None

    @property
    def is_complete(self) -> bool:
        return self.criteria_graded == len(CRITERIA)

    @property
    def status(self):
        if self.marked_status == ActivityStatus.NOT_SUBMITTED.value:
            return ActivityStatus.NOT_SUBMITTED
        if self.is_complete:
            return ActivityStatus.GRADED
        return ActivityStatus.UNGRADED

    def to_dict(self):
        return {
            "activity_key": self.activity_key,
            "label": self.label,
            "source": self.source,
            "remarks": self.remarks,
            "status": self.status.value,
            "criteria_scores": dict(self.criteria_scores),
            "max_scores": dict(self.max_scores),
            "legacy_score": self.legacy_score,
            "criteria_graded": self.criteria_graded,
            "criteria_average": self.criteria_average,
        }


def _empty_activity(activity_key, label, source):
    return ScoreboardActivity(
        activity_key=activity_key,
        label=label,
        source=source or DEFAULT_SOURCE,
        criteria_scores={c.key: None for c in CRITERIA},
        max_scores={c.key: c.max_score for c in CRITERIA},
    )


def scoreboard_records(scores):
    return [r for r in scores if r.sheet == SCOREBOARD_SHEET]


def aggregate_activities(scores):
    """Group scoreboard rows (from a store or any iterable of records) per activity."""
    activities = {}
    for entry in scoreboard_records(scores):
        key = ScoreboardKey.parse(entry)
        if not key.activity_key:
            continue
        activity = activities.get(key.activity_key)
        if activity is None:
            activity = _empty_activity(key.activity_key, entry.criterion_label or key.activity_key, entry.source)
            activities[key.activity_key] = activity

        activity.entry_keys.append(entry.criterion_key)
        if entry.criterion_label:
            activity.label = entry.criterion_label
        if entry.source and activity.source == DEFAULT_SOURCE:
            activity.source = entry.source
        if entry.remarks:
            activity.remarks = entry.remarks

        if key.rubric_key:
            template_max = criterion_max_score(key.rubric_key)
            stored_max = entry.max_score if entry.max_score and entry.max_score > 0 else template_max
            activity.criteria_scores[key.rubric_key] = convert_between_scales(entry.score, stored_max, template_max)
            activity.max_scores[key.rubric_key] = max(activity.max_scores.get(key.rubric_key) or 0, template_max)
            continue

        if entry.status:
            activity.marked_status = entry.status
        if entry.category != META_CATEGORY and entry.score is not None and activity.legacy_score is None:
            activity.legacy_score = entry.score

    result = list(activities.values())
    for activity in result:
        normalized = []
        for c in CRITERIA:
            raw = activity.criteria_scores.get(c.key)
            if raw is None:
                continue
            normalized.append(normalize_to_five(raw, activity.max_scores.get(c.key) or c.max_score))
        activity.criteria_graded = len(normalized)
        activity.criteria_average = sum(normalized) / len(normalized) if normalized else None

    result.sort(key=lambda a: str(a.label or "").lower())
    return result


def activity_records(scores, activity_key):
    """Every row belonging to one activity: scoreboard rows plus its quiz_grades row."""
    out = [r for r in scoreboard_records(scores) if ScoreboardKey.parse(r).activity_key == activity_key]
    out.extend(r for r in scores if r.sheet == QUIZ_GRADES_SHEET and r.criterion_key == activity_key)
    return out


def delete_activity(store, activity_key):
    """Remove an activity from the store. Returns ``(new_store, removed_records)``."""
    removed = activity_records(store, activity_key)
    for rec in removed:
        store = store.delete(rec.sheet, rec.criterion_key)
    return store, removed


def _check_activity_key(activity_key):
    key = str(activity_key or "").strip()
    if not key:
        raise GradingError(None, "Activity key is required.")
    if KEY_SEPARATOR in key:
        raise GradingError(None, f"Activity key must not contain '{KEY_SEPARATOR}'.")
    return key


def _meta_row(activity_key, label, remarks, status):
    return {
        "sheet": SCOREBOARD_SHEET,
        "criterion_key": activity_key,
        "criterion_label": label,
        "category": META_CATEGORY,
        "score": None,
        "max_score": 5,
        "remarks": remarks or None,
        "source": DEFAULT_SOURCE,
        "status": status.value,
    }


def _rubric_row(activity_key, label, criterion, score, remarks):
    return {
        "sheet": SCOREBOARD_SHEET,
        "criterion_key": ScoreboardKey(activity_key, criterion.key).criterion_key,
        "criterion_label": label,
        "category": criterion.key,
        "score": score,
        "max_score": criterion.max_score,
        "remarks": remarks or None,
        "source": DEFAULT_SOURCE,
    }


def _blank(value):
    return value is None or str(value).strip() == ""


def validate_grade(scores):
    """Check a grading draft; returns ``{criterion_key: int}`` or raises GradingError."""
    scores = scores or {}
    missing = [c for c in CRITERIA if _blank(scores.get(c.key))]
    if missing:
        first = missing[0]
        raise GradingError(
            first.key,
            f"Complete all criteria before applying ({len(missing)} missing, first: {criterion_display_label(first)}).",
        )
    out = {}
    for c in CRITERIA:
        raw = str(scores.get(c.key)).strip()
        if isinstance(scores.get(c.key), bool) or not _WHOLE_NUMBER.match(raw):
            raise GradingError(c.key, f"Score for {criterion_display_label(c)} must be a whole number (0-{c.max_score}).")
        value = int(raw)
        if value < 0 or value > c.max_score:
            raise GradingError(c.key, f"Score for {criterion_display_label(c)} must be between 0 and {c.max_score}.")
        out[c.key] = value
    return out


def build_grade_rows(activity_key, label, scores, remarks=None):
    activity_key = _check_activity_key(activity_key)
    label = label or activity_key
    values = validate_grade(scores)
    rows = [_meta_row(activity_key, label, remarks, ActivityStatus.GRADED)]
    rows.extend(_rubric_row(activity_key, label, c, values[c.key], remarks) for c in CRITERIA)
    return rows


def build_not_submitted_rows(activity_key, label, remarks=None):
    activity_key = _check_activity_key(activity_key)
    label = label or activity_key
    trimmed = str(remarks or "").strip()
    note = f"{DID_NOT_SUBMIT} - {trimmed}" if trimmed else DID_NOT_SUBMIT
    rows = [_meta_row(activity_key, label, note, ActivityStatus.NOT_SUBMITTED)]
    rows.extend(_rubric_row(activity_key, label, c, 0, note) for c in CRITERIA)
    return rows


def grade_activity(store, activity_key, label, scores, remarks=None):
    return store.upsert_many(build_grade_rows(activity_key, label, scores, remarks))


def mark_not_submitted(store, activity_key, label, remarks=None):
    return store.upsert_many(build_not_submitted_rows(activity_key, label, remarks))


def existing_grade_draft(activity):
    """Whole-number draft values for re-opening a graded activity ('' when unset or out of range)."""
    draft = {}
    for c in CRITERIA:
        raw = to_number(activity.criteria_scores.get(c.key))
        if raw is None:
            draft[c.key] = ""
            continue
        rounded = int(round(raw))
        draft[c.key] = str(rounded) if 0 <= rounded <= c.max_score else ""
    return draft
