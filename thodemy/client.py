"""HTTP client for the evaluation API and an editing workspace on top of it.

``EvaluationWorkspace`` buffers score edits in a ScoreStore and only talks
to the server on load, save, auto-populate, export and delete.
"""
import logging
import re
from urllib.parse import quote

import requests

from .scoring import ScoreStore, Rollup, aggregate_activities
from .scoring import apply_quiz_score as _apply_quiz_score
from .scoring import delete_activity as _delete_activity
from .scoring import grade_activity as _grade_activity
from .scoring import mark_not_submitted as _mark_not_submitted

logger = logging.getLogger(__name__)

_FILENAME_RE = re.compile(r'filename="?([^";]+)"?')


class ApiError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(resp, fallback):
    try:
        body = resp.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback


class EvaluationClient:
    def __init__(self, base_url, session=None, timeout=None):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, fallback, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(fallback) from e
        if resp.status_code >= 400:
            message = _error_message(resp, fallback)
            logger.warning("%s %s returned %s: %s", method, path, resp.status_code, message)
            raise ApiError(message, resp.status_code)
        return resp

    def _evaluation_path(self, evaluation_id, suffix=""):
        return f"/api/admin/evaluations/{evaluation_id}{suffix}"

    def login(self, email, password):
        resp = self._request("POST", "/api/auth/login", "Unable to sign in.", json={"email": email, "password": password})
        return resp.json()["user"]

    def list_evaluations(self, user_id=None, status=None):
        params = {k: v for k, v in (("userId", user_id), ("status", status)) if v}
        return self._request("GET", "/api/admin/evaluations", "Unable to load evaluations.", params=params).json()

    def get_evaluation(self, evaluation_id):
        return self._request("GET", self._evaluation_path(evaluation_id), "Unable to load evaluation.").json()

    def create_evaluation(self, user_id, learning_path_id=None, trainee_info=None, period_start=None, period_end=None):
        body = {"userId": user_id}
        if learning_path_id is not None:
            body["learningPathId"] = learning_path_id
        if trainee_info is not None:
            body["traineeInfo"] = trainee_info
        if period_start is not None:
            body["periodStart"] = period_start
        if period_end is not None:
            body["periodEnd"] = period_end
        return self._request("POST", "/api/admin/evaluations", "Unable to create evaluation.", json=body).json()

    def update_evaluation(self, evaluation_id, **updates):
        return self._request("PATCH", self._evaluation_path(evaluation_id), "Unable to update evaluation.", json=updates).json()

    def delete_evaluation(self, evaluation_id):
        self._request("DELETE", self._evaluation_path(evaluation_id), "Unable to delete evaluation.")

    def upsert_scores(self, evaluation_id, scores):
        return self._request(
            "POST", self._evaluation_path(evaluation_id, "/scores"), "Unable to save scores.", json={"scores": scores}
        ).json()

    def get_scores(self, evaluation_id, sheet=None):
        params = {"sheet": sheet} if sheet else {}
        return self._request("GET", self._evaluation_path(evaluation_id, "/scores"), "Unable to load scores.", params=params).json()

    def delete_score(self, evaluation_id, sheet, criterion_key):
        path = self._evaluation_path(evaluation_id, f"/scores/{quote(sheet, safe='')}/{quote(criterion_key, safe='')}")
        return self._request("DELETE", path, "Unable to delete scoreboard entry.").json()

    def auto_populate(self, evaluation_id):
        return self._request("POST", self._evaluation_path(evaluation_id, "/auto-populate"), "Unable to auto-populate scores.").json()

    def export(self, evaluation_id):
        """Returns ``(bytes, filename)``."""
        resp = self._request("GET", self._evaluation_path(evaluation_id, "/export.xlsx"), "Unable to export evaluation.")
        match = _FILENAME_RE.search(resp.headers.get("Content-Disposition", ""))
        filename = match.group(1) if match else f"evaluation_{evaluation_id}.xlsx"
        return resp.content, filename


class EvaluationWorkspace:
    def __init__(self, client, evaluation_id):
        self.client = client
        self.evaluation_id = evaluation_id
        self.evaluation = None
        self.store = ScoreStore()

    def load(self):
        self.evaluation = self.client.get_evaluation(self.evaluation_id)
        self.store = ScoreStore.from_scores(self.evaluation.get("scores") or [])
        return self.evaluation

    def _persisted_keys(self):
        scores = (self.evaluation or {}).get("scores") or []
        return {(s.get("sheet"), s.get("criterion_key")) for s in scores}

    # local edits

    def get(self, sheet, key):
        return self.store.get(sheet, key)

    def get_remarks(self, sheet, key):
        return self.store.get_remarks(sheet, key)

    def set_score(self, sheet, key, value, extra=None):
        self.store = self.store.set_score(sheet, key, value, extra)

    def set_remarks(self, sheet, key, remarks):
        self.store = self.store.set_remarks(sheet, key, remarks)

    def activities(self):
        return aggregate_activities(self.store)

    def grade_activity(self, activity_key, label, scores, remarks=None):
        # raises GradingError before the store is touched
        self.store = _grade_activity(self.store, activity_key, label, scores, remarks)

    def mark_not_submitted(self, activity_key, label, remarks=None):
        self.store = _mark_not_submitted(self.store, activity_key, label, remarks)

    def apply_quiz_score(self, quiz_key, label, score, total_items):
        self.store = _apply_quiz_score(self.store, quiz_key, label, score, total_items)

    def summary(self):
        return Rollup(self.store).summary()

    # server round-trips

    def save_all(self):
        result = self.client.upsert_scores(self.evaluation_id, self.store.to_payload())
        self.load()
        return result

    def auto_populate(self):
        result = self.client.auto_populate(self.evaluation_id)
        self.load()
        return result

    def export(self):
        if len(self.store):
            self.save_all()
        return self.client.export(self.evaluation_id)

    def delete_activity(self, activity_key):
        """Remove an activity locally, then on the server; local state is restored if the server call fails."""
        previous = self.store
        self.store, removed = _delete_activity(self.store, activity_key)
        if not removed:
            return 0
        persisted = self._persisted_keys()
        to_delete = [r for r in removed if r.key in persisted]
        if not to_delete:
            return len(removed)
        try:
            for rec in to_delete:
                self.client.delete_score(self.evaluation_id, rec.sheet, rec.criterion_key)
        except ApiError:
            self.store = previous
            raise
        self.load()
        return len(removed)
