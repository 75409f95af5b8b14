import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from io import BytesIO
from urllib.parse import urlsplit

import openpyxl
import pytest

from thodemy.client import ApiError, EvaluationClient, EvaluationWorkspace
from thodemy.scoring import GradingError
from thodemy.scoring.catalogue import CRITERIA, QUIZ_GRADES_SHEET, SCOREBOARD_SHEET
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD

BASE_URL = "http://testserver"


class FakeResponse:
    """Just enough of requests.Response on top of a Flask test response."""

    def __init__(self, resp):
        self.status_code = resp.status_code
        self.content = resp.data
        self.headers = resp.headers
        self._json = resp.get_json(silent=True)

    def json(self):
        if self._json is None:
            raise ValueError("response is not JSON")
        return self._json


class FakeSession:
    def __init__(self, test_client):
        self.test_client = test_client
        self.calls = []

    def request(self, method, url, timeout=None, params=None, json=None):
        path = urlsplit(url).path
        self.calls.append((method, path))
        resp = self.test_client.open(path, method=method, query_string=params or {}, json=json)
        return FakeResponse(resp)


@pytest.fixture
def api(client):
    return EvaluationClient(BASE_URL + "/", session=FakeSession(client))


@pytest.fixture
def signed_in(api):
    api.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    return api


@pytest.fixture
def workspace(signed_in, trainee_id):
    evaluation_id = signed_in.create_evaluation(trainee_id, trainee_info={"department": "Engineering"})["id"]
    ws = EvaluationWorkspace(signed_in, evaluation_id)
    ws.load()
    return ws


def test_error_message_comes_from_body(api):
    with pytest.raises(ApiError) as exc:
        api.list_evaluations()
    assert exc.value.status_code == 401
    assert exc.value.message == "Authentication required"


def test_login_returns_user(api):
    user = api.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert user["email"] == ADMIN_EMAIL


def test_missing_evaluation(signed_in):
    with pytest.raises(ApiError) as exc:
        signed_in.get_evaluation(9999)
    assert exc.value.status_code == 404


def test_workspace_grade_save_and_summary(workspace, full_marks):
    assert len(workspace.store) == 0
    workspace.grade_activity("lab1", "Lab One", full_marks, remarks="solid")
    assert workspace.get(SCOREBOARD_SHEET, "lab1::a1_teamwork") == 20
    assert workspace.summary()["overall_percent"] == 100

    workspace.save_all()
    assert len(workspace.evaluation["scores"]) == len(CRITERIA) + 1
    assert workspace.evaluation["summary"]["overall_percent"] == 100
    [activity] = workspace.activities()
    assert activity.activity_key == "lab1"
    assert activity.is_complete


def test_workspace_rejects_incomplete_grade(workspace, full_marks):
    del full_marks["g2_respect"]
    with pytest.raises(GradingError):
        workspace.grade_activity("lab1", "Lab One", full_marks)
    assert len(workspace.store) == 0


def test_workspace_quiz_score(workspace):
    workspace.apply_quiz_score("quiz_1", "Week 1", 8, 10)
    assert workspace.get(QUIZ_GRADES_SHEET, "quiz_1") == 8
    assert workspace.get(SCOREBOARD_SHEET, "quiz_1") == 4.5
    workspace.save_all()
    assert workspace.get(QUIZ_GRADES_SHEET, "quiz_1") == 8
    assert workspace.summary()["categories"][4]["score"] == 4.5


def test_workspace_export_flushes_edits(workspace):
    workspace.set_score("technical", "te_system_design", 5)
    content, filename = workspace.export()
    assert filename.startswith("Tina_Trainee_evaluation_")
    assert workspace.get("technical", "te_system_design") == 5
    wb = openpyxl.load_workbook(BytesIO(content))
    assert "Technical Evaluation" in wb.sheetnames


def test_workspace_delete_activity(workspace, full_marks):
    workspace.grade_activity("lab1", "Lab One", full_marks)
    workspace.save_all()
    assert workspace.delete_activity("lab1") == len(CRITERIA) + 1
    keys = {(s["sheet"], s["criterion_key"]) for s in workspace.evaluation["scores"]}
    assert keys == set()
    assert workspace.delete_activity("missing") == 0


def test_workspace_delete_activity_rolls_back(workspace, full_marks, monkeypatch):
    workspace.grade_activity("lab1", "Lab One", full_marks)
    workspace.save_all()
    before = workspace.store

    def fail(*args, **kwargs):
        raise ApiError("Unable to delete scoreboard entry.", 500)

    monkeypatch.setattr(workspace.client, "delete_score", fail)
    with pytest.raises(ApiError):
        workspace.delete_activity("lab1")
    assert workspace.store == before
    assert workspace.get(SCOREBOARD_SHEET, "lab1::b1_efficiency") == 25


def test_workspace_delete_unsaved_activity_skips_server(workspace, full_marks):
    workspace.grade_activity("lab3", "Lab Three", full_marks)
    calls = len(workspace.client.session.calls)
    assert workspace.delete_activity("lab3") == len(CRITERIA) + 1
    assert len(workspace.client.session.calls) == calls
    assert len(workspace.store) == 0
