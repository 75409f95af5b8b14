import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from io import BytesIO

import openpyxl
import pytest

from thodemy.scoring.catalogue import CRITERIA
from conftest import TRAINEE_EMAIL, TRAINEE_PASSWORD

BASE = "/api/admin/evaluations"


@pytest.fixture
def evaluation_id(admin_client, trainee_id):
    resp = admin_client.post(BASE, json={"userId": trainee_id, "traineeInfo": {"department": "Engineering"}})
    assert resp.status_code == 201
    return resp.get_json()["id"]


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_admin_routes_require_login(client):
    resp = client.get(BASE)
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHORIZED"


def test_trainee_is_forbidden(client):
    resp = client.post("/api/auth/login", json={"email": TRAINEE_EMAIL, "password": TRAINEE_PASSWORD})
    assert resp.status_code == 200
    resp = client.get(BASE)
    assert resp.status_code == 403
    assert resp.get_json()["code"] == "FORBIDDEN"


def test_login_rejects_bad_password(client):
    resp = client.post("/api/auth/login", json={"email": TRAINEE_EMAIL, "password": "nope"})
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Invalid credentials"
    resp = client.post("/api/auth/login", json={"email": "", "password": ""})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_me_and_logout(admin_client):
    resp = admin_client.get("/api/auth/me")
    assert resp.get_json()["user"]["role"] == "admin"
    assert admin_client.post("/api/auth/logout").status_code == 200
    assert admin_client.get("/api/auth/me").status_code == 401


def test_crud_round_trip(admin_client, evaluation_id, trainee_id):
    rows = admin_client.get(BASE, query_string={"userId": trainee_id}).get_json()
    assert [r["id"] for r in rows] == [evaluation_id]
    assert rows[0]["evaluator_name"] == "Ada Admin"

    resp = admin_client.patch(f"{BASE}/{evaluation_id}", json={"status": "in_progress", "periodStart": "2026-01-05"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "in_progress"

    detail = admin_client.get(f"{BASE}/{evaluation_id}").get_json()
    assert detail["period_start"] == "2026-01-05"
    assert detail["trainee_info"] == {"department": "Engineering"}
    assert detail["scores"] == []

    bad = admin_client.patch(f"{BASE}/{evaluation_id}", json={"status": "done"})
    assert bad.status_code == 400

    assert admin_client.delete(f"{BASE}/{evaluation_id}").status_code == 204
    missing = admin_client.get(f"{BASE}/{evaluation_id}")
    assert missing.status_code == 404
    assert missing.get_json()["error"] == "Evaluation not found"


def test_create_validates_trainee(admin_client):
    assert admin_client.post(BASE, json={}).status_code == 400
    assert admin_client.post(BASE, json={"userId": 999}).status_code == 404


def test_scores_upsert_list_and_delete(admin_client, evaluation_id):
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scores", json={"scores": [
        {"sheet": "scoreboard", "criterion_key": "lab1::a1_teamwork", "category": "a1_teamwork", "score": 15, "max_score": 20},
        {"sheet": "technical", "criterion_key": "te_tools", "score": 4},
    ]})
    assert resp.status_code == 200
    assert len(resp.get_json()) == 2

    technical = admin_client.get(f"{BASE}/{evaluation_id}/scores", query_string={"sheet": "technical"}).get_json()
    assert [s["criterion_key"] for s in technical] == ["te_tools"]

    resp = admin_client.delete(f"{BASE}/{evaluation_id}/scores/scoreboard/lab1%3A%3Aa1_teamwork")
    assert resp.get_json() == {"deleted": True}

    bad = admin_client.post(f"{BASE}/{evaluation_id}/scores", json={"scores": "nope"})
    assert bad.status_code == 400


def test_grade_endpoint(admin_client, evaluation_id, full_marks):
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={
        "activityKey": "lab1", "activityLabel": "Lab One", "scores": full_marks, "remarks": "great",
    })
    assert resp.status_code == 200
    assert len(resp.get_json()) == len(CRITERIA) + 1

    summary = admin_client.get(f"{BASE}/{evaluation_id}").get_json()["summary"]
    assert summary["overall_percent"] == 100
    assert summary["recommendation"] == "FOR ENDORSEMENT"


def test_grade_endpoint_names_first_invalid_criterion(admin_client, evaluation_id, full_marks):
    draft = dict(full_marks)
    draft.pop("a2_problem_solving")
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "lab1", "scores": draft})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["details"] == {"criterion": "a2_problem_solving"}
    assert "1 missing" in body["error"]

    draft = dict(full_marks, b3_tools=3.5)
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "lab1", "scores": draft})
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"criterion": "b3_tools"}

    draft = dict(full_marks, d1_responsiveness=51)
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "lab1", "scores": draft})
    assert resp.status_code == 400
    assert resp.get_json()["details"] == {"criterion": "d1_responsiveness"}

    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "a::b", "scores": full_marks})
    assert resp.status_code == 400

    assert admin_client.get(f"{BASE}/{evaluation_id}/scores").get_json() == []


def test_did_not_submit_endpoint(admin_client, evaluation_id):
    resp = admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/did-not-submit", json={"activityKey": "lab2", "remarks": "absent"})
    assert resp.status_code == 200
    scores = admin_client.get(f"{BASE}/{evaluation_id}/scores").get_json()
    meta = [s for s in scores if s["criterion_key"] == "lab2"][0]
    assert meta["status"] == "not_submitted"
    assert meta["remarks"] == "Did not submit - absent"
    assert all(s["score"] == 0 for s in scores if s["criterion_key"].startswith("lab2::"))

    assert admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/did-not-submit", json={}).status_code == 400


def test_delete_activity_removes_every_row(admin_client, evaluation_id, full_marks):
    admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "lab1", "scores": full_marks})
    admin_client.post(f"{BASE}/{evaluation_id}/scores", json={"scores": [
        {"sheet": "quiz_grades", "criterion_key": "lab1", "score": 8, "max_score": 10},
        {"sheet": "technical", "criterion_key": "te_tools", "score": 4},
    ]})

    resp = admin_client.delete(f"{BASE}/{evaluation_id}/scoreboard/lab1")
    assert resp.get_json() == {"deleted": len(CRITERIA) + 2}

    scores = admin_client.get(f"{BASE}/{evaluation_id}").get_json()["scores"]
    assert [s["criterion_key"] for s in scores] == ["te_tools"]


def test_auto_populate_endpoint(admin_client, evaluation_id):
    resp = admin_client.post(f"{BASE}/{evaluation_id}/auto-populate")
    assert resp.status_code == 200
    assert resp.get_json() == {"count": 0, "scores": []}


def test_export_download(admin_client, evaluation_id, full_marks):
    admin_client.post(f"{BASE}/{evaluation_id}/scoreboard/grade", json={"activityKey": "lab1", "scores": full_marks})
    resp = admin_client.get(f"{BASE}/{evaluation_id}/export.xlsx")
    assert resp.status_code == 200
    assert resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert "Tina_Trainee_evaluation_" in resp.headers["Content-Disposition"]
    wb = openpyxl.load_workbook(BytesIO(resp.data))
    assert "Performance Summary" in wb.sheetnames
