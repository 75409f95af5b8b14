import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import date

import openpyxl

from thodemy.scoring.catalogue import CRITERIA
from thodemy.services import evaluations as service
from thodemy.services.export import build_export, build_workbook, covered_period, export_filename

SHEETS = {
    "ScoreBoard",
    "Quiz Grades",
    "BootCamp ScoreCard",
    "Performance Evaluation",
    "Technical Evaluation",
    "Behavioral Evaluation",
    "Performance Summary",
}


def _column(ws, col):
    return [row[col] for row in ws.iter_rows(values_only=True)]


def _summary(ws):
    return {row[0]: row[1] for row in ws.iter_rows(values_only=True)}


def test_export_filename_is_sanitized():
    day = date(2026, 3, 1)
    assert export_filename("Tina Trainee", day) == "Tina_Trainee_evaluation_2026-03-01.xlsx"
    assert export_filename("José  O'Neil", day) == "Jos_O_Neil_evaluation_2026-03-01.xlsx"
    assert export_filename("", day) == "evaluation_evaluation_2026-03-01.xlsx"


def test_covered_period():
    assert covered_period("2026-01-05", "2026-03-31") == "2026-01-05 - 2026-03-31"
    assert covered_period(None, "2026-03-31") == "2026-03-31"
    assert covered_period(None, None) == ""


def test_empty_workbook_has_every_sheet():
    wb = build_workbook({"scores": [], "trainee_name": ""}, today=date(2026, 3, 1))
    assert set(wb.sheetnames) == SHEETS
    summary = _summary(wb["Performance Summary"])
    assert summary["Name"] == "UNKNOWN USER"
    assert summary["Overall (%)"] == 0
    assert summary["Adjectival Rating"] == "POOR"
    assert summary["Recommendation"] == "FOR IMPROVEMENT PLAN"


def test_workbook_content(app, trainee_id, admin_id, full_marks):
    evaluation_id = service.create_evaluation({
        "userId": trainee_id,
        "traineeInfo": {"department": "Engineering", "trainer": "Sam"},
        "periodStart": "2026-01-05",
        "periodEnd": "2026-03-31",
    }, evaluator_id=admin_id)["id"]
    service.grade_activity(evaluation_id, "lab1", "Lab One", full_marks)
    service.upsert_scores(evaluation_id, [
        {"sheet": "quiz_grades", "criterion_key": "quiz_1", "criterion_label": "Week 1", "score": 8, "max_score": 10},
        {"sheet": "technical", "criterion_key": "te_system_design", "score": 5},
        {"sheet": "technical", "criterion_key": "te_documentation", "score": 4},
        {"sheet": "behavioral", "criterion_key": "bh_attitude", "score": 5},
        {"sheet": "behavioral", "criterion_key": "bh_cooperation", "score": 5},
        {"sheet": "performance_feedback", "criterion_key": "cat_A_strength", "remarks": "Team player"},
    ])

    bio, filename = build_export(evaluation_id, exported_by="Ada Admin", today=date(2026, 4, 1))
    assert filename == "Tina_Trainee_evaluation_2026-04-01.xlsx"
    wb = openpyxl.load_workbook(bio)
    assert set(wb.sheetnames) == SHEETS

    summary = _summary(wb["Performance Summary"])
    assert summary["Name"] == "TINA TRAINEE"
    assert summary["Department"] == "ENGINEERING"
    assert summary["Position"] == "TRAINEE"
    assert summary["Covered Period"] == "2026-01-05 - 2026-03-31"
    assert summary["Exported By"] == "Ada Admin"
    # E drops to 4.75 once the quiz (equivalent 90) drives the summative criterion
    assert summary["Bootcamp (%)"] == 99.5
    assert summary["Performance (%)"] == 99.75
    assert summary["Adjectival Rating"] == "OUTSTANDING"

    board = wb["ScoreBoard"]
    assert _column(board, 0)[2:] == ["lab1"]
    assert board.cell(row=1, column=3 + len(CRITERIA)).value == "Average (/5)"

    quiz = list(wb["Quiz Grades"].iter_rows(values_only=True))
    assert quiz[1] == ("quiz_1", "Week 1", 8, 10, 90, 4, "Capable")

    technical = list(wb["Technical Evaluation"].iter_rows(values_only=True))
    assert technical[-1][1] == "TOTAL"
    assert technical[-1][2] == 1
    assert technical[-1][4] == 32

    behavioral = list(wb["Behavioral Evaluation"].iter_rows(values_only=True))
    assert behavioral[-2][2] == 10
    assert behavioral[-1][2] == round(10 / 75 * 5, 2)

    performance = list(wb["Performance Evaluation"].iter_rows(values_only=True))
    assert performance[1][0] == "A"
    assert performance[1][5] == "Team player"
