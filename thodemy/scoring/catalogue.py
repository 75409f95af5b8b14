# thodemy/scoring/catalogue.py
"""Rubric catalogue for trainee evaluations.

One fixed catalogue of 19 criteria in seven lettered categories (A-G).
Category weights live in named weight profiles so every rollup runs the
same code against a different table.
"""
from dataclasses import dataclass
from enum import Enum


# sheets
SCOREBOARD_SHEET = "scoreboard"
QUIZ_GRADES_SHEET = "quiz_grades"
BEHAVIORAL_SHEET = "behavioral"
TECHNICAL_SHEET = "technical"
BOOTCAMP_FEEDBACK_SHEET = "bootcamp_endorsement_feedback"
PERFORMANCE_FEEDBACK_SHEET = "performance_feedback"

# scoreboard meta rows carry this category instead of a rubric key
META_CATEGORY = "__activity_meta"
KEY_SEPARATOR = "::"

SOURCES = ("manual", "auto_quiz", "auto_activity")
DEFAULT_SOURCE = "manual"
DEFAULT_MAX_SCORE = 5

# the special criterion fed by the quiz_grades sheet
SUMMATIVE_CRITERION = "e1_learning"


class WeightProfile(Enum):
    BOOTCAMP = "bootcamp"
    PERFORMANCE = "performance"


@dataclass(frozen=True)
class Criterion:
    key: str
    category: str
    label: str
    weight: int
    max_score: int


@dataclass(frozen=True)
class Category:
    letter: str
    label: str
    criteria: tuple


def _category(letter, label, *items):
    return Category(letter, label, tuple(Criterion(k, letter, lbl, w, mx) for k, lbl, w, mx in items))


CATEGORIES = (
    _category(
        "A", "EMPLOYEE ENGAGEMENT",
        ("a1_teamwork", "Teamwork and Collaboration", 7, 20),
        ("a2_problem_solving", "Problem-solving and Initiative", 6, 40),
        ("a3_communication", "Communication Skills", 6, 20),
        ("a4_leadership", "Team Leadership and Dynamics", 6, 20),
    ),
    _category(
        "B", "PRODUCTIVITY",
        ("b1_efficiency", "Efficiency and Time Management", 5, 25),
        ("b2_deadlines", "Meeting Deadlines", 5, 25),
        ("b3_tools", "Utilization of Tools and Technologies", 5, 25),
        ("b4_problem_solving", "Problem-solving and Adaptability", 5, 25),
    ),
    _category(
        "C", "WORK QUALITY",
        ("c1_attention", "Attention to Detail", 5, 30),
        ("c2_quality", "Quality of Work", 5, 40),
        ("c3_output", "Work Output", 5, 30),
    ),
    _category(
        "D", "CUSTOMER SATISFACTION",
        ("d1_responsiveness", "Responsiveness and Availability", 5, 50),
        ("d2_quality", "Quality of Interaction", 5, 50),
    ),
    _category(
        "E", "SELF IMPROVEMENT",
        ("e1_learning", "Continuous Learning", 5, 80),
        ("e2_feedback", "Feedback Integration", 5, 20),
    ),
    _category(
        "F", "COMPLIANCE",
        ("f1_policies", "Adherence to Policies and Procedures", 5, 5),
        ("f2_reporting", "Timely and Accurate Reporting", 5, 5),
    ),
    _category(
        "G", "ETHICS AND VALUES",
        ("g1_integrity", "Integrity and Professionalism", 5, 5),
        ("g2_respect", "Respect and Inclusivity", 5, 5),
    ),
)

CATEGORY_LETTERS = tuple(c.letter for c in CATEGORIES)
CRITERIA = tuple(item for c in CATEGORIES for item in c.criteria)
CRITERION_KEYS = frozenset(c.key for c in CRITERIA)

_CATEGORY_BY_LETTER = {c.letter: c for c in CATEGORIES}
_CRITERION_BY_KEY = {c.key: c for c in CRITERIA}

# percent weights per category; each profile sums to 100
PROFILE_WEIGHTS = {
    WeightProfile.BOOTCAMP: {"A": 25, "B": 20, "C": 15, "D": 10, "E": 10, "F": 10, "G": 10},
    WeightProfile.PERFORMANCE: {"A": 25, "B": 20, "C": 15, "D": 15, "E": 5, "F": 5, "G": 15},
}


def get_category(letter):
    return _CATEGORY_BY_LETTER.get(str(letter or "").strip().upper())


def get_criterion(key):
    return _CRITERION_BY_KEY.get(key)


def criterion_max_score(key) -> int:
    c = _CRITERION_BY_KEY.get(key)
    return c.max_score if c else DEFAULT_MAX_SCORE


def category_weight(letter, profile=WeightProfile.BOOTCAMP) -> int:
    return PROFILE_WEIGHTS[WeightProfile(profile)].get(letter, 0)


def criterion_display_label(criterion) -> str:
    return f"{criterion.category} - {criterion.label}"


# Technical evaluation sheet: (key, label, weight as a fraction of 1.0)
TECHNICAL_CRITERIA = (
    ("te_technical_knowledge", "Technical Knowledge", 0.10),
    ("te_code_quality", "Code Quality", 0.08),
    ("te_debugging", "Debugging", 0.07),
    ("te_system_design", "System Design", 0.20),
    ("te_documentation", "Documentation", 0.15),
    ("te_testing", "Testing", 0.08),
    ("te_tools", "Tools", 0.07),
    ("te_best_practices", "Best Practices", 0.05),
    ("te_attendance", "Attendance", 0.03),
    ("te_policy", "Policy Compliance", 0.02),
    ("te_behavioral", "Behavioral", 0.15),
)

BEHAVIORAL_CRITERIA = (
    ("bh_adaptability", "Technical Knowledge and Skills"),
    ("bh_initiative", "Judgement and Conflict Management"),
    ("bh_dependability", "Reliability and Dependability"),
    ("bh_attitude", "Flexibility"),
    ("bh_cooperation", "Teamwork"),
    ("bh_attendance", "Drive for Excellence"),
    ("bh_professionalism", "Integrity"),
    ("bh_information_security", "Information Safety and Security"),
    ("bh_communication", "Written Communication"),
    ("bh_oral_communication", "Oral Communication"),
    ("bh_interpersonal_relations", "Interpersonal Relations"),
    ("bh_grooming_attire", "Grooming and Attire"),
    ("bh_service_professionalism", "Service Professionalism"),
    ("bh_accessibility", "Accessibility"),
    ("bh_handling_situations", "Handling Difficult Situations"),
)
