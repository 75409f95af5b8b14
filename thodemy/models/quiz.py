from ..extensions import db
from .base import TimestampMixin


class Quiz(db.Model, TimestampMixin):
    __tablename__ = "quizzes"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    course_id = db.Column(db.Integer, index=True)
    max_score = db.Column(db.Float)
    total_questions = db.Column(db.Integer)


class QuizScore(db.Model, TimestampMixin):
    __tablename__ = "quiz_scores"
    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = db.Column(db.Float)
    submitted_at = db.Column(db.DateTime)
