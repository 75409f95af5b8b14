from ..extensions import db
from .base import TimestampMixin, iso

STATUSES = ("draft", "in_progress", "finalized")


class Evaluation(db.Model, TimestampMixin):
    __tablename__ = "evaluations"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    learning_path_id = db.Column(db.Integer, db.ForeignKey("learning_paths.id"))
    evaluator_id = db.Column(db.Integer, db.ForeignKey("users.id"))
    status = db.Column(db.String(20), default="draft", nullable=False)
    trainee_info = db.Column(db.JSON)
    period_start = db.Column(db.Date)
    period_end = db.Column(db.Date)

    scores = db.relationship(
        "EvaluationScore",
        backref="evaluation",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "learning_path_id": self.learning_path_id,
            "evaluator_id": self.evaluator_id,
            "status": self.status,
            "trainee_info": self.trainee_info or {},
            "period_start": iso(self.period_start),
            "period_end": iso(self.period_end),
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }


class EvaluationScore(db.Model, TimestampMixin):
    __tablename__ = "evaluation_scores"
    __table_args__ = (
        db.UniqueConstraint("evaluation_id", "sheet", "criterion_key", name="uq_evaluation_scores_key"),
    )
    id = db.Column(db.Integer, primary_key=True)
    evaluation_id = db.Column(db.Integer, db.ForeignKey("evaluations.id", ondelete="CASCADE"), nullable=False, index=True)
    sheet = db.Column(db.String(64), nullable=False)
    category = db.Column(db.String(64))
    criterion_key = db.Column(db.String(255), nullable=False)
    criterion_label = db.Column(db.String(255))
    score = db.Column(db.Float)
    max_score = db.Column(db.Float, default=5)
    weight = db.Column(db.Float)
    remarks = db.Column(db.Text)
    source = db.Column(db.String(20), default="manual", nullable=False)
    source_ref_id = db.Column(db.String(64))
    # explicit activity status on scoreboard meta rows: graded / not_submitted / ungraded
    status = db.Column(db.String(20))

    def to_dict(self):
        return {
            "id": self.id,
            "evaluation_id": self.evaluation_id,
            "sheet": self.sheet,
            "category": self.category,
            "criterion_key": self.criterion_key,
            "criterion_label": self.criterion_label,
            "score": self.score,
            "max_score": self.max_score,
            "weight": self.weight,
            "remarks": self.remarks,
            "source": self.source,
            "source_ref_id": self.source_ref_id,
            "status": self.status,
            "updated_at": iso(self.updated_at),
        }
