from ..extensions import db
from .base import TimestampMixin


class ActivitySubmission(db.Model, TimestampMixin):
    __tablename__ = "activity_submissions"
    id = db.Column(db.Integer, primary_key=True)
    activity_id = db.Column(db.Integer, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    course_id = db.Column(db.Integer, index=True)
    title = db.Column(db.String(255))
    score = db.Column(db.Float)  # null until reviewed
    status = db.Column(db.String(30))
    reviewed_at = db.Column(db.DateTime)
