from ..extensions import db
from .base import TimestampMixin


class LearningPath(db.Model, TimestampMixin):
    __tablename__ = "learning_paths"
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    course_ids = db.Column(db.JSON)  # list of course ids

    def course_id_set(self):
        return {str(c) for c in (self.course_ids or []) if c is not None}
