from ..extensions import db
from flask_login import UserMixin
from .base import TimestampMixin
from werkzeug.security import generate_password_hash, check_password_hash

ROLES = ("superadmin", "admin", "trainee")


class User(db.Model, UserMixin, TimestampMixin):
    __tablename__ = "users"
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    first_name = db.Column(db.String(120))
    last_name = db.Column(db.String(120))
    username = db.Column(db.String(120))
    role = db.Column(db.String(50), default="trainee")
    is_active_flag = db.Column("is_active", db.Boolean, default=True, nullable=False)

    @property
    def is_active(self):
        return bool(self.is_active_flag)

    def set_password(self, raw):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw):
        return check_password_hash(self.password_hash, raw)

    @property
    def display_name(self):
        parts = [p for p in (self.first_name, self.last_name) if p and p.strip()]
        if parts:
            return " ".join(p.strip() for p in parts)
        return self.username or self.email or ""

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "username": self.username,
            "role": self.role,
            "name": self.display_name,
        }
