from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required, login_user, logout_user

from ..errors import AuthError, ValidationError
from ..models.user import User
from .forms import LoginForm

bp = Blueprint("auth", __name__)


@bp.route("/api/auth/login", methods=["POST"])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        raise ValidationError("Email and password are required.", details=form.errors)
    user = User.query.filter_by(email=form.email.data.strip().lower()).first()
    if not user or not user.check_password(form.password.data):
        raise AuthError("Invalid credentials")
    if not user.is_active:
        raise AuthError("Account is deactivated")
    login_user(user)
    current_app.logger.info("User %s logged in", user.id)
    return jsonify({"user": user.to_dict()})


@bp.route("/api/auth/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@bp.route("/api/auth/me", methods=["GET"])
@login_required
def me():
    return jsonify({"user": current_user.to_dict()})


@bp.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"})
