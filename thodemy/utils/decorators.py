from functools import wraps
from flask import abort
from flask_login import current_user

ADMIN_ROLES = ("admin", "superadmin")


def admin_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            abort(401, description="Authentication required")
        if getattr(current_user, "role", None) not in ADMIN_ROLES:
            abort(403, description="Admin access required")
        return view(*args, **kwargs)
    return wrapped
