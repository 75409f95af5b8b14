#!/usr/bin/env python3
"""Create (or promote) an admin user.

Run from project root: python scripts/create_admin.py <email> <password> [superadmin]
"""
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from thodemy import create_app
from thodemy.extensions import db
from thodemy.models.user import User


def main(argv):
    if len(argv) < 3:
        print("usage: create_admin.py <email> <password> [superadmin]")
        return 2
    email = argv[1].strip().lower()
    role = "superadmin" if len(argv) > 3 and argv[3] == "superadmin" else "admin"
    app = create_app()
    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(email=email)
            db.session.add(user)
        user.role = role
        user.set_password(argv[2])
        db.session.commit()
        print(f"{role} {email} (id={user.id})")
    return 0


if __name__ == '__main__':
    sys.exit(main(sys.argv))
