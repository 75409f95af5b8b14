import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from thodemy import create_app
from thodemy.extensions import db as _db
from thodemy.models import User
from thodemy.scoring.catalogue import CRITERIA

ADMIN_EMAIL = "admin@thodemy.org"
ADMIN_PASSWORD = "admin-pass"
TRAINEE_EMAIL = "trainee@thodemy.org"
TRAINEE_PASSWORD = "trainee-pass"


@pytest.fixture
def app():
    app = create_app("config.TestConfig")
    with app.app_context():
        _db.create_all()
        admin = User(email=ADMIN_EMAIL, role="admin", first_name="Ada", last_name="Admin")
        admin.set_password(ADMIN_PASSWORD)
        trainee = User(email=TRAINEE_EMAIL, role="trainee", first_name="Tina", last_name="Trainee")
        trainee.set_password(TRAINEE_PASSWORD)
        _db.session.add_all([admin, trainee])
        _db.session.commit()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def admin_id(app):
    return User.query.filter_by(email=ADMIN_EMAIL).first().id


@pytest.fixture
def trainee_id(app):
    return User.query.filter_by(email=TRAINEE_EMAIL).first().id


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    resp = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def full_marks():
    return {c.key: c.max_score for c in CRITERIA}
