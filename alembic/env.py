"""Alembic environment for the Thodemy schema.

Builds the Flask app through ``create_app`` so migrations run against the
same ``SQLALCHEMY_DATABASE_URI`` and model metadata as the service.
"""
import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from thodemy import create_app  # noqa: E402
from thodemy.extensions import db  # noqa: E402

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)


def _database_url(app):
    url = os.getenv("DATABASE_URL") or app.config["SQLALCHEMY_DATABASE_URI"]
    prefix = "sqlite:///"
    # Flask-SQLAlchemy resolves relative sqlite files under instance/
    if url.startswith(prefix) and not url.startswith(prefix + "/") and ":memory:" not in url:
        Path(app.instance_path).mkdir(parents=True, exist_ok=True)
        url = prefix + (Path(app.instance_path) / url[len(prefix):]).as_posix()
    return url


def _load_target():
    app = create_app(os.getenv("THODEMY_CONFIG", "config.Config"))
    with app.app_context():
        import thodemy.models  # noqa: F401
        return _database_url(app), db.metadata


DATABASE_URL, target_metadata = _load_target()


def run_offline():
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online():
    engine = engine_from_config({"sqlalchemy.url": DATABASE_URL}, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
