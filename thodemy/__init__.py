import logging

from flask import Flask

from .extensions import db, login_manager, migrate


def create_app(config_object="config.Config"):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from .models.user import User
        return db.session.get(User, int(user_id))

    from .errors import register_error_handlers
    register_error_handlers(app)

    from .api.auth import bp as auth_bp
    from .api.evaluations import bp as evaluations_bp
    app.register_blueprint(auth_bp)
    app.register_blueprint(evaluations_bp)

    return app
