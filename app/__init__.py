import os

from flask import Flask, jsonify
from flask_migrate import Migrate
from .extensions import db, rq
from .errors import AnalysisError

migrate = Migrate()


def create_app(overrides=None):
    """App factory.

    ``overrides`` is applied on top of ``config.Config`` (tests pass a
    temporary database URL and drop the provider key here).
    """
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if overrides:
        app.config.update(overrides)

    db.init_app(app)
    migrate.init_app(app, db)
    rq.init_app(app)

    from .api.analysis import bp as analysis_bp
    app.register_blueprint(analysis_bp)

    @app.errorhandler(AnalysisError)
    def handle_analysis_error(err):
        return jsonify({"error": str(err)}), err.status_code

    # alembic sets SKIP_CREATE_ALL so migrations own the schema there
    if not os.getenv("SKIP_CREATE_ALL"):
        with app.app_context():
            from . import models  # noqa: F401
            db.create_all()

    return app
