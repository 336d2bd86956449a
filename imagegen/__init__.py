import os
from flask import Flask
from dotenv import load_dotenv

load_dotenv()
# Neither file overrides variables already set in the environment
load_dotenv(os.path.join(os.path.expanduser("~"), ".config", "image-gen-mcp", ".env"))


def _ensure_sqlite_dir(uri):
    prefix = "sqlite:///"
    if uri.startswith(prefix) and uri != "sqlite:///:memory:":
        os.makedirs(os.path.dirname(os.path.abspath(uri[len(prefix):])), exist_ok=True)


def create_app(config_name=None, overrides=None):
    flask_app = Flask(__name__)

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV") or "development"

    from imagegen.config import config_map

    config_cls = config_map.get(config_name, config_map["development"])
    flask_app.config.from_object(config_cls)
    if overrides:
        flask_app.config.update(overrides)

    if hasattr(config_cls, "init_app"):
        config_cls.init_app(flask_app)

    from imagegen.extensions import db, migrate, init_logging

    init_logging(flask_app)
    _ensure_sqlite_dir(flask_app.config["SQLALCHEMY_DATABASE_URI"])
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)

    # Import models so Alembic sees them
    from imagegen.models import Generation, GenerationImage  # noqa: F401

    from imagegen.cli import register_cli

    register_cli(flask_app)

    @flask_app.route("/health")
    def health():
        from imagegen.context import get_context

        checks = {"status": "ok"}
        try:
            db.session.execute(db.text("SELECT 1"))
            checks["db"] = "ok"
        except Exception:
            flask_app.logger.exception("Health check DB probe failed")
            checks["db"] = "error"
            checks["status"] = "degraded"
        try:
            if get_context(flask_app).storage.health_check():
                checks["storage"] = "ok"
            else:
                checks["storage"] = "unreachable"
                checks["status"] = "degraded"
        except Exception:
            flask_app.logger.exception("Health check storage probe failed")
            checks["storage"] = "error"
            checks["status"] = "degraded"
        status_code = 200 if checks["status"] == "ok" else 503
        return checks, status_code

    return flask_app
