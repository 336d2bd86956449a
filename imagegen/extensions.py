import logging
import sys
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

logger = logging.getLogger(__name__)

db = SQLAlchemy()
migrate = Migrate()

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"


def init_logging(app):
    """Route package logs to stderr.

    stdout carries the MCP protocol when the server runs over stdio, so
    nothing may be logged there.
    """
    package_logger = logging.getLogger("imagegen")
    if any(getattr(h, "_imagegen", False) for h in package_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler._imagegen = True
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
