import os

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".config", "image-gen-mcp")


def _path(value):
    return os.path.expanduser(value) if value else value


def _sqlite_url(path):
    return f"sqlite:///{path}"


class Config:
    """Base configuration. All values from env vars."""

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", _sqlite_url(os.path.join(CONFIG_DIR, "generations.db"))
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {}  # SQLite doesn't support pool_size

    # Image provider
    PROVIDER_NAME = os.environ.get("PROVIDER_NAME", "fal")
    PROVIDER_API_KEY = os.environ.get("PROVIDER_API_KEY", "")
    PROVIDER_DEFAULT_MODEL = os.environ.get("PROVIDER_DEFAULT_MODEL", "")
    FALLBACK_PROVIDER = os.environ.get("FALLBACK_PROVIDER", "")

    # Storage
    STORAGE_NAME = os.environ.get("STORAGE_NAME", "r2")
    S3_ENDPOINT_URL = os.environ.get("S3_ENDPOINT_URL", "")
    S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY", "")
    S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY", "")
    S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME", "generated-images")
    S3_REGION = os.environ.get("S3_REGION", "auto")
    PUBLIC_URL_PREFIX = os.environ.get("PUBLIC_URL_PREFIX", "")
    PATH_TEMPLATE = os.environ.get("PATH_TEMPLATE", "{year}/{month}/{filename}")
    LOCAL_STORAGE_DIR = _path(
        os.environ.get("LOCAL_STORAGE_DIR", os.path.join(CONFIG_DIR, "images"))
    )
    LOCAL_PREVIEW_DIR = _path(
        os.environ.get("LOCAL_PREVIEW_DIR", os.path.join(CONFIG_DIR, "previews"))
    )

    # Budget
    BUDGET_MONTHLY_LIMIT = float(os.environ.get("BUDGET_MONTHLY_LIMIT", "10"))
    BUDGET_ALERT_THRESHOLD = float(os.environ.get("BUDGET_ALERT_THRESHOLD", "0.8"))

    # Generation defaults
    DEFAULT_COUNT = int(os.environ.get("DEFAULT_COUNT", "3"))
    DEFAULT_ASPECT_RATIO = os.environ.get("DEFAULT_ASPECT_RATIO", "16:9")
    AUTO_CLEANUP_DAYS = int(os.environ.get("AUTO_CLEANUP_DAYS", "30"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_ECHO = False

    @classmethod
    def init_app(cls, app):
        assert app.config["PROVIDER_API_KEY"], "PROVIDER_API_KEY must be set"
        if app.config["STORAGE_NAME"] == "r2":
            assert app.config["PUBLIC_URL_PREFIX"], (
                "PUBLIC_URL_PREFIX must be set for r2 storage"
            )


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    PROVIDER_API_KEY = "test-api-key"
    STORAGE_NAME = "local"
    PUBLIC_URL_PREFIX = "https://images.example.com"
    BUDGET_MONTHLY_LIMIT = 25.0
    BUDGET_ALERT_THRESHOLD = 0.8
    LOG_LEVEL = "WARNING"


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
