"""Services shared by every tool call, assembled once at startup."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping
from imagegen.extensions import db
from imagegen.services.ledger import GenerationLedger
from imagegen.services.providers import ImageProvider, create_provider
from imagegen.services.storage import BlobStore, create_storage

logger = logging.getLogger(__name__)

EXTENSION_KEY = "imagegen"


def _utc_now():
    return datetime.now(timezone.utc)


@dataclass
class ToolContext:
    config: Mapping[str, Any]
    provider: ImageProvider
    storage: BlobStore
    ledger: GenerationLedger
    clock: Callable[[], datetime] = field(default=_utc_now)


def build_context(app):
    config = app.config
    if config.get("FALLBACK_PROVIDER"):
        logger.info(
            "FALLBACK_PROVIDER=%s is configured but fallback is not supported; "
            "provider errors are returned as-is",
            config["FALLBACK_PROVIDER"],
        )
    return ToolContext(
        config=config,
        provider=create_provider(config),
        storage=create_storage(config),
        ledger=GenerationLedger(db.session),
    )


def get_context(app):
    """Return the app's ToolContext, building it on first use."""
    ctx = app.extensions.get(EXTENSION_KEY)
    if ctx is None:
        ctx = build_context(app)
        app.extensions[EXTENSION_KEY] = ctx
    return ctx
