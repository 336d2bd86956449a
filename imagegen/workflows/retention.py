"""Purge abandoned preview directories by age. The ledger is not consulted."""
import logging
import os
from datetime import datetime, timedelta, timezone
from imagegen.workflows.generation import PREVIEW_DIR_PREFIX

logger = logging.getLogger(__name__)

DRY_RUN_LISTING_LIMIT = 20
SECONDS_PER_DAY = 24 * 60 * 60


def find_stale_preview_dirs(preview_dir, cutoff, now):
    """Return [(path, age_days)] for gen-* directories last modified before cutoff."""
    stale = []
    for entry in sorted(os.listdir(preview_dir)):
        if not entry.startswith(PREVIEW_DIR_PREFIX):
            continue
        path = os.path.join(preview_dir, entry)
        if not os.path.isdir(path):
            continue
        mtime = os.stat(path).st_mtime
        if mtime < cutoff.timestamp():
            age_days = int((now.timestamp() - mtime) // SECONDS_PER_DAY)
            stale.append((path, age_days))
    return stale


def _remove_preview_dir(path):
    for name in os.listdir(path):
        os.remove(os.path.join(path, name))
    os.rmdir(path)


def cleanup_previews(ctx, older_than_days=None, dry_run=False, now=None):
    """Delete preview directories older than `older_than_days`.

    Failures are collected per directory; one bad directory doesn't stop the
    sweep.
    """
    if older_than_days is None:
        older_than_days = ctx.config["AUTO_CLEANUP_DAYS"]
    preview_dir = ctx.config.get("LOCAL_PREVIEW_DIR")

    if not preview_dir or not os.path.isdir(preview_dir):
        return {"message": "No preview directory found", "preview_dir": preview_dir}

    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=older_than_days)
    stale = find_stale_preview_dirs(preview_dir, cutoff, now)

    summary = {
        "cutoff_date": cutoff.isoformat(),
        "older_than_days": older_than_days,
    }

    if not stale:
        return {"message": "No old previews to clean up", **summary}

    if dry_run:
        response = {
            "dry_run": True,
            "would_delete": len(stale),
            **summary,
            "previews": [
                {"path": path, "age_days": age}
                for path, age in stale[:DRY_RUN_LISTING_LIMIT]
            ],
        }
        if len(stale) > DRY_RUN_LISTING_LIMIT:
            response["message"] = f"...and {len(stale) - DRY_RUN_LISTING_LIMIT} more"
        return response

    deleted_count = 0
    errors = []
    for path, _ in stale:
        try:
            _remove_preview_dir(path)
            deleted_count += 1
        except OSError as e:
            logger.exception("Failed to remove preview directory %s", path)
            errors.append(f"{path}: {e}")

    logger.info("Removed %d preview directories older than %d days", deleted_count, older_than_days)
    response = {"deleted_count": deleted_count, **summary}
    if errors:
        response["errors"] = errors
    return response
