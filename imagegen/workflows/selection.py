"""Promote one preview to durable storage and clean up the rest."""
import logging
import os
import re
import time
from imagegen.errors import (
    GenerationAlreadySelected,
    GenerationNotFound,
    InvalidImageIndex,
    PreviewMissing,
)
from imagegen.services.image_service import is_local_path
from imagegen.services.storage import sanitize_for_header

logger = logging.getLogger(__name__)

HINT = (
    "Present the permanent_url and markdown to the user. "
    "Do not describe the image."
)


def slugify(text, max_length=50):
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug[:max_length].rstrip("-")


def _read_preview(ctx, preview_ref):
    if not is_local_path(preview_ref):
        return ctx.provider.download_image(preview_ref)
    try:
        with open(preview_ref, "rb") as f:
            return f.read()
    except FileNotFoundError:
        raise PreviewMissing(preview_ref)


def cleanup_previews_for(generation, selected_index_num, cleanup_others):
    """Delete local preview files after a selection.

    With `cleanup_others` every local preview goes and the generation's
    preview directory is removed if it ends up empty; otherwise only the
    selected preview is deleted.

    Returns:
        (deleted_paths, retained_paths, warnings)
    """
    deleted, retained, warnings = [], [], []
    preview_dir = None

    for img in generation.images:
        if not is_local_path(img.preview_url):
            continue
        if preview_dir is None:
            preview_dir = os.path.dirname(img.preview_url)

        if not cleanup_others and img.index_num != selected_index_num:
            retained.append(img.preview_url)
            continue

        try:
            os.remove(img.preview_url)
            deleted.append(img.preview_url)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.exception("Failed to delete local preview %s", img.preview_url)
            warnings.append(f"Failed to delete {img.preview_url}: {e}")

    if preview_dir and cleanup_others:
        try:
            os.rmdir(preview_dir)
        except OSError:
            logger.debug("Preview directory %s left in place", preview_dir)

    return deleted, retained, warnings


def select_image(ctx, generation_id, index, filename=None, cleanup_others=True):
    """Upload the chosen preview, record the selection, clean up previews.

    Raises:
        GenerationNotFound, InvalidImageIndex, GenerationAlreadySelected,
        PreviewMissing; storage and database errors propagate unchanged
    """
    generation = ctx.ledger.get_generation(generation_id)
    if generation is None:
        raise GenerationNotFound(generation_id)

    images = generation.images or []
    if not 0 <= index < len(images):
        raise InvalidImageIndex(index)
    if generation.is_selected:
        raise GenerationAlreadySelected(generation_id, generation.selected_index)

    selected = images[index]
    data = _read_preview(ctx, selected.preview_url)

    ext = "png" if ".png" in selected.preview_url else "jpg"
    if not filename:
        filename = f"{slugify(generation.prompt)}-{int(time.time() * 1000)}.{ext}"

    upload = ctx.storage.upload(
        data,
        filename,
        "image/png" if ext == "png" else "image/jpeg",
        metadata={
            "generation_id": generation_id,
            "prompt": sanitize_for_header(generation.prompt),
        },
    )
    logger.info(
        "Selected image %d of generation %s -> %s", index, generation_id, upload.key
    )

    ctx.ledger.mark_selected(
        generation_id, selected.index_num, upload.key, upload.public_url
    )

    deleted, retained, warnings = cleanup_previews_for(
        generation, selected.index_num, cleanup_others
    )

    alt_text = generation.context or generation.prompt[:100]
    response = {
        "permanent_url": upload.public_url,
        "storage_key": upload.key,
        "size_bytes": upload.size,
        "markdown": f"![{alt_text}]({upload.public_url})",
        "cleanup": {
            "deleted_previews": len(deleted),
            "retained_previews": retained,
        },
    }
    if warnings:
        response["warnings"] = warnings
    response["_hint"] = HINT
    return response
