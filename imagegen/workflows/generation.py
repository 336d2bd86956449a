"""Generate candidate images and stage them as local previews."""
import logging
import os
import secrets
import time
from imagegen.services.image_service import extension_for, is_data_ref, parse_data_ref
from imagegen.services.providers import GenerateOptions

logger = logging.getLogger(__name__)

PREVIEW_DIR_PREFIX = "gen-"

HINT = (
    "Present the preview file paths to the user. Do not describe the images. "
    "Ask which one to select."
)


def new_preview_dir_name():
    """Timestamp plus random suffix; unrelated to the ledger's generation id."""
    return f"{PREVIEW_DIR_PREFIX}{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def month_start(now):
    """Local midnight on the first day of `now`'s month."""
    local = now.astimezone()
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def budget_warning(total, monthly_limit, alert_threshold):
    """Return an alert message once month-to-date spend crosses the threshold."""
    if monthly_limit <= 0 or total < monthly_limit * alert_threshold:
        return None
    percent = total / monthly_limit * 100
    return (
        f"Budget alert: {percent:.1f}% of monthly limit used "
        f"(${total:.2f}/${monthly_limit:.2f})"
    )


def _stage_previews(images, generation_dir, warnings):
    """Write data-ref images to disk, pass remote URLs through.

    Images that can't be decoded or written are logged and skipped.
    """
    staged = []
    for img in images:
        preview_ref = img.url
        if is_data_ref(img.url):
            try:
                parsed = parse_data_ref(img.url)
                if parsed is None:
                    raise ValueError("unsupported data reference")
                mime_type, data = parsed
                preview_ref = os.path.join(
                    generation_dir, f"{img.index}.{extension_for(mime_type)}"
                )
                with open(preview_ref, "wb") as f:
                    f.write(data)
            except (OSError, ValueError) as e:
                logger.exception("Failed to save preview for image %d", img.index)
                warnings.append(f"Image {img.index} skipped: {e}")
                continue
        else:
            logger.warning(
                "Image %d came back as a remote URL, keeping it as the preview",
                img.index,
            )

        staged.append(
            {
                "index_num": img.index,
                "preview_url": preview_ref,
                "width": img.width,
                "height": img.height,
                "seed": img.seed,
            }
        )
    return staged


def generate_images(
    ctx,
    prompt,
    negative_prompt=None,
    count=None,
    aspect_ratio=None,
    context=None,
):
    """Generate images, save previews and record the generation.

    Provider errors propagate unchanged and nothing is written.

    Returns:
        JSON-serializable dict for the agent
    """
    count = count if count is not None else ctx.config["DEFAULT_COUNT"]
    aspect_ratio = aspect_ratio or ctx.config["DEFAULT_ASPECT_RATIO"]
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")

    result = ctx.provider.generate(
        GenerateOptions(
            prompt=prompt,
            negative_prompt=negative_prompt,
            count=count,
            aspect_ratio=aspect_ratio,
        )
    )

    generation_dir = os.path.join(ctx.config["LOCAL_PREVIEW_DIR"], new_preview_dir_name())
    os.makedirs(generation_dir, exist_ok=True)

    warnings = []
    staged = _stage_previews(result.images, generation_dir, warnings)

    generation = ctx.ledger.create_generation(
        {
            "prompt": prompt,
            "negative_prompt": negative_prompt,
            "context": context,
            "model": result.model_used,
            "provider": result.provider,
            "count": count,
            "aspect_ratio": aspect_ratio,
            "cost": result.cost,
        },
        staged,
    )

    costs = ctx.ledger.get_costs(since=month_start(ctx.clock()))
    warning = budget_warning(
        costs.total,
        ctx.config["BUDGET_MONTHLY_LIMIT"],
        ctx.config["BUDGET_ALERT_THRESHOLD"],
    )
    if warning:
        logger.warning(warning)

    response = {
        "generation_id": generation.id,
        "images": [
            {
                "index": img["index_num"],
                "preview_url": img["preview_url"],
                "width": img["width"],
                "height": img["height"],
            }
            for img in staged
        ],
        "cost": result.cost,
        "model_used": result.model_used,
    }
    if warning:
        response["budget_warning"] = warning
    if warnings:
        response["warnings"] = warnings
    response["_hint"] = HINT
    return response
