"""MCP tool server: generate, select, list, costs and cleanup over stdio."""
import logging
from typing import Any, Dict, Optional
from flask import current_app, has_app_context
from mcp.server.fastmcp import FastMCP
from imagegen import create_app
from imagegen.context import get_context
from imagegen.workflows import generation, reports, retention, selection

logger = logging.getLogger(__name__)

mcp = FastMCP("image-gen-mcp")

_server_app = None


def _get_app():
    """Return the app used to serve tool calls.

    Reuse the current app when already inside an app context (tests/CLI),
    otherwise lazily create the server app once.
    """
    global _server_app
    if has_app_context():
        return current_app._get_current_object()
    if _server_app is None:
        _server_app = create_app()
    return _server_app


def _run(workflow, *args, **kwargs):
    app = _get_app()
    with app.app_context():
        return workflow(get_context(app), *args, **kwargs)


@mcp.tool()
def generate_images(
    prompt: str,
    negative_prompt: Optional[str] = None,
    count: Optional[int] = None,
    aspect_ratio: Optional[str] = None,
    context: Optional[str] = None,
) -> Dict[str, Any]:
    """Generate images with AI. Returns local preview file paths.

    After calling this tool, present the preview file paths to the user so
    they can view the images. Do not describe what the images might look
    like; list the previews with their index numbers and ask which one to
    select.

    Args:
        prompt: The image generation prompt.
        negative_prompt: What to avoid in the image.
        count: Number of variations to generate (default from config).
        aspect_ratio: "1:1", "16:9", "9:16", "4:3" (default from config).
        context: What the image is for, e.g. "blog header for an article on X".
    """
    return _run(
        generation.generate_images,
        prompt,
        negative_prompt=negative_prompt,
        count=count,
        aspect_ratio=aspect_ratio,
        context=context,
    )


@mcp.tool()
def select_image(
    generation_id: str,
    index: int,
    filename: Optional[str] = None,
    cleanup_others: bool = True,
) -> Dict[str, Any]:
    """Select an image from a generation and upload it to permanent storage.

    After upload, present the permanent URL and markdown to the user. Do not
    describe the image.

    Args:
        generation_id: The generation ID returned by generate_images.
        index: Which image to select (0-indexed).
        filename: Optional custom filename.
        cleanup_others: Delete unselected preview images too (default true).
    """
    return _run(
        selection.select_image,
        generation_id,
        index,
        filename=filename,
        cleanup_others=cleanup_others,
    )


@mcp.tool()
def list_generations(limit: int = 10) -> Dict[str, Any]:
    """List recent image generations, newest first."""
    return _run(reports.list_generations, limit=limit)


@mcp.tool()
def get_costs(period: str = "month") -> Dict[str, Any]:
    """Get spend for a period: "day", "week", "month" or "all"."""
    return _run(reports.get_costs, period=period)


@mcp.tool()
def cleanup_previews(
    older_than_days: Optional[int] = None, dry_run: bool = False
) -> Dict[str, Any]:
    """Delete local preview folders older than the given number of days.

    Args:
        older_than_days: Age threshold (default from config).
        dry_run: Only list what would be deleted.
    """
    return _run(retention.cleanup_previews, older_than_days=older_than_days, dry_run=dry_run)


def serve(app=None):
    """Prepare the database and serve tools on stdio until the client disconnects."""
    global _server_app
    _server_app = app or _get_app()
    with _server_app.app_context():
        from imagegen.extensions import db

        db.create_all()
        get_context(_server_app)
    logger.info("Image Gen MCP server running on stdio")
    mcp.run()


def main():
    serve()


if __name__ == "__main__":
    main()
