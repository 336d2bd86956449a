"""Tests for the generate-images workflow."""
import os
from datetime import datetime, timezone
from unittest.mock import patch
import pytest
from imagegen.models.generation import Generation, GenerationImage
from imagegen.workflows.generation import (
    budget_warning,
    generate_images,
    month_start,
    new_preview_dir_name,
)


def test_generate_writes_previews_and_records_generation(ctx, db, provider):
    result = generate_images(ctx, "a sunset", count=2)

    assert db.session.query(Generation).count() == 1
    images = db.session.query(GenerationImage).order_by(GenerationImage.index_num).all()
    assert [img.index_num for img in images] == [0, 1]

    preview_dir = os.path.dirname(images[0].preview_url)
    assert os.path.dirname(preview_dir) == ctx.config["LOCAL_PREVIEW_DIR"]
    assert os.path.basename(preview_dir).startswith("gen-")
    for img in images:
        assert os.path.isfile(img.preview_url)
        assert img.preview_url.endswith(f"{img.index_num}.png")
        assert img.seed == 1000 + img.index_num

    assert result["generation_id"] == images[0].generation_id
    assert [img["index"] for img in result["images"]] == [0, 1]
    assert result["images"][1] == {
        "index": 1,
        "preview_url": images[1].preview_url,
        "width": 1344,
        "height": 768,
    }
    assert result["cost"] == pytest.approx(0.02)
    assert result["model_used"] == "stub-model"
    assert "budget_warning" not in result
    assert "warnings" not in result
    assert result["_hint"]


def test_generate_uses_configured_defaults(ctx, provider):
    ctx.config["DEFAULT_COUNT"] = 3
    ctx.config["DEFAULT_ASPECT_RATIO"] = "1:1"

    result = generate_images(ctx, "a fox", negative_prompt="blurry", context="hero")

    options = provider.calls[0]
    assert options.count == 3
    assert options.aspect_ratio == "1:1"
    assert options.negative_prompt == "blurry"
    assert len(result["images"]) == 3

    gen = ctx.ledger.get_generation(result["generation_id"])
    assert gen.count == 3
    assert gen.aspect_ratio == "1:1"
    assert gen.context == "hero"
    assert gen.negative_prompt == "blurry"
    assert gen.provider == "stub"


def test_generate_jpeg_previews_use_jpg_extension(ctx, provider):
    provider.mime_type = "image/jpeg"

    result = generate_images(ctx, "a lighthouse", count=1)

    assert result["images"][0]["preview_url"].endswith("0.jpg")


def test_generate_keeps_remote_urls_as_previews(ctx, provider):
    provider.refs = ["https://cdn.example.com/a.png"]

    result = generate_images(ctx, "a lighthouse", count=1)

    assert result["images"][0]["preview_url"] == "https://cdn.example.com/a.png"
    gen = ctx.ledger.get_generation(result["generation_id"])
    assert gen.images[0].preview_url == "https://cdn.example.com/a.png"


def test_generate_provider_error_writes_nothing(ctx, db, provider):
    with patch.object(provider, "generate", side_effect=RuntimeError("rate limited")):
        with pytest.raises(RuntimeError, match="rate limited"):
            generate_images(ctx, "a sunset", count=2)

    assert db.session.query(Generation).count() == 0
    assert not os.path.exists(ctx.config["LOCAL_PREVIEW_DIR"])


def test_generate_skips_images_that_fail_to_write(ctx, db):
    real_open = open

    def flaky_open(path, mode="r", *args, **kwargs):
        if str(path).endswith("1.png") and "w" in mode:
            raise OSError("No space left on device")
        return real_open(path, mode, *args, **kwargs)

    with patch("builtins.open", side_effect=flaky_open):
        result = generate_images(ctx, "a sunset", count=3)

    assert [img["index"] for img in result["images"]] == [0, 2]
    assert len(result["warnings"]) == 1
    assert "No space left on device" in result["warnings"][0]
    gen = ctx.ledger.get_generation(result["generation_id"])
    assert [img.index_num for img in gen.images] == [0, 2]
    assert gen.count == 3


def test_generate_skips_malformed_data_refs(ctx, provider):
    provider.refs = ["data:image/png;base64,!!!not-base64!!!", "data:text/plain,hi"]

    result = generate_images(ctx, "a sunset", count=2)

    assert result["images"] == []
    assert len(result["warnings"]) == 2


def test_generate_rejects_zero_count(ctx, provider):
    with pytest.raises(ValueError):
        generate_images(ctx, "a sunset", count=0)
    assert provider.calls == []


def test_budget_warning_over_threshold(ctx, provider):
    # monthly_limit=25, alert_threshold=0.8 in TestingConfig
    provider.cost_per_image = 11.0

    result = generate_images(ctx, "expensive", count=2)

    assert "88.0%" in result["budget_warning"]
    assert "$22.00/$25.00" in result["budget_warning"]


def test_budget_warning_absent_under_threshold(ctx, provider):
    provider.cost_per_image = 2.5

    result = generate_images(ctx, "cheap", count=2)

    assert "budget_warning" not in result


def test_budget_warning_counts_earlier_generations(ctx, provider):
    provider.cost_per_image = 5.0
    first = generate_images(ctx, "first", count=2)
    second = generate_images(ctx, "second", count=2)

    assert "budget_warning" not in first
    assert "80.0%" in second["budget_warning"]


def test_budget_warning_helper():
    assert budget_warning(22, 25, 0.8).startswith("Budget alert: 88.0%")
    assert budget_warning(20, 25, 0.8) is not None
    assert budget_warning(19.99, 25, 0.8) is None
    assert budget_warning(5, 0, 0.8) is None


def test_month_start_is_local_midnight_on_day_one():
    now = datetime(2025, 7, 18, 15, 30, tzinfo=timezone.utc)
    start = month_start(now)
    assert (start.month, start.day, start.hour, start.minute, start.second) == (7, 1, 0, 0, 0)
    assert start.tzinfo is not None
    assert start <= now


def test_preview_dir_names_are_unique():
    names = {new_preview_dir_name() for _ in range(50)}
    assert len(names) == 50
    assert all(name.startswith("gen-") for name in names)
