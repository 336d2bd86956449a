"""Tests for the generation ledger."""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch
import pytest
from sqlalchemy.exc import OperationalError
from imagegen.errors import GenerationNotFound
from imagegen.models.generation import Generation, GenerationImage
from imagegen.services.ledger import GenerationLedger


def _data(**overrides):
    data = {
        "prompt": "a sunset over the sea",
        "negative_prompt": None,
        "context": None,
        "model": "fal-ai/flux/schnell",
        "provider": "fal",
        "count": 2,
        "aspect_ratio": "16:9",
        "cost": 0.006,
    }
    data.update(overrides)
    return data


def _images(n):
    return [
        {
            "index_num": i,
            "preview_url": f"/tmp/previews/gen-1/{i}.png",
            "width": 1344,
            "height": 768,
            "seed": 42 + i,
        }
        for i in range(n)
    ]


class FixedClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now


def test_create_generation_persists_images(ledger, db):
    gen = ledger.create_generation(_data(), _images(2))

    assert gen.id
    assert gen.created_at is not None
    assert db.session.query(Generation).count() == 1
    assert db.session.query(GenerationImage).filter_by(generation_id=gen.id).count() == 2


def test_get_generation_orders_images(ledger):
    images = list(reversed(_images(3)))
    gen = ledger.create_generation(_data(count=3), images)

    fetched = ledger.get_generation(gen.id)

    assert [img.index_num for img in fetched.images] == [0, 1, 2]
    assert fetched.images[1].seed == 43
    assert fetched.prompt == "a sunset over the sea"
    assert fetched.selected_index is None


def test_get_generation_missing(ledger):
    assert ledger.get_generation("does-not-exist") is None


def test_generation_ids_are_unique(ledger):
    ids = {ledger.create_generation(_data(), _images(1)).id for _ in range(5)}
    assert len(ids) == 5


def test_mark_selected(ledger):
    gen = ledger.create_generation(_data(), _images(2))

    ledger.mark_selected(gen.id, 1, "2025/01/x.png", "https://cdn/2025/01/x.png")

    fetched = ledger.get_generation(gen.id)
    assert fetched.selected_index == 1
    assert fetched.selected_at is not None
    assert fetched.storage_key == "2025/01/x.png"
    assert fetched.public_url == "https://cdn/2025/01/x.png"
    assert fetched.is_selected


def test_list_generations_most_recent_first(db):
    clock = FixedClock(datetime(2025, 5, 1, tzinfo=timezone.utc))
    ledger = GenerationLedger(db.session, clock=clock)
    for i in range(4):
        ledger.create_generation(_data(prompt=f"prompt {i}"), _images(1))
        clock.now += timedelta(hours=1)

    listed = ledger.list_generations(limit=3)

    assert [g.prompt for g in listed] == ["prompt 3", "prompt 2", "prompt 1"]
    assert all(len(g.images) == 1 for g in listed)
    assert len(ledger.list_generations()) == 4


def test_get_costs_partitions_total(ledger):
    rows = [
        ("fal", "fal-ai/flux/schnell", 0.25),
        ("fal", "fal-ai/flux/dev", 0.5),
        ("gemini", "gemini-2.5-flash-image", 1.25),
        ("fal", "fal-ai/flux/schnell", 2.0),
    ]
    for provider, model, cost in rows:
        ledger.create_generation(_data(provider=provider, model=model, cost=cost), _images(1))

    costs = ledger.get_costs()

    assert costs.total == 4.0
    assert costs.generation_count == 4
    assert costs.by_provider == {"fal": 2.75, "gemini": 1.25}
    assert costs.by_model == {
        "fal-ai/flux/schnell": 2.25,
        "fal-ai/flux/dev": 0.5,
        "gemini-2.5-flash-image": 1.25,
    }
    assert sum(costs.by_provider.values()) == costs.total
    assert sum(costs.by_model.values()) == costs.total


def test_get_costs_since(db):
    clock = FixedClock(datetime(2025, 3, 31, 23, 0, tzinfo=timezone.utc))
    ledger = GenerationLedger(db.session, clock=clock)
    ledger.create_generation(_data(cost=1.0), _images(1))
    clock.now = datetime(2025, 4, 2, 12, 0, tzinfo=timezone.utc)
    ledger.create_generation(_data(cost=2.0), _images(1))

    costs = ledger.get_costs(since=datetime(2025, 4, 1, tzinfo=timezone.utc))

    assert costs.total == 2.0
    assert costs.generation_count == 1


def test_get_costs_converts_since_to_utc(db):
    clock = FixedClock(datetime(2025, 4, 1, 3, 0, tzinfo=timezone.utc))
    ledger = GenerationLedger(db.session, clock=clock)
    ledger.create_generation(_data(cost=1.5), _images(1))

    # 2025-04-01 00:00 at UTC-5 is 05:00 UTC, after the row
    since = datetime(2025, 4, 1, tzinfo=timezone(timedelta(hours=-5)))
    assert ledger.get_costs(since=since).generation_count == 0
    # 2025-04-01 00:00 at UTC+2 is 2025-03-31 22:00 UTC, before the row
    since = datetime(2025, 4, 1, tzinfo=timezone(timedelta(hours=2)))
    assert ledger.get_costs(since=since).total == 1.5


def test_get_costs_empty(ledger):
    costs = ledger.get_costs()
    assert costs.total == 0
    assert costs.generation_count == 0
    assert costs.by_provider == {}
    assert costs.by_model == {}


def test_create_generation_rolls_back_on_commit_failure(ledger, db):
    failure = OperationalError("INSERT", {}, Exception("disk I/O error"))
    with patch.object(db.session(), "commit", side_effect=failure):
        with pytest.raises(OperationalError):
            ledger.create_generation(_data(), _images(2))

    assert db.session.query(Generation).count() == 0
    assert db.session.query(GenerationImage).count() == 0


def test_to_dict_is_json_ready(ledger):
    gen = ledger.create_generation(_data(context="blog header"), _images(1))
    data = ledger.get_generation(gen.id).to_dict()

    assert data["context"] == "blog header"
    assert data["created_at"].endswith("+00:00")
    assert data["images"][0]["preview_url"] == "/tmp/previews/gen-1/0.png"


def test_mark_selected_missing_generation(ledger):
    with pytest.raises(GenerationNotFound, match="Generation not found: gone"):
        ledger.mark_selected("gone", 0, "k", "https://cdn/k")
