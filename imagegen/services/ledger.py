"""Generation ledger: one row per provider request, child rows per image."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from imagegen.errors import GenerationNotFound
from imagegen.models.generation import Generation, GenerationImage

logger = logging.getLogger(__name__)


@dataclass
class CostSummary:
    total: float = 0.0
    generation_count: int = 0
    by_provider: dict = field(default_factory=dict)
    by_model: dict = field(default_factory=dict)


def _utc_now():
    return datetime.now(timezone.utc)


class GenerationLedger:
    """Persists generations through a SQLAlchemy session.

    Every mutating call commits before it returns. On a database error the
    session is rolled back and the error propagates unchanged.
    """

    def __init__(self, session, clock=None):
        self.session = session
        self.clock = clock or _utc_now

    def create_generation(self, data, images):
        """Insert a generation and all of its images in one transaction.

        Args:
            data: dict with prompt, negative_prompt, context, model, provider,
                count, aspect_ratio and cost
            images: iterable of dicts with index_num, preview_url, width,
                height and seed

        Returns:
            The persisted Generation with id, created_at and images populated.
        """
        generation = Generation(
            prompt=data["prompt"],
            negative_prompt=data.get("negative_prompt"),
            context=data.get("context"),
            model=data["model"],
            provider=data["provider"],
            count=data["count"],
            aspect_ratio=data["aspect_ratio"],
            cost=data["cost"],
            created_at=self.clock(),
        )
        for img in images:
            generation.images.append(
                GenerationImage(
                    index_num=img["index_num"],
                    preview_url=img["preview_url"],
                    width=img.get("width"),
                    height=img.get("height"),
                    seed=img.get("seed"),
                )
            )

        self.session.add(generation)
        self._commit()
        logger.info(
            "Recorded generation %s (%d images, $%.4f)",
            generation.id,
            len(generation.images),
            generation.cost,
        )
        return generation

    def get_generation(self, generation_id):
        stmt = (
            select(Generation)
            .options(selectinload(Generation.images))
            .where(Generation.id == generation_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def mark_selected(self, generation_id, index, storage_key, public_url):
        """Record the selection. The index is not range-checked here.

        Raises:
            GenerationNotFound if the row is gone
        """
        generation = self.session.get(Generation, generation_id)
        if generation is None:
            raise GenerationNotFound(generation_id)
        generation.selected_index = index
        generation.selected_at = self.clock()
        generation.storage_key = storage_key
        generation.public_url = public_url
        self._commit()

    def list_generations(self, limit=10):
        stmt = (
            select(Generation)
            .options(selectinload(Generation.images))
            .order_by(Generation.created_at.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def get_costs(self, since=None):
        """Sum cost over generations created at or after `since`."""
        if since is not None and since.tzinfo is not None:
            since = since.astimezone(timezone.utc)

        def window(stmt):
            if since is None:
                return stmt
            return stmt.where(Generation.created_at >= since)

        total, count = self.session.execute(
            window(
                select(
                    func.coalesce(func.sum(Generation.cost), 0.0),
                    func.count(Generation.id),
                )
            )
        ).one()

        by_provider = {
            provider: subtotal
            for provider, subtotal in self.session.execute(
                window(select(Generation.provider, func.sum(Generation.cost)))
                .group_by(Generation.provider)
            )
        }
        by_model = {
            model: subtotal
            for model, subtotal in self.session.execute(
                window(select(Generation.model, func.sum(Generation.cost)))
                .group_by(Generation.model)
            )
        }

        return CostSummary(
            total=float(total),
            generation_count=count,
            by_provider=by_provider,
            by_model=by_model,
        )

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            logger.exception("Ledger commit failed, rolling back")
            self.session.rollback()
            raise
