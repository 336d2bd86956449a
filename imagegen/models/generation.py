import uuid
from datetime import datetime, timezone
from imagegen.extensions import db


def as_utc(value):
    """SQLite hands back naive datetimes; every stored instant is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Generation(db.Model):
    __tablename__ = "generations"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    prompt = db.Column(db.Text, nullable=False)
    negative_prompt = db.Column(db.Text)
    context = db.Column(db.Text)
    model = db.Column(db.String(255), nullable=False)
    provider = db.Column(db.String(50), nullable=False)
    count = db.Column(db.Integer, nullable=False)
    aspect_ratio = db.Column(db.String(20), nullable=False)
    cost = db.Column(db.Float, nullable=False, default=0.0)
    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    # Selection state, written once by the selection workflow
    selected_index = db.Column(db.Integer, index=True)
    selected_at = db.Column(db.DateTime(timezone=True))
    storage_key = db.Column(db.String(1024))
    public_url = db.Column(db.String(2048))

    images = db.relationship(
        "GenerationImage",
        backref="generation",
        lazy="select",
        cascade="all, delete-orphan",
        order_by="GenerationImage.index_num",
    )

    @property
    def is_selected(self):
        return self.selected_index is not None

    def to_dict(self):
        return {
            "id": self.id,
            "prompt": self.prompt,
            "negative_prompt": self.negative_prompt,
            "context": self.context,
            "model": self.model,
            "provider": self.provider,
            "count": self.count,
            "aspect_ratio": self.aspect_ratio,
            "cost": self.cost,
            "created_at": as_utc(self.created_at).isoformat(),
            "selected_index": self.selected_index,
            "selected_at": (
                as_utc(self.selected_at).isoformat() if self.selected_at else None
            ),
            "storage_key": self.storage_key,
            "public_url": self.public_url,
            "images": [img.to_dict() for img in self.images],
        }

    def __repr__(self):
        return f"<Generation {self.id} {self.provider}/{self.model} x{self.count}>"


class GenerationImage(db.Model):
    __tablename__ = "images"

    id = db.Column(db.Integer, primary_key=True)
    generation_id = db.Column(
        db.String(36),
        db.ForeignKey("generations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    index_num = db.Column(db.Integer, nullable=False)
    preview_url = db.Column(db.Text, nullable=False)  # local path or remote URL
    width = db.Column(db.Integer)
    height = db.Column(db.Integer)
    seed = db.Column(db.BigInteger)

    __table_args__ = (
        db.UniqueConstraint("generation_id", "index_num", name="uq_image_index"),
    )

    def to_dict(self):
        return {
            "index_num": self.index_num,
            "preview_url": self.preview_url,
            "width": self.width,
            "height": self.height,
            "seed": self.seed,
        }

    def __repr__(self):
        return f"<GenerationImage {self.generation_id}#{self.index_num}>"
