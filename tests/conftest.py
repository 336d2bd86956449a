import io
import pytest
from PIL import Image as PILImage
from imagegen import create_app
from imagegen.context import EXTENSION_KEY, ToolContext
from imagegen.extensions import db as _db
from imagegen.services.image_service import to_data_ref
from imagegen.services.ledger import GenerationLedger
from imagegen.services.providers import GenerateResult, GeneratedImage, ImageProvider
from imagegen.services.storage import BlobStore, UploadResult, expand_path_template


def make_image_bytes(fmt="PNG", size=(4, 3)):
    buffer = io.BytesIO()
    PILImage.new("RGB", size, (200, 80, 20)).save(buffer, format=fmt)
    return buffer.getvalue()


class StubProvider(ImageProvider):
    """Returns `count` data-ref images without touching the network."""

    name = "stub"
    DEFAULT_MODEL = "stub-model"

    def __init__(self, cost_per_image=0.01, mime_type="image/png", refs=None):
        super().__init__(api_key="test-api-key")
        self.cost_per_image = cost_per_image
        self.mime_type = mime_type
        self.refs = refs
        self.calls = []
        self.downloads = []

    def generate(self, options):
        self.calls.append(options)
        fmt = "JPEG" if self.mime_type == "image/jpeg" else "PNG"
        refs = self.refs or [
            to_data_ref(make_image_bytes(fmt), self.mime_type)
            for _ in range(options.count)
        ]
        images = [
            GeneratedImage(index=i, url=ref, width=1344, height=768, seed=1000 + i)
            for i, ref in enumerate(refs)
        ]
        return GenerateResult(
            images=images,
            model_used=options.model or self.default_model,
            cost=self.cost_per_image * options.count,
            provider=self.name,
        )

    def download_image(self, ref):
        self.downloads.append(ref)
        return b"remote-image-bytes"

    def get_cost_per_image(self, model):
        return self.cost_per_image

    def list_models(self):
        return [self.DEFAULT_MODEL]


class MemoryStorage(BlobStore):
    """Records uploads instead of storing them anywhere."""

    name = "memory"

    def __init__(self, path_template="{year}/{month}/{filename}"):
        self.path_template = path_template
        self.uploads = []
        self.deleted = []

    def upload(self, data, filename, content_type, metadata=None):
        key = expand_path_template(self.path_template, filename)
        self.uploads.append(
            {
                "data": data,
                "filename": filename,
                "content_type": content_type,
                "metadata": metadata,
                "key": key,
            }
        )
        return UploadResult(
            key=key, public_url=f"https://images.example.com/{key}", size=len(data)
        )

    def delete(self, key):
        self.deleted.append(key)

    def health_check(self):
        return True


@pytest.fixture
def app(tmp_path):
    """Create application for testing, with a fresh in-memory database."""
    app = create_app(
        "testing",
        overrides={
            "LOCAL_PREVIEW_DIR": str(tmp_path / "previews"),
            "LOCAL_STORAGE_DIR": str(tmp_path / "storage"),
        },
    )
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def ledger(db):
    return GenerationLedger(db.session)


@pytest.fixture
def ctx(app, provider, storage, ledger):
    """ToolContext wired to stubs and registered on the app."""
    context = ToolContext(
        config=app.config, provider=provider, storage=storage, ledger=ledger
    )
    app.extensions[EXTENSION_KEY] = context
    return context


@pytest.fixture
def image_bytes():
    return make_image_bytes
