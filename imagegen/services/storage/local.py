import os
from imagegen.services.storage.base import BlobStore, UploadResult, expand_path_template


class LocalStorage(BlobStore):
    """Stores selected images in a directory on this machine."""

    name = "local"

    def __init__(self, base_path, public_url_prefix="", path_template="{year}/{month}/{filename}"):
        self.base_path = base_path
        self.public_url_prefix = (public_url_prefix or f"file://{base_path}").rstrip("/")
        self.path_template = path_template
        os.makedirs(self.base_path, exist_ok=True)

    def upload(self, data, filename, content_type, metadata=None):
        key = expand_path_template(self.path_template, filename)
        full_path = os.path.join(self.base_path, key)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)
        with open(full_path, "wb") as f:
            f.write(data)
        return UploadResult(
            key=key,
            public_url=f"{self.public_url_prefix}/{key}",
            size=len(data),
        )

    def delete(self, key):
        try:
            os.remove(os.path.join(self.base_path, key))
        except FileNotFoundError:
            pass

    def health_check(self):
        return os.path.isdir(self.base_path)
