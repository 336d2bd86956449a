import enum
from imagegen.errors import ConfigurationError
from imagegen.services.storage.base import (  # noqa: F401
    BlobStore,
    UploadResult,
    expand_path_template,
    sanitize_for_header,
)


class StorageName(str, enum.Enum):
    R2 = "r2"
    LOCAL = "local"
    # Accepted in configuration, no implementation yet
    B2 = "b2"
    WASABI = "wasabi"


def create_storage(config):
    """Build the configured BlobStore from app config."""
    try:
        name = StorageName(config["STORAGE_NAME"])
    except ValueError:
        raise ConfigurationError(f"Unknown storage provider: {config['STORAGE_NAME']}")

    if name is StorageName.R2:
        from imagegen.services.storage.s3 import S3Storage

        return S3Storage(
            bucket=config["S3_BUCKET_NAME"],
            public_url_prefix=config["PUBLIC_URL_PREFIX"],
            endpoint_url=config["S3_ENDPOINT_URL"],
            access_key=config["S3_ACCESS_KEY"],
            secret_key=config["S3_SECRET_KEY"],
            region=config["S3_REGION"],
            path_template=config["PATH_TEMPLATE"],
        )
    if name is StorageName.LOCAL:
        from imagegen.services.storage.local import LocalStorage

        return LocalStorage(
            base_path=config["LOCAL_STORAGE_DIR"],
            public_url_prefix=config["PUBLIC_URL_PREFIX"],
            path_template=config["PATH_TEMPLATE"],
        )
    raise ConfigurationError(f"Storage provider {name.value!r} is not implemented")
