import base64
import binascii
import io
import re
from PIL import Image as PILImage, UnidentifiedImageError


DATA_REF_PATTERN = re.compile(r"^data:(image/[\w.+-]+);base64,(.+)$", re.DOTALL)


def is_data_ref(ref):
    return ref.startswith("data:")


def is_remote_url(ref):
    return ref.startswith("http://") or ref.startswith("https://")


def is_local_path(ref):
    """Anything that is neither a remote URL nor an embedded data reference."""
    return not is_remote_url(ref) and not is_data_ref(ref)


def parse_data_ref(ref):
    """Decode a `data:<mime>;base64,<payload>` reference.

    Returns:
        (mime_type, bytes), or None if `ref` is not a base64 image data ref

    Raises:
        ValueError if the payload is not valid base64
    """
    match = DATA_REF_PATTERN.match(ref)
    if not match:
        return None
    mime_type, payload = match.groups()
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image payload: {e}") from e


def to_data_ref(data, mime_type="image/png"):
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def extension_for(mime_type):
    """Preview files are .jpg for JPEG payloads and .png for everything else."""
    return "jpg" if mime_type == "image/jpeg" else "png"


def image_dimensions(image_bytes):
    """Read (width, height) from image bytes, or None if Pillow can't parse them."""
    try:
        with PILImage.open(io.BytesIO(image_bytes)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return None
