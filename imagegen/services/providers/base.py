from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional
import httpx
from imagegen.services.image_service import is_data_ref, parse_data_ref


@dataclass
class GenerateOptions:
    prompt: str
    count: int
    aspect_ratio: str
    negative_prompt: Optional[str] = None
    model: Optional[str] = None


@dataclass
class GeneratedImage:
    index: int
    url: str  # data:<mime>;base64,... or a remote URL
    width: int
    height: int
    seed: Optional[int] = None


@dataclass
class GenerateResult:
    model_used: str
    cost: float  # total for the whole batch
    provider: str
    images: List[GeneratedImage] = field(default_factory=list)


class ImageProvider(ABC):
    """Turns a prompt into one or more candidate images."""

    name = ""
    DEFAULT_MODEL = ""

    def __init__(self, api_key, default_model=None, timeout=120.0):
        self.api_key = api_key
        self.default_model = default_model or self.DEFAULT_MODEL
        self.timeout = timeout

    @abstractmethod
    def generate(self, options: GenerateOptions) -> GenerateResult:
        ...

    @abstractmethod
    def get_cost_per_image(self, model: str) -> float:
        ...

    @abstractmethod
    def list_models(self) -> List[str]:
        ...

    def download_image(self, ref: str) -> bytes:
        """Return image bytes for a data reference or a remote URL."""
        if is_data_ref(ref):
            parsed = parse_data_ref(ref)
            if parsed is None:
                raise ValueError("Unsupported data reference")
            return parsed[1]

        resp = httpx.get(ref, timeout=self.timeout, follow_redirects=True)
        if resp.status_code != 200:
            raise RuntimeError(
                f"Failed to download image: {resp.status_code} {resp.reason_phrase}"
            )
        return resp.content
