import logging
from google import genai
from google.genai import types
from imagegen.services.image_service import image_dimensions, to_data_ref
from imagegen.services.providers.base import (
    GenerateResult,
    GeneratedImage,
    ImageProvider,
)

logger = logging.getLogger(__name__)

# USD per image (output tokens)
MODEL_COSTS = {
    "gemini-2.5-flash-image": 0.039,
    "gemini-3-pro-image-preview": 0.10,
}
DEFAULT_COST = 0.05

# Approximate 1K output sizes, used when the payload can't be measured
ASPECT_RATIOS = {
    "1:1": (1024, 1024),
    "2:3": (832, 1248),
    "3:2": (1248, 832),
    "3:4": (896, 1152),
    "4:3": (1152, 896),
    "4:5": (896, 1120),
    "5:4": (1120, 896),
    "9:16": (768, 1344),
    "16:9": (1344, 768),
    "21:9": (1536, 640),
}


class GeminiProvider(ImageProvider):
    name = "gemini"
    DEFAULT_MODEL = "gemini-2.5-flash-image"

    def __init__(self, api_key, default_model=None, timeout=120.0):
        super().__init__(api_key, default_model=default_model, timeout=timeout)
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def generate(self, options):
        model_name = options.model or self.default_model
        aspect_ratio = (
            options.aspect_ratio if options.aspect_ratio in ASPECT_RATIOS else "16:9"
        )

        prompt = options.prompt
        if options.negative_prompt:
            prompt += f"\n\nAvoid: {options.negative_prompt}"

        config = types.GenerateContentConfig(
            response_modalities=["IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )
        images = []

        # One image per call
        for i in range(options.count):
            response = self.client.models.generate_content(
                model=model_name, contents=prompt, config=config
            )
            image = self._extract_image(response, i, aspect_ratio)
            if image:
                images.append(image)
            else:
                logger.warning("Gemini returned no image for request %d", i)

        if not images:
            raise RuntimeError("No images generated")

        return GenerateResult(
            images=images,
            model_used=model_name,
            cost=self.get_cost_per_image(model_name) * len(images),
            provider=self.name,
        )

    def _extract_image(self, response, index, aspect_ratio):
        if not response.candidates:
            return None
        for part in response.candidates[0].content.parts:
            inline = getattr(part, "inline_data", None)
            if not inline or not inline.data:
                continue
            mime_type = inline.mime_type or "image/png"
            width, height = image_dimensions(inline.data) or ASPECT_RATIOS[aspect_ratio]
            return GeneratedImage(
                index=index,
                url=to_data_ref(inline.data, mime_type),
                width=width,
                height=height,
            )
        return None

    def get_cost_per_image(self, model):
        return MODEL_COSTS.get(model, DEFAULT_COST)

    def list_models(self):
        return list(MODEL_COSTS)
