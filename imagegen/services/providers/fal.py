import logging
import httpx
from imagegen.services.providers.base import (
    GenerateResult,
    GeneratedImage,
    ImageProvider,
)

logger = logging.getLogger(__name__)

BASE_URL = "https://fal.run/{model}"

# USD per image
MODEL_COSTS = {
    "fal-ai/flux/schnell": 0.003,
    "fal-ai/flux/dev": 0.025,
    "fal-ai/flux-pro": 0.05,
    "fal-ai/stable-diffusion-v3-medium": 0.035,
}
DEFAULT_COST = 0.01

ASPECT_RATIOS = {
    "1:1": (1024, 1024),
    "16:9": (1344, 768),
    "9:16": (768, 1344),
    "4:3": (1152, 896),
    "3:4": (896, 1152),
}


class FalProvider(ImageProvider):
    name = "fal"
    DEFAULT_MODEL = "fal-ai/flux/schnell"

    def generate(self, options):
        model = options.model or self.default_model
        width, height = ASPECT_RATIOS.get(options.aspect_ratio, ASPECT_RATIOS["16:9"])
        fast = "schnell" in model

        payload = {
            "prompt": options.prompt,
            "num_images": options.count,
            "image_size": {"width": width, "height": height},
            "num_inference_steps": 4 if fast else 28,
            "guidance_scale": 1 if fast else 3.5,
            "enable_safety_checker": True,
            # Inline the images as data refs instead of CDN links
            "sync_mode": True,
        }
        if options.negative_prompt:
            payload["negative_prompt"] = options.negative_prompt

        logger.info("Requesting %d image(s) from %s", options.count, model)
        resp = httpx.post(
            BASE_URL.format(model=model),
            json=payload,
            headers={"Authorization": f"Key {self.api_key}"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()

        images = [
            GeneratedImage(
                index=i,
                url=img["url"],
                width=img.get("width") or width,
                height=img.get("height") or height,
                seed=img.get("seed", data.get("seed")),
            )
            for i, img in enumerate(data.get("images", []))
        ]

        return GenerateResult(
            images=images,
            model_used=model,
            cost=self.get_cost_per_image(model) * options.count,
            provider=self.name,
        )

    def get_cost_per_image(self, model):
        return MODEL_COSTS.get(model, DEFAULT_COST)

    def list_models(self):
        return list(MODEL_COSTS)
