import enum
from imagegen.errors import ConfigurationError
from imagegen.services.providers.base import (  # noqa: F401
    GenerateOptions,
    GenerateResult,
    GeneratedImage,
    ImageProvider,
)


class ProviderName(str, enum.Enum):
    FAL = "fal"
    GEMINI = "gemini"
    # Accepted in configuration, no implementation yet
    REPLICATE = "replicate"
    TOGETHER = "together"
    HUGGINGFACE = "huggingface"


def create_provider(config):
    """Build the configured ImageProvider from app config."""
    try:
        name = ProviderName(config["PROVIDER_NAME"])
    except ValueError:
        raise ConfigurationError(f"Unknown provider: {config['PROVIDER_NAME']}")

    kwargs = {
        "api_key": config["PROVIDER_API_KEY"],
        "default_model": config.get("PROVIDER_DEFAULT_MODEL") or None,
    }
    if name is ProviderName.FAL:
        from imagegen.services.providers.fal import FalProvider

        return FalProvider(**kwargs)
    if name is ProviderName.GEMINI:
        from imagegen.services.providers.gemini import GeminiProvider

        return GeminiProvider(**kwargs)
    raise ConfigurationError(f"Provider {name.value!r} is not implemented")
