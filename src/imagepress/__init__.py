"""imagepress - prompt-to-image request assembly and post-processing."""

__version__ = "0.1.0"

from imagepress.core import (
    CallableProvider,
    GenerationRequest,
    GenerationResponse,
    ImagePipeline,
    ImagepressConfig,
    ProviderAdapterBase,
    config,
    generate_image,
)

__all__ = [
    "CallableProvider",
    "GenerationRequest",
    "GenerationResponse",
    "ImagePipeline",
    "ImagepressConfig",
    "ProviderAdapterBase",
    "config",
    "generate_image",
]
