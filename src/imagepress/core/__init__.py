"""Core request-assembly and image post-processing pipeline.

This package turns a generation request into an image file on disk:

- **pipeline**: ImagePipeline orchestrates a request through its states
- **provider**: the opaque ``generate(request) -> response`` capability
- **compression**: format decision, resize and encode
- **optimizers**: secondary, format-specific recompression passes
- **config**: ImagepressConfig loaded from IMAGEPRESS_* environment variables

Architecture Overview
---------------------
Stages, leaf first:

1. **Path allocation** (paths.py): collision-free ``name (N).ext`` paths
2. **Prompt composition** (prompt_composer.py): optional reasoning templates
3. **Reference loading** (reference_loader.py): concurrent, fail-fast reads
4. **Request assembly** (request_assembler.py): text part, then image parts
5. **Response extraction** (response_extractor.py): first inline image
6. **Compression** (compression.py, optimizers.py): format table, resize,
   primary encode, secondary optimization
7. **Orchestration** (pipeline.py): sequences the stages, writes the file,
   and reports a single text result

Supporting modules: models.py (request/response/outcome models), errors.py
(exception hierarchy), validation.py (tool argument validation), storage.py
(filesystem primitives), formatting.py (result messages).

Usage Example
-------------
    from imagepress.core import ImagePipeline, CallableProvider

    pipeline = ImagePipeline(CallableProvider(my_generate_fn))
    result = pipeline.run_arguments({"prompt": "a red cube"})
    print(result.message)
"""

from imagepress.core.config import ImagepressConfig, config
from imagepress.core.errors import (
    CodecError,
    ImagepressError,
    NoCandidatesError,
    NoImagePartError,
    ProviderError,
    ReferenceImageError,
    StorageError,
    ValidationError,
)
from imagepress.core.models import (
    ComposedRequest,
    CompressionParams,
    GenerationRequest,
    GenerationResponse,
    InlinePart,
    ProcessingOutcome,
    TextPart,
)
from imagepress.core.pipeline import ImagePipeline, PipelineResult, PipelineState, generate_image
from imagepress.core.provider import CallableProvider, ProviderAdapterBase, provider_registry

__all__ = [
    "CallableProvider",
    "CodecError",
    "ComposedRequest",
    "CompressionParams",
    "GenerationRequest",
    "GenerationResponse",
    "ImagePipeline",
    "ImagepressConfig",
    "ImagepressError",
    "InlinePart",
    "NoCandidatesError",
    "NoImagePartError",
    "PipelineResult",
    "PipelineState",
    "ProcessingOutcome",
    "ProviderAdapterBase",
    "ProviderError",
    "ReferenceImageError",
    "StorageError",
    "TextPart",
    "ValidationError",
    "config",
    "generate_image",
    "provider_registry",
]
