"""Request orchestration: from a generation request to a written image file.

The pipeline runs one request through a fixed sequence of states::

    IDLE -> LOADING_REFERENCES -> COMPOSING -> ASSEMBLING -> GENERATING
         -> EXTRACTING -> POST_PROCESSING -> ALLOCATING -> WRITING -> DONE

Any step can move the run to ``FAILED``. Both ``DONE`` and ``FAILED`` are
terminal: nothing is retried, and the caller may simply run the request
again.

The pipeline never raises. Every run ends in a ``PipelineResult`` carrying
the single text message the tool returns to its caller, either a success
description (output path, original and final size, transform) or a
description of the failure.

Usage Example
-------------
    >>> from imagepress.core.pipeline import ImagePipeline
    >>> from imagepress.core.provider import CallableProvider
    >>>
    >>> pipeline = ImagePipeline(CallableProvider(my_generate_fn))
    >>> result = pipeline.run_arguments({"prompt": "a red cube", "file_name": "cube"})
    >>> print(result.message)
    Image generated and compressed: output/images/cube.png
    Original size: 812.40KB, Final size: 96.18KB

Limitations
-----------
The output path is probed and then written in two steps. Two runs targeting
the same directory and base name at the same moment can pick the same path.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import pydantic

from .compression import detect_format, process_image
from .config import ImagepressConfig, config as default_config
from .errors import CodecError, ImagepressError, ProviderError
from .formatting import format_failure, format_success
from .models import ComposedRequest, GenerationRequest, GenerationResponse, ProcessingOutcome
from .optimizers import OptimizerRegistry
from .paths import allocate_unique_path
from .prompt_composer import compose_prompt
from .provider import ProviderAdapterBase
from .reference_loader import load_reference_images
from .request_assembler import assemble_request
from .response_extractor import extract_image
from .storage import FileSystem, local_fs
from .validation import parse_request

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    LOADING_REFERENCES = "loading_references"
    COMPOSING = "composing"
    ASSEMBLING = "assembling"
    GENERATING = "generating"
    EXTRACTING = "extracting"
    POST_PROCESSING = "post_processing"
    ALLOCATING = "allocating"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Outcome of one pipeline run.

    Attributes:
        success: True when the image was written
        message: Human-readable text returned to the caller
        state: Terminal state (DONE or FAILED)
        failed_state: State in which the failure happened, if any
        output_path: Written file, on success
        outcome: Compression engine result, on success
        error: The exception that ended the run, on failure
        history: States visited, in order
    """

    success: bool
    message: str
    state: PipelineState
    failed_state: PipelineState | None = None
    output_path: Path | None = None
    outcome: ProcessingOutcome | None = None
    error: BaseException | None = None
    history: tuple[PipelineState, ...] = ()


@dataclass
class _Run:
    """State tracker for a single request."""

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])

    def advance(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)


class ImagePipeline:
    """Orchestrates a generation request end to end.

    A pipeline holds only collaborators (provider, filesystem, optimizers,
    configuration); every run owns its own buffers, so one instance can serve
    requests one after another.

    Args:
        provider: Generation capability
        config: Configuration (defaults, model id, loader workers). Uses the
            global config when None.
        fs: Filesystem primitives (local filesystem when None)
        optimizers: Secondary optimizer registry (global registry when None)
    """

    def __init__(
        self,
        provider: ProviderAdapterBase,
        config: ImagepressConfig | None = None,
        fs: FileSystem | None = None,
        optimizers: OptimizerRegistry | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or default_config
        self.fs = fs or local_fs
        self.optimizers = optimizers

    def run_arguments(self, arguments: Mapping[str, Any]) -> PipelineResult:
        """Validate raw tool arguments and run the request.

        Invalid arguments end the run in FAILED without any processing.
        """
        try:
            request = parse_request(arguments, self.config)
        except ImagepressError as e:
            return self._failed(_Run(), e)
        return self.run(request)

    def run(self, request: GenerationRequest) -> PipelineResult:
        """Run a validated request to completion. Never raises."""
        run = _Run()
        logger.info(
            f"Starting generation: file_name={request.file_name}, "
            f"references={len(request.reference_image_paths)}, "
            f"enhanced={request.use_enhanced_prompt}, skip={request.skip_post_processing}"
        )

        try:
            output_path, outcome = self._execute(run, request)
        except ImagepressError as e:
            return self._failed(run, e)
        except Exception as e:
            logger.error(f"Unexpected error while {run.state.value}: {e}", exc_info=True)
            return self._failed(run, e)

        run.advance(PipelineState.DONE)
        message = format_success(output_path, outcome)
        logger.info(message.replace("\n", " | "))
        return PipelineResult(
            success=True,
            message=message,
            state=run.state,
            output_path=output_path,
            outcome=outcome,
            history=tuple(run.history),
        )

    def _execute(self, run: _Run, request: GenerationRequest) -> tuple[Path, ProcessingOutcome]:
        run.advance(PipelineState.LOADING_REFERENCES)
        image_parts = load_reference_images(
            request.reference_image_paths,
            fs=self.fs,
            max_workers=self.config.reference_load_workers,
        )

        run.advance(PipelineState.COMPOSING)
        prompt_text = compose_prompt(
            request.prompt,
            has_reference_images=request.has_reference_images,
            use_enhanced=request.use_enhanced_prompt,
        )

        run.advance(PipelineState.ASSEMBLING)
        composed = assemble_request(
            prompt_text,
            image_parts,
            model=self.config.model_id,
            response_modalities=self.config.response_modalities,
        )

        run.advance(PipelineState.GENERATING)
        response = self._generate(composed)

        run.advance(PipelineState.EXTRACTING)
        image_part = extract_image(response)
        try:
            raw_bytes = image_part.raw_bytes()
        except ValueError as e:
            raise CodecError(str(e)) from e

        run.advance(PipelineState.POST_PROCESSING)
        detected_format = detect_format(raw_bytes)
        outcome = process_image(raw_bytes, detected_format, request, optimizers=self.optimizers)

        run.advance(PipelineState.ALLOCATING)
        self.fs.ensure_directory(request.output_directory)
        output_path = allocate_unique_path(
            request.output_directory, request.file_name, outcome.extension, fs=self.fs
        )

        run.advance(PipelineState.WRITING)
        self.fs.write_file(output_path, outcome.final_bytes)
        return output_path, outcome

    def _generate(self, composed: ComposedRequest) -> GenerationResponse:
        logger.info(
            f"Calling provider '{self.provider.name}' with {len(composed.parts)} part(s), "
            f"model={composed.model}"
        )
        try:
            response = self.provider.generate(composed)
        except ImagepressError:
            raise
        except Exception as e:
            raise ProviderError(f"Generation request failed: {e}") from e

        if isinstance(response, GenerationResponse):
            return response
        try:
            return GenerationResponse.model_validate(response)
        except pydantic.ValidationError as e:
            raise ProviderError(f"Unexpected response from provider: {e}") from e

    def _failed(self, run: _Run, error: BaseException) -> PipelineResult:
        failed_state = run.state
        run.advance(PipelineState.FAILED)
        message = format_failure(error)
        logger.error(f"{message} (while {failed_state.value})")
        return PipelineResult(
            success=False,
            message=message,
            state=run.state,
            failed_state=failed_state,
            error=error,
            history=tuple(run.history),
        )


def generate_image(
    arguments: Mapping[str, Any],
    provider: ProviderAdapterBase,
    config: ImagepressConfig | None = None,
) -> str:
    """Run one request from raw tool arguments and return the text result."""
    return ImagePipeline(provider, config=config).run_arguments(arguments).message
