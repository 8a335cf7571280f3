"""Generation provider capability and registry.

The pipeline never talks to a network API directly. It hands a
``ComposedRequest`` to a provider adapter and gets a ``GenerationResponse``
back. Transport, authentication and model-specific request shaping live in
the adapter, outside this package.

Provider Adapter Pattern
------------------------
Each adapter implements ``generate(request) -> GenerationResponse``. Any
exception it raises is reported by the pipeline as a ``ProviderError``.
Adapters are registered by name so the tool wiring can pick one from
configuration:

    >>> from imagepress.core.provider import ProviderAdapterBase, provider_registry
    >>>
    >>> class MyProvider(ProviderAdapterBase):
    ...     name = "my-provider"
    ...     description = "Calls my image API"
    ...
    ...     def generate(self, request):
    ...         payload = call_my_api(request)
    ...         return GenerationResponse.model_validate(payload)
    >>>
    >>> provider_registry.register(MyProvider)
    >>> provider = provider_registry.instantiate("my-provider", config)

For quick wiring or tests, ``CallableProvider`` wraps a plain function:

    >>> provider = CallableProvider(lambda request: response)
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from .config import ImagepressConfig
from .models import ComposedRequest, GenerationResponse

logger = logging.getLogger(__name__)


class ProviderAdapterBase(ABC):
    """Abstract base class for generation providers.

    Attributes
    ----------
    name : str
        Registry name of the provider
    description : str
        Brief description of the provider
    config : ImagepressConfig | None
        Configuration passed at instantiation
    """

    name: str = "Base Provider"
    description: str = "Base class for generation providers"

    def __init__(self, config: ImagepressConfig | None = None) -> None:
        self.config = config

    @abstractmethod
    def generate(self, request: ComposedRequest) -> GenerationResponse:
        """Send a composed request and return the provider's response.

        Raises
        ------
        Exception
            Any transport or provider failure. The pipeline wraps it as a
            ProviderError.
        """

    def get_provider_info(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}


class CallableProvider(ProviderAdapterBase):
    """Provider backed by a plain ``generate(request) -> response`` function."""

    name = "callable"
    description = "Wraps a generate(request) -> response function"

    def __init__(
        self,
        generate_fn: Callable[[ComposedRequest], GenerationResponse],
        config: ImagepressConfig | None = None,
    ) -> None:
        super().__init__(config)
        self._generate_fn = generate_fn

    def generate(self, request: ComposedRequest) -> GenerationResponse:
        return self._generate_fn(request)


class ProviderRegistry:
    """Registry for available provider adapters."""

    def __init__(self) -> None:
        self._providers: dict[str, type[ProviderAdapterBase]] = {}

    def register(self, provider_class: type[ProviderAdapterBase]) -> None:
        """Register a provider adapter class under its ``name``."""
        provider_name = provider_class.name
        if provider_name in self._providers:
            logger.warning(f"Provider '{provider_name}' is already registered, overwriting")

        self._providers[provider_name] = provider_class
        logger.info(f"Registered provider: {provider_name}")

    def instantiate(
        self, provider_name: str, config: ImagepressConfig | None = None
    ) -> ProviderAdapterBase:
        """Create an instance of a registered provider.

        Raises
        ------
        KeyError
            If provider_name is not registered
        """
        if provider_name not in self._providers:
            available = ", ".join(self.list_available())
            raise KeyError(
                f"Provider '{provider_name}' not found. Available providers: {available}"
            )
        return self._providers[provider_name](config=config)

    def list_available(self) -> list[str]:
        return list(self._providers.keys())


# Global provider registry instance
provider_registry = ProviderRegistry()
