"""
Remote image-edit providers.

Importing the package registers every built-in provider (currently
Google Gemini) with the global registry:

    from ai_photo_edit.providers import get_registry

    registry = get_registry()
    registry.load_config()
    provider = registry.get_provider("gemini")
"""

from ai_photo_edit.providers.base import (
    AuthenticationError,
    EditRequest,
    EditResult,
    EmptyResponse,
    ImageEditProvider,
    MissingCredential,
    ModelCard,
    ProviderConfig,
    ProviderError,
    RateLimitError,
    TransportFailure,
)
from ai_photo_edit.providers.registry import (
    BUILTIN_MODEL_CARDS,
    ProviderRegistry,
    get_registry,
)
from ai_photo_edit.providers.gemini import GeminiProvider

get_registry().register_provider(GeminiProvider)


__all__ = [
    "AuthenticationError",
    "BUILTIN_MODEL_CARDS",
    "EditRequest",
    "EditResult",
    "EmptyResponse",
    "GeminiProvider",
    "ImageEditProvider",
    "MissingCredential",
    "ModelCard",
    "ProviderConfig",
    "ProviderError",
    "ProviderRegistry",
    "RateLimitError",
    "TransportFailure",
    "get_registry",
]
