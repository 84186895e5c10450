"""
Provider Base - Shared types for remote image-edit services.

- ModelCard: what a remote model can do and which extra parameters it takes
- EditRequest / EditResult: one image plus instruction in, images out
- ImageEditProvider: the interface a service integration implements
- The provider error family, rooted at EditorError
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ai_photo_edit.errors import EditorError


@dataclass
class ModelCard:
    """
    Capabilities of one remote model.

    Attributes:
        id: Model id as the service expects it in the URL
        provider: Id of the provider that serves it
        name: Display name
        params: Names of the optional request parameters it understands
        param_options: Allowed values per parameter, where restricted
        param_defaults: Values sent when the caller gives none
    """
    id: str
    provider: str
    name: str
    params: set[str] = field(default_factory=set)
    param_options: dict[str, list[str]] = field(default_factory=dict)
    param_defaults: dict[str, Any] = field(default_factory=dict)

    def validate_params(self, params: dict[str, Any]) -> dict[str, Any]:
        """
        Merge ``params`` over the defaults, dropping names the model does
        not know and values outside its allowed options.
        """
        merged = {**self.param_defaults, **params}
        return {
            name: value for name, value in merged.items()
            if name in self.params
            and (name not in self.param_options or value in self.param_options[name])
        }


@dataclass
class EditRequest:
    """One image and the instruction describing how to change it."""
    model: ModelCard
    prompt: str
    image: bytes
    mime_type: str = "image/png"
    extra_params: dict[str, Any] = field(default_factory=dict)


@dataclass
class EditResult:
    images: list[bytes]  # PNG
    model_id: str
    prompt: str
    generation_time: float = 0.0  # seconds
    # Text the model sent alongside, or instead of, an image
    text: str | None = None


@dataclass
class ProviderConfig:
    api_key: str = ""
    enabled: bool = True
    base_url: str | None = None
    default_model: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class ProviderError(EditorError):
    """Failure talking to a remote image service."""
    pass


class MissingCredential(ProviderError):
    """No API key is configured."""
    pass


class EmptyResponse(ProviderError):
    """The service answered without a usable image."""
    pass


class TransportFailure(ProviderError):
    """Network failure or an error status from the service."""
    status: int | None = None


class AuthenticationError(TransportFailure):
    """The service rejected the API key."""
    pass


class RateLimitError(TransportFailure):
    """The service asked us to slow down."""
    retry_after: float | None = None


class ImageEditProvider(ABC):
    """
    Interface for a remote image-edit service.

    Subclasses set ``id``, ``name`` and ``base_url`` and implement
    ``edit``. Which models exist is described by ModelCards in the
    registry, not by the provider.
    """

    id: str = ""
    name: str = ""
    base_url: str = ""

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def api_key(self) -> str:
        return self.config.api_key

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @abstractmethod
    async def edit(self, request: EditRequest) -> EditResult:
        """
        Send one edit request.

        Raises:
            MissingCredential: If no API key is set
            EmptyResponse: If the reply carries no image
            TransportFailure: On network or HTTP errors (including the
                AuthenticationError and RateLimitError subclasses)
        """
        ...
