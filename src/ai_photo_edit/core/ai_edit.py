"""
AI Edit Adapter - Sends the rendered view to a remote model.

The adapter checks its preconditions before touching the network, hands
the PNG and the instruction to a provider, and returns the single image
it gets back.
"""

from __future__ import annotations

import logging

from ai_photo_edit.errors import EmptyInstruction, NoImageLoaded
from ai_photo_edit.providers.base import (
    EditRequest,
    EmptyResponse,
    ImageEditProvider,
    MissingCredential,
    ModelCard,
)

logger = logging.getLogger(__name__)


class AIEditAdapter:
    """
    Bridge between the editor and an image-edit provider.

    Usage:
        adapter = AIEditAdapter.from_registry()
        png = await adapter.request_edit(baked_png, "make the sky purple")
    """

    def __init__(self, provider: ImageEditProvider | None, model: ModelCard | None):
        self.provider = provider
        self.model = model

    @classmethod
    def from_registry(cls, provider_id: str = "gemini") -> AIEditAdapter:
        """Build an adapter from the global provider registry."""
        from ai_photo_edit.providers import get_registry

        registry = get_registry()
        return cls(registry.get_provider(provider_id), registry.default_model(provider_id))

    @property
    def is_configured(self) -> bool:
        return self.provider is not None and self.model is not None and self.provider.is_configured

    @staticmethod
    def validate_instruction(instruction: str) -> str:
        """
        Return the trimmed instruction.

        Raises:
            EmptyInstruction: If nothing is left after trimming
        """
        prompt = (instruction or "").strip()
        if not prompt:
            raise EmptyInstruction("Describe the edit you want before generating")
        return prompt

    async def request_edit(self, raster: bytes, instruction: str) -> bytes:
        """
        Edit a rendered view according to a text instruction.

        Args:
            raster: PNG bytes of the baked current view
            instruction: Natural-language edit instruction

        Returns:
            PNG bytes of the edited image

        Raises:
            EmptyInstruction: Instruction is blank
            NoImageLoaded: No raster to edit
            MissingCredential: Remote access is not configured
            EmptyResponse: The service returned no image
            TransportFailure: Network or service failure
        """
        prompt = self.validate_instruction(instruction)
        if not raster:
            raise NoImageLoaded("Load an image before requesting an AI edit")
        if not self.is_configured:
            raise MissingCredential(
                "API Key is missing. Please check your environment configuration."
            )

        request = EditRequest(model=self.model, prompt=prompt, image=raster)
        result = await self.provider.edit(request)

        if not result.images:
            raise EmptyResponse("No image generated.")
        if len(result.images) > 1:
            logger.debug("Provider returned %d images; using the first", len(result.images))
        return result.images[0]
