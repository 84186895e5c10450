"""
Tests for AIEditAdapter precondition checks and result handling.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ai_photo_edit.core.ai_edit import AIEditAdapter
from ai_photo_edit.errors import EmptyInstruction, NoImageLoaded
from ai_photo_edit.providers.base import EditResult, EmptyResponse, MissingCredential, TransportFailure
from ai_photo_edit.providers.registry import BUILTIN_MODEL_CARDS

MODEL = BUILTIN_MODEL_CARDS["gemini-2.5-flash-image"]


def _provider(images=(b"edited",), configured=True):
    provider = MagicMock()
    provider.is_configured = configured
    provider.edit = AsyncMock(return_value=EditResult(
        images=list(images), model_id=MODEL.id, prompt="p",
    ))
    return provider


class TestValidateInstruction:

    def test_trims(self):
        assert AIEditAdapter.validate_instruction("  add a hat \n") == "add a hat"

    @pytest.mark.parametrize("instruction", ["", "   ", "\n\t", None])
    def test_blank_rejected(self, instruction):
        with pytest.raises(EmptyInstruction):
            AIEditAdapter.validate_instruction(instruction)


class TestRequestEdit:

    def test_blank_instruction_never_reaches_provider(self):
        provider = _provider()
        adapter = AIEditAdapter(provider, MODEL)
        with pytest.raises(EmptyInstruction):
            asyncio.run(adapter.request_edit(b"png", "   "))
        provider.edit.assert_not_awaited()

    def test_empty_raster(self):
        provider = _provider()
        with pytest.raises(NoImageLoaded):
            asyncio.run(AIEditAdapter(provider, MODEL).request_edit(b"", "add a hat"))
        provider.edit.assert_not_awaited()

    def test_missing_credential(self):
        provider = _provider(configured=False)
        with pytest.raises(MissingCredential, match="API Key is missing"):
            asyncio.run(AIEditAdapter(provider, MODEL).request_edit(b"png", "add a hat"))
        provider.edit.assert_not_awaited()

    def test_no_provider(self):
        adapter = AIEditAdapter(None, None)
        assert not adapter.is_configured
        with pytest.raises(MissingCredential):
            asyncio.run(adapter.request_edit(b"png", "add a hat"))

    def test_returns_first_image(self):
        provider = _provider(images=(b"one", b"two"))
        result = asyncio.run(AIEditAdapter(provider, MODEL).request_edit(b"png", " add a hat "))
        assert result == b"one"

        request = provider.edit.await_args.args[0]
        assert request.prompt == "add a hat"
        assert request.image == b"png"
        assert request.mime_type == "image/png"
        assert request.model is MODEL

    def test_no_images(self):
        provider = _provider(images=())
        with pytest.raises(EmptyResponse, match="No image generated"):
            asyncio.run(AIEditAdapter(provider, MODEL).request_edit(b"png", "add a hat"))

    def test_transport_failure_propagates(self):
        provider = _provider()
        provider.edit.side_effect = TransportFailure("Could not reach Google API")
        with pytest.raises(TransportFailure):
            asyncio.run(AIEditAdapter(provider, MODEL).request_edit(b"png", "add a hat"))
