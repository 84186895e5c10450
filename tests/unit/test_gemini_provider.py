"""
Unit tests for GeminiProvider request building and response parsing.

No network access: the HTTP layer is patched out.
"""

import asyncio
import base64
from io import BytesIO
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
from PIL import Image

from ai_photo_edit.providers.base import (
    AuthenticationError,
    EditRequest,
    EmptyResponse,
    MissingCredential,
    ProviderConfig,
    RateLimitError,
    TransportFailure,
)
from ai_photo_edit.providers.gemini import GeminiProvider
from ai_photo_edit.providers.registry import BUILTIN_MODEL_CARDS


def _png(color=(255, 0, 0)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (2, 2), color).save(buf, format="PNG")
    return buf.getvalue()


def _request(**kwargs) -> EditRequest:
    return EditRequest(
        model=BUILTIN_MODEL_CARDS["gemini-2.5-flash-image"],
        prompt=kwargs.pop("prompt", "make it blue"),
        image=kwargs.pop("image", _png()),
        **kwargs,
    )


def _image_response(data: bytes, text: str | None = None) -> dict:
    parts = [{"inlineData": {"mimeType": "image/png", "data": base64.b64encode(data).decode()}}]
    if text:
        parts.insert(0, {"text": text})
    return {"candidates": [{"content": {"parts": parts}}]}


@pytest.fixture
def provider():
    return GeminiProvider(ProviderConfig(api_key="test-key"))


class TestBuildBody:

    def test_inline_image_then_text(self, provider):
        raster = _png()
        body = provider.build_body(_request(image=raster))
        parts = body["contents"][0]["parts"]
        assert parts[0]["inlineData"]["mimeType"] == "image/png"
        assert base64.b64decode(parts[0]["inlineData"]["data"]) == raster
        assert parts[1] == {"text": "make it blue"}
        assert body["generationConfig"]["responseModalities"] == ["Image"]
        assert "imageConfig" not in body["generationConfig"]

    def test_supported_params_forwarded(self, provider):
        body = provider.build_body(_request(extra_params={"aspectRatio": "16:9", "imageSize": "4K"}))
        # imageSize is not a parameter of the flash model
        assert body["generationConfig"]["imageConfig"] == {"aspectRatio": "16:9"}

    def test_invalid_param_value_dropped(self, provider):
        body = provider.build_body(_request(extra_params={"aspectRatio": "7:3"}))
        assert "imageConfig" not in body["generationConfig"]


class TestParseResponse:

    def test_first_image_part(self, provider):
        first, second = _png((0, 0, 255)), _png((0, 255, 0))
        data = _image_response(first, text="Here you go")
        data["candidates"][0]["content"]["parts"].append(
            {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(second).decode()}}
        )
        result = provider._parse_response(data, _request())
        assert result.images == [first]
        assert result.text == "Here you go"
        assert result.model_id == "gemini-2.5-flash-image"

    def test_data_url_prefix_stripped(self, provider):
        raster = _png()
        url = "data:image/png;base64," + base64.b64encode(raster).decode()
        data = {"candidates": [{"content": {"parts": [{"inlineData": {"data": url}}]}}]}
        assert provider._parse_response(data, _request()).images == [raster]

    def test_jpeg_is_normalised_to_png(self, provider):
        buf = BytesIO()
        Image.new("RGB", (2, 2), (9, 9, 9)).save(buf, format="JPEG")
        result = provider._parse_response(_image_response(buf.getvalue()), _request())
        assert result.images[0].startswith(b"\x89PNG")

    def test_no_candidates(self, provider):
        with pytest.raises(EmptyResponse, match="No image generated"):
            provider._parse_response({"candidates": []}, _request())

    def test_blocked_prompt(self, provider):
        with pytest.raises(EmptyResponse, match="SAFETY"):
            provider._parse_response({"promptFeedback": {"blockReason": "SAFETY"}}, _request())

    def test_text_only(self, provider):
        data = {"candidates": [{"content": {"parts": [{"text": "I cannot do that"}]}}]}
        with pytest.raises(EmptyResponse, match="I cannot do that"):
            provider._parse_response(data, _request())

    def test_unreadable_inline_image(self, provider):
        data = {"candidates": [{"content": {"parts": [
            {"inlineData": {"mimeType": "image/png", "data": base64.b64encode(b"junk").decode()}}
        ]}}]}
        with pytest.raises(EmptyResponse):
            provider._parse_response(data, _request())


class TestCheckError:

    def test_success_passes(self, provider):
        provider._check_error(200, {})

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth(self, provider, status):
        with pytest.raises(AuthenticationError) as exc_info:
            provider._check_error(status, {})
        assert exc_info.value.status == status

    def test_rate_limit(self, provider):
        with pytest.raises(RateLimitError) as exc_info:
            provider._check_error(429, {})
        assert exc_info.value.retry_after == 60
        assert isinstance(exc_info.value, TransportFailure)

    def test_server_error_message(self, provider):
        with pytest.raises(TransportFailure, match="backend exploded"):
            provider._check_error(500, {"error": {"message": "backend exploded"}})


class TestEdit:

    def test_missing_key(self):
        provider = GeminiProvider(ProviderConfig())
        with pytest.raises(MissingCredential):
            asyncio.run(provider.edit(_request()))

    def test_success(self, provider):
        edited = _png((1, 2, 3))
        with patch.object(provider, "_post", AsyncMock(return_value=_image_response(edited))) as post:
            result = asyncio.run(provider.edit(_request()))

        assert result.images == [edited]
        url = post.await_args.args[0]
        assert url.endswith("/models/gemini-2.5-flash-image:generateContent")

    def test_network_failure(self, provider):
        with patch(
            "ai_photo_edit.providers.gemini.aiohttp.ClientSession",
            side_effect=aiohttp.ClientConnectionError("connection refused"),
        ):
            with pytest.raises(TransportFailure, match="Could not reach Google API"):
                asyncio.run(provider.edit(_request()))

    @pytest.mark.parametrize("extra,expected", [({}, None), ({"timeout": 30}, 30)])
    def test_request_timeout(self, extra, expected):
        provider = GeminiProvider(ProviderConfig(api_key="k", extra=extra))
        with patch(
            "ai_photo_edit.providers.gemini.aiohttp.ClientSession",
            side_effect=aiohttp.ClientConnectionError("offline"),
        ) as session_cls:
            with pytest.raises(TransportFailure):
                asyncio.run(provider.edit(_request()))
        assert session_cls.call_args.kwargs["timeout"].total == expected

    def test_base_url_override(self):
        provider = GeminiProvider(ProviderConfig(api_key="k", base_url="http://localhost:9000"))
        assert provider.base_url == "http://localhost:9000"
