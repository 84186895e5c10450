"""
Google Gemini Provider - image editing through ``:generateContent``.

One request carries the rendered photo as an inline PNG followed by the
instruction text; the reply's first inline image is the result.

API reference: https://ai.google.dev/gemini-api/docs/image-generation
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
import time
from io import BytesIO
from typing import Any

import aiohttp
from PIL import Image, UnidentifiedImageError

from ai_photo_edit.providers.base import (
    AuthenticationError,
    EditRequest,
    EditResult,
    EmptyResponse,
    ImageEditProvider,
    MissingCredential,
    ProviderConfig,
    RateLimitError,
    TransportFailure,
)

logger = logging.getLogger(__name__)


DEFAULT_MODEL = "gemini-2.5-flash-image"

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")

# Request parameters forwarded inside generationConfig.imageConfig
_IMAGE_CONFIG_PARAMS = ("aspectRatio", "imageSize")


class GeminiProvider(ImageEditProvider):
    """Google Gemini image models."""

    id = "gemini"
    name = "Google Gemini"
    base_url = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, config: ProviderConfig):
        super().__init__(config)
        if config.base_url:
            self.base_url = config.base_url

    async def edit(self, request: EditRequest) -> EditResult:
        if not self.is_configured:
            raise MissingCredential(
                "Gemini API key is missing. Set GEMINI_API_KEY or add it to providers.json."
            )

        endpoint = f"{self.base_url}/models/{request.model.id}:generateContent"

        logger.info("Requesting Gemini edit with %s", request.model.id)
        started = time.perf_counter()
        reply = await self._post(endpoint, self.build_body(request))
        result = self._parse_response(reply, request)
        result.generation_time = time.perf_counter() - started
        logger.info("Gemini edit finished in %.1fs", result.generation_time)
        return result

    def build_body(self, request: EditRequest) -> dict[str, Any]:
        """The JSON body for ``:generateContent``: image part first, then text."""
        params = request.model.validate_params(request.extra_params)
        encoded = base64.b64encode(request.image).decode("ascii")

        generation_config: dict[str, Any] = {"responseModalities": ["Image"]}
        image_config = {name: params[name] for name in _IMAGE_CONFIG_PARAMS if name in params}
        if image_config:
            generation_config["imageConfig"] = image_config

        return {
            "contents": [{
                "parts": [
                    {"inlineData": {"mimeType": request.mime_type, "data": encoded}},
                    {"text": request.prompt},
                ],
            }],
            "generationConfig": generation_config,
        }

    def _parse_response(self, data: dict, request: EditRequest) -> EditResult:
        """
        Pull the first inline image (and first text part) out of a reply.

        Raises:
            EmptyResponse: Blocked prompt, no candidates/parts, or no image
        """
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise EmptyResponse(f"No image generated: request blocked ({block_reason})")

        candidates = data.get("candidates") or []
        content = (candidates[0].get("content") or {}) if candidates else {}
        parts = content.get("parts") or []
        if not parts:
            raise EmptyResponse("No image generated.")

        inline = next((p["inlineData"] for p in parts if "inlineData" in p), None)
        text = next((p["text"] for p in parts if p.get("text")), None)

        if inline is None:
            suffix = f": {text}" if text else ""
            raise EmptyResponse(f"Unexpected response format from Gemini{suffix}")

        return EditResult(
            images=[self._decode_inline(inline)],
            model_id=request.model.id,
            prompt=request.prompt,
            text=text,
        )

    def _decode_inline(self, inline_data: dict) -> bytes:
        """Decode an inline image part, re-encoding to PNG when needed."""
        payload = _DATA_URL_PREFIX.sub("", inline_data.get("data", ""))
        try:
            raw = base64.b64decode(payload, validate=True)
            image = Image.open(BytesIO(raw))
            image.load()
        except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as e:
            raise EmptyResponse("Gemini returned an unreadable image") from e

        if image.format == "PNG":
            return raw
        out = BytesIO()
        image.save(out, format="PNG")
        return out.getvalue()

    async def _post(self, url: str, body: dict) -> dict:
        """POST ``body`` as JSON; the API key travels as the ``key`` query parameter."""
        # No overall deadline unless the config asks for one
        timeout = aiohttp.ClientTimeout(total=self.config.extra.get("timeout"))

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(url, params={"key": self.api_key}, json=body) as resp:
                    try:
                        data = await resp.json(content_type=None)
                    except ValueError:
                        data = None
                    self._check_error(resp.status, data if isinstance(data, dict) else {})
                    if not isinstance(data, dict):
                        raise TransportFailure("Google API returned a malformed response")
                    return data
        except aiohttp.ClientError as e:
            raise TransportFailure(f"Could not reach Google API: {e}") from e
        except asyncio.TimeoutError as e:
            raise TransportFailure("Google API request timed out") from e

    def _check_error(self, status: int, data: dict) -> None:
        """Raise the typed error for a failing HTTP status."""
        if status < 400:
            return
        if status in (401, 403):
            error: TransportFailure = AuthenticationError("Invalid Google API key")
        elif status == 429:
            error = RateLimitError("Google API rate limit exceeded")
            error.retry_after = 60
        else:
            message = (data.get("error") or {}).get("message", "Unknown error")
            error = TransportFailure(f"Google API error: {message}")
        error.status = status
        raise error
