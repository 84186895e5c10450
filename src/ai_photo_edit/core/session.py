"""
Edit Session - The explicit context every editing operation runs against.

A session owns:
- The base image (filter-free, replaced wholesale, never mutated)
- The current filter vector
- The AI edit state machine (IDLE -> SUBMITTING -> IDLE | FAILED)
- The preview renderer for the current base image

Load, bake/export and AI submission are mutually exclusive. Filter
updates are synchronous and allowed at any time, including while an AI
edit is in flight; a successful edit resets them regardless.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Iterator

from ai_photo_edit.core.ai_edit import AIEditAdapter
from ai_photo_edit.core.data_types import ImageData, ImageMetadata
from ai_photo_edit.core.filter_state import (
    FilterVector,
    apply_preset,
    reset,
    set_channel,
)
from ai_photo_edit.core.render import PreviewRenderer, bake, export_image
from ai_photo_edit.core.settings import EditorSettings
from ai_photo_edit.errors import (
    DecodeFailure,
    EditorError,
    ExportFailure,
    NoImageLoaded,
    SessionBusy,
    UnsupportedFormat,
)
from ai_photo_edit.filters.filter_registry import Preset
from ai_photo_edit.providers.base import EmptyResponse, MissingCredential

logger = logging.getLogger(__name__)


class EditState(Enum):
    """State of the AI edit request."""
    IDLE = auto()
    SUBMITTING = auto()
    FAILED = auto()


class NotificationLevel(Enum):
    INFO = auto()
    SUCCESS = auto()
    ERROR = auto()


@dataclass(frozen=True)
class Notification:
    """A transient, dismissible message for the user."""
    level: NotificationLevel
    message: str


class EditSession:
    """
    Editing session for a single image.

    Usage:
        session = EditSession(adapter=AIEditAdapter.from_registry())
        await session.load_file("photo.jpg")
        session.set_channel("brightness", 150)
        path = await session.export()
    """

    def __init__(
        self,
        adapter: AIEditAdapter | None = None,
        settings: EditorSettings | None = None,
        on_notify: Callable[[Notification], None] | None = None,
    ):
        self.adapter = adapter
        self.settings = settings or EditorSettings()
        self._on_notify = on_notify

        self._base_image: ImageData | None = None
        self._filters = reset()
        self._preview: PreviewRenderer | None = None

        self._state = EditState.IDLE
        self._last_error: EditorError | None = None

        # Guards load / bake / AI submission against each other
        self._op_lock = threading.Lock()
        # Bumped whenever the base image is replaced or dropped
        self._generation = 0
        self._closed = False
        # Errors already turned into a notification on their way out
        self._reported: weakref.WeakSet[EditorError] = weakref.WeakSet()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def base_image(self) -> ImageData | None:
        return self._base_image

    @property
    def has_image(self) -> bool:
        return self._base_image is not None

    @property
    def filters(self) -> FilterVector:
        return self._filters

    @property
    def state(self) -> EditState:
        return self._state

    @property
    def last_error(self) -> EditorError | None:
        return self._last_error

    @property
    def is_busy(self) -> bool:
        return self._op_lock.locked()

    @property
    def is_closed(self) -> bool:
        return self._closed

    def set_notify_callback(self, callback: Callable[[Notification], None]) -> None:
        """Set the notification callback."""
        self._on_notify = callback

    def close(self) -> None:
        """Discard the image; late results of in-flight work are ignored."""
        self._closed = True
        self._generation += 1
        self._base_image = None
        self._preview = None
        self._filters = reset()

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_bytes(self, data: bytes, source_path: Path | None = None) -> ImageData:
        """
        Decode raw image bytes and make them the new base image.

        Raises:
            DecodeFailure, UnsupportedFormat, SurfaceUnavailable
            SessionBusy: If another operation is in flight
        """
        with self._reporting(), self._exclusive("load an image"):
            meta = ImageMetadata(source_path=source_path)
            image = await asyncio.to_thread(ImageData.from_bytes, data, meta)
            self._set_base_image(image)
            logger.info("Loaded %dx%d %s image", image.width, image.height, image.metadata.format)
            return image

    async def load_file(self, path: str | Path) -> ImageData:
        """Read an image file and make it the new base image."""
        path = Path(path)
        with self._reporting():
            try:
                data = await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                raise DecodeFailure(f"Failed to load image: {e}") from e
        return await self.load_bytes(data, source_path=path)

    def _set_base_image(self, image: ImageData) -> None:
        self._base_image = image
        self._filters = reset()
        self._preview = PreviewRenderer(image, max_edge=self.settings.preview_max_edge)
        self._generation += 1
        self._closed = False

    # -------------------------------------------------------------------------
    # Filters (synchronous, never exclusive)
    # -------------------------------------------------------------------------

    def set_channel(self, channel: str, value: float) -> FilterVector:
        with self._reporting():
            self._filters = set_channel(self._filters, channel, value)
        return self._filters

    def apply_preset(self, preset: Preset | str) -> FilterVector:
        with self._reporting():
            self._filters = apply_preset(self._filters, preset)
        return self._filters

    def reset_filters(self) -> FilterVector:
        self._filters = reset()
        return self._filters

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render_preview(self) -> ImageData:
        """Render the preview proxy with the current filters."""
        if self._preview is None:
            raise NoImageLoaded("No image loaded")
        return self._preview.render(self._filters)

    def preview_css(self) -> str:
        return PreviewRenderer.css(self._filters)

    async def bake_current(self) -> bytes:
        """Bake the current filters into a PNG of the base image."""
        with self._reporting(), self._exclusive("render the image"):
            image, vector = self._snapshot()
            return await asyncio.to_thread(bake, image, vector)

    async def export(self, directory: str | Path | None = None) -> Path:
        """
        Bake and save the current view as ``<prefix>-<epoch-millis>.png``.

        Returns:
            Path of the written file
        """
        with self._reporting(), self._exclusive("export"):
            image, vector = self._snapshot()
            target = Path(directory) if directory else self.settings.export_directory
            try:
                path = await asyncio.to_thread(
                    export_image, image, vector, target, self.settings.export_prefix
                )
            except OSError as e:
                raise ExportFailure(f"Failed to save image: {e}") from e

        self._notify(NotificationLevel.SUCCESS, "Image saved to gallery")
        return path

    def _snapshot(self) -> tuple[ImageData, FilterVector]:
        if self._base_image is None:
            raise NoImageLoaded("Load an image first")
        return self._base_image, self._filters

    # -------------------------------------------------------------------------
    # AI edit
    # -------------------------------------------------------------------------

    async def request_ai_edit(self, instruction: str) -> ImageData | None:
        """
        Send the rendered view and an instruction to the AI model.

        On success the returned image becomes the base image and filters
        reset to identity. If the session was closed while the request
        was in flight, the result is discarded and None is returned.

        Raises:
            EmptyInstruction: Before any network call, for a blank instruction
            SessionBusy: If an edit (or load/bake) is already in flight
            MissingCredential, EmptyResponse, TransportFailure
        """
        with self._reporting():
            prompt = AIEditAdapter.validate_instruction(instruction)
            if self._state is EditState.SUBMITTING:
                raise SessionBusy("An AI edit is already in progress")
            image, vector = self._snapshot()

        with self._reporting(), self._exclusive("start an AI edit"):
            self._state = EditState.SUBMITTING
            generation = self._generation
            try:
                new_image = await self._run_ai_edit(image, vector, prompt)
            except EditorError as e:
                self._state = EditState.FAILED
                self._last_error = e
                raise
            except Exception:
                self._state = EditState.FAILED
                logger.exception("AI edit failed unexpectedly")
                raise

            self._state = EditState.IDLE
            self._last_error = None

            if self._closed or generation != self._generation:
                logger.warning("Discarding AI edit result for a session that moved on")
                return None

            self._set_base_image(new_image)

        self._notify(NotificationLevel.SUCCESS, "AI Edit applied successfully!")
        return new_image

    async def _run_ai_edit(self, image: ImageData, vector: FilterVector, prompt: str) -> ImageData:
        if self.adapter is None:
            raise MissingCredential("AI editing is not configured")
        if not self.adapter.is_configured:
            raise MissingCredential("API Key is missing. Please check your environment configuration.")

        raster = await asyncio.to_thread(bake, image, vector)
        result = await self.adapter.request_edit(raster, prompt)

        meta = ImageMetadata(
            prompt=prompt,
            model=self.adapter.model.id if self.adapter.model else None,
        )
        try:
            return await asyncio.to_thread(ImageData.from_bytes, result, meta)
        except (DecodeFailure, UnsupportedFormat) as e:
            raise EmptyResponse(f"AI service returned an unusable image: {e}") from e

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @contextmanager
    def _exclusive(self, action: str) -> Iterator[None]:
        if not self._op_lock.acquire(blocking=False):
            raise SessionBusy(f"Cannot {action} while another operation is in progress")
        try:
            yield
        finally:
            self._op_lock.release()

    @contextmanager
    def _reporting(self) -> Iterator[None]:
        """Surface editor errors as notifications, then re-raise."""
        try:
            yield
        except EditorError as e:
            if e not in self._reported:
                self._reported.add(e)
                self._notify(NotificationLevel.ERROR, str(e))
            raise

    def _notify(self, level: NotificationLevel, message: str) -> None:
        if level is NotificationLevel.ERROR:
            logger.warning("%s", message)
        else:
            logger.info("%s", message)
        if self._on_notify:
            self._on_notify(Notification(level, message))
