"""
Errors - Exception taxonomy for the editing pipeline.

Every failure the editor surfaces derives from EditorError so the session
and UI can catch one type. Provider (network) errors live in
ai_photo_edit.providers.base and share the same root.
"""

from __future__ import annotations


class EditorError(Exception):
    """Base exception for all editor errors."""
    pass


class InvalidChannelValue(EditorError, ValueError):
    """A channel value is not a finite real number."""
    pass


class UnknownChannel(EditorError, KeyError):
    """Channel name is not one of the seven filter channels."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class UnknownPreset(EditorError, KeyError):
    """No preset registered under the given name."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class DecodeFailure(EditorError):
    """Source bytes are not a readable image."""
    pass


class UnsupportedFormat(EditorError):
    """Image decoded but its format is not accepted by the editor."""
    pass


class SurfaceUnavailable(EditorError):
    """A pixel surface could not be created for the image."""
    pass


class EmptyInstruction(EditorError, ValueError):
    """AI edit instruction is empty after trimming whitespace."""
    pass


class NoImageLoaded(EditorError):
    """Operation needs a base image but none is loaded."""
    pass


class SessionBusy(EditorError):
    """Another load, bake or AI edit is already in flight."""
    pass


class ExportFailure(EditorError):
    """The rendered view could not be written to disk."""
    pass
