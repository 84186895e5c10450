"""
Core module - Filter state, image data, rendering and the edit session.

This module provides the fundamental building blocks for AI Photo Edit:
- Filter State: The immutable adjustment vector
- Data Types: Decoded image container
- Render: Preview and bake rendering, export
- AI Edit: Adapter to remote image models
- Session: Explicit editing context
"""

from ai_photo_edit.core.filter_state import (
    FilterVector,
    apply_preset,
    reset,
    set_channel,
)

from ai_photo_edit.core.data_types import (
    ImageData,
    ImageMetadata,
    SUPPORTED_FORMATS,
)

from ai_photo_edit.core.render import (
    PreviewRenderer,
    bake,
    export_filename,
    export_image,
    render,
)

from ai_photo_edit.core.settings import EditorSettings

from ai_photo_edit.core.ai_edit import AIEditAdapter

from ai_photo_edit.core.session import (
    EditSession,
    EditState,
    Notification,
    NotificationLevel,
)


__all__ = [
    # filter_state.py
    "FilterVector",
    "apply_preset",
    "reset",
    "set_channel",
    # data_types.py
    "ImageData",
    "ImageMetadata",
    "SUPPORTED_FORMATS",
    # render.py
    "PreviewRenderer",
    "bake",
    "export_filename",
    "export_image",
    "render",
    # settings.py
    "EditorSettings",
    # ai_edit.py
    "AIEditAdapter",
    # session.py
    "EditSession",
    "EditState",
    "Notification",
    "NotificationLevel",
]
