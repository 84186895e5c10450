"""
Editor Settings - Tunables for export and preview.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


DEFAULT_EXPORT_DIR = Path.home() / "Pictures" / "AI_Photo_Edit"


@dataclass
class EditorSettings:
    """
    Editor-level settings.

    These are read once at startup; the UI may override the export
    directory per session.
    """
    # Export settings
    export_prefix: str = "ai-photo-edit"
    export_directory: Path = field(default_factory=lambda: DEFAULT_EXPORT_DIR)

    # Longest edge of the in-memory preview proxy
    preview_max_edge: int = 1600

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for serialization."""
        return {
            "export_prefix": self.export_prefix,
            "export_directory": str(self.export_directory),
            "preview_max_edge": self.preview_max_edge,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EditorSettings:
        """Create settings from dictionary."""
        return cls(
            export_prefix=data.get("export_prefix", "ai-photo-edit"),
            export_directory=Path(data["export_directory"]) if data.get("export_directory") else DEFAULT_EXPORT_DIR,
            preview_max_edge=int(data.get("preview_max_edge", 1600)),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EditorSettings:
        """Settings with ``AI_PHOTO_EDIT_*`` environment overrides applied."""
        env = os.environ if environ is None else environ
        settings = cls()
        if env.get("AI_PHOTO_EDIT_EXPORT_DIR"):
            settings.export_directory = Path(env["AI_PHOTO_EDIT_EXPORT_DIR"]).expanduser()
        if env.get("AI_PHOTO_EDIT_PREVIEW_MAX_EDGE"):
            settings.preview_max_edge = int(env["AI_PHOTO_EDIT_PREVIEW_MAX_EDGE"])
        return settings
