"""
Tests for EditorSettings.
"""

from pathlib import Path

from ai_photo_edit.core.settings import DEFAULT_EXPORT_DIR, EditorSettings


def test_defaults():
    settings = EditorSettings()
    assert settings.export_prefix == "ai-photo-edit"
    assert settings.export_directory == DEFAULT_EXPORT_DIR
    assert settings.preview_max_edge == 1600


def test_env_overrides(tmp_path):
    settings = EditorSettings.from_env({
        "AI_PHOTO_EDIT_EXPORT_DIR": str(tmp_path),
        "AI_PHOTO_EDIT_PREVIEW_MAX_EDGE": "800",
    })
    assert settings.export_directory == tmp_path
    assert settings.preview_max_edge == 800


def test_empty_env_keeps_defaults():
    assert EditorSettings.from_env({}) == EditorSettings()


def test_dict_round_trip():
    settings = EditorSettings(export_prefix="edit", export_directory=Path("/tmp/out"), preview_max_edge=512)
    assert EditorSettings.from_dict(settings.to_dict()) == settings
