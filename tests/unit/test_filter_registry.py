"""
Tests for channel and preset registration.
"""

import pytest

from ai_photo_edit.errors import UnknownChannel, UnknownPreset
from ai_photo_edit.filters.filter_registry import (
    Preset,
    get_channel,
    get_preset,
    identity_values,
    list_channels,
    list_presets,
)


class TestChannels:

    def test_seven_channels_in_chain_order(self):
        assert [c.operation for c in list_channels()] == [
            "brightness", "contrast", "saturate", "grayscale", "sepia", "blur", "hue-rotate",
        ]

    def test_lookup_by_name_or_key(self):
        assert get_channel("hue_rotate") is get_channel("hueRotate")

    def test_unknown_channel_is_key_error(self):
        with pytest.raises(KeyError):
            get_channel("vibrance")
        with pytest.raises(UnknownChannel):
            get_channel("vibrance")

    def test_ranges(self):
        assert (get_channel("brightness").min_value, get_channel("brightness").max_value) == (0, 200)
        assert (get_channel("sepia").min_value, get_channel("sepia").max_value) == (0, 100)
        assert get_channel("blur").max_value == 20
        assert get_channel("blur").unit == "px"
        assert get_channel("hueRotate").max_value == 360
        assert get_channel("hueRotate").unit == "deg"

    def test_clamp(self):
        spec = get_channel("contrast")
        assert spec.clamp(-1) == 0
        assert spec.clamp(250) == 200
        assert spec.clamp(140) == 140

    def test_identity_values(self):
        values = identity_values()
        assert values["brightness"] == 100
        assert values["hueRotate"] == 0
        assert len(values) == 7


class TestPresets:

    def test_builtin_presets(self):
        names = [p.name for p in list_presets()]
        assert names == ["Normal", "Noir", "Warmth", "Vintage", "Cyber"]

    def test_lookup_ignores_case_and_whitespace(self):
        assert get_preset("  cyber ") is get_preset("Cyber")

    def test_unknown_preset(self):
        with pytest.raises(UnknownPreset):
            get_preset("Lomo")

    def test_values_are_read_only(self):
        preset = get_preset("Vintage")
        with pytest.raises(TypeError):
            preset.values["sepia"] = 0

    def test_preset_rejects_unknown_channel(self):
        with pytest.raises(UnknownChannel):
            Preset(name="Bad", values={"exposure": 10})

    def test_cyber_values(self):
        values = get_preset("Cyber").values
        assert values["saturation"] == 180
        assert values["contrast"] == 130
        assert values["hueRotate"] == 15
