"""
Filter Registry - Adjustment channels and presets.

This module defines the ChannelSpec and Preset dataclasses describing the
seven adjustment channels (range, identity value, unit) and the named
looks that can be applied on top of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ai_photo_edit.errors import UnknownChannel, UnknownPreset


@dataclass(frozen=True)
class ChannelSpec:
    """
    Specification for an adjustment channel.

    Attributes:
        name: Attribute name on FilterVector (snake_case)
        key: Wire name used in dicts and presets (camelCase)
        label: Display label
        operation: Name of the filter operation in the chain
        min_value: Lowest accepted value
        max_value: Highest accepted value
        identity: Value at which the channel is a no-op
        unit: Unit of the magnitude in the chain ("%", "px", "deg")
        step: Slider step for the UI
    """
    name: str
    key: str
    label: str
    operation: str
    min_value: float
    max_value: float
    identity: float
    unit: str
    step: float = 1.0

    def clamp(self, value: float) -> float:
        """Clamp a value into this channel's range."""
        return max(self.min_value, min(self.max_value, value))


@dataclass(frozen=True)
class Preset:
    """
    A named look: a partial override of channel values.

    Attributes:
        name: Display name
        values: Channel key -> value, for the channels this preset sets
        description: Optional description for tooltip
    """
    name: str
    values: Mapping[str, float] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        for key in self.values:
            get_channel(key)
        # Freeze the mapping so shared presets cannot be edited in place
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


# Channels in chain order
_CHANNELS: dict[str, ChannelSpec] = {}
_PRESETS: dict[str, Preset] = {}


def _register(spec: ChannelSpec) -> ChannelSpec:
    """Register a channel specification."""
    _CHANNELS[spec.name] = spec
    return spec


def _register_preset(preset: Preset) -> Preset:
    """Register a preset."""
    _PRESETS[preset.name.lower()] = preset
    return preset


def get_channel(name: str) -> ChannelSpec:
    """
    Get a channel by attribute name or wire key.

    Raises:
        UnknownChannel: If no channel matches
    """
    spec = _CHANNELS.get(name)
    if spec is not None:
        return spec
    for spec in _CHANNELS.values():
        if spec.key == name:
            return spec
    raise UnknownChannel(f"Unknown filter channel: {name!r}")


def list_channels() -> list[ChannelSpec]:
    """Get all channels in chain order."""
    return list(_CHANNELS.values())


def identity_values() -> dict[str, float]:
    """Channel key -> identity value for every channel."""
    return {spec.key: spec.identity for spec in _CHANNELS.values()}


def get_preset(name: str) -> Preset:
    """
    Get a preset by name (case-insensitive).

    Raises:
        UnknownPreset: If no preset has that name
    """
    preset = _PRESETS.get(name.strip().lower())
    if preset is None:
        raise UnknownPreset(f"Unknown preset: {name!r}")
    return preset


def list_presets() -> list[Preset]:
    """Get all presets in declaration order."""
    return list(_PRESETS.values())


# =============================================================================
# CHANNELS
# =============================================================================

_register(ChannelSpec(
    name="brightness",
    key="brightness",
    label="Brightness",
    operation="brightness",
    min_value=0, max_value=200, identity=100, unit="%",
))

_register(ChannelSpec(
    name="contrast",
    key="contrast",
    label="Contrast",
    operation="contrast",
    min_value=0, max_value=200, identity=100, unit="%",
))

_register(ChannelSpec(
    name="saturation",
    key="saturation",
    label="Saturation",
    operation="saturate",
    min_value=0, max_value=200, identity=100, unit="%",
))

_register(ChannelSpec(
    name="grayscale",
    key="grayscale",
    label="Grayscale",
    operation="grayscale",
    min_value=0, max_value=100, identity=0, unit="%",
))

_register(ChannelSpec(
    name="sepia",
    key="sepia",
    label="Sepia",
    operation="sepia",
    min_value=0, max_value=100, identity=0, unit="%",
))

_register(ChannelSpec(
    name="blur",
    key="blur",
    label="Blur",
    operation="blur",
    min_value=0, max_value=20, identity=0, unit="px",
    step=0.5,
))

_register(ChannelSpec(
    name="hue_rotate",
    key="hueRotate",
    label="Hue Rotate",
    operation="hue-rotate",
    min_value=0, max_value=360, identity=0, unit="deg",
))


# =============================================================================
# PRESETS
# =============================================================================
# Each look starts from the identity values so applying it replaces the
# whole adjustment set, not just the channels it tweaks.

def _look(**overrides: float) -> dict[str, float]:
    values = identity_values()
    values.update(overrides)
    return values


_register_preset(Preset(
    name="Normal",
    values=_look(),
    description="No adjustments",
))

_register_preset(Preset(
    name="Noir",
    values=_look(grayscale=100, contrast=120, brightness=90),
    description="High-contrast black and white",
))

_register_preset(Preset(
    name="Warmth",
    values=_look(sepia=50, contrast=110, saturation=130),
    description="Warm, saturated tones",
))

_register_preset(Preset(
    name="Vintage",
    values=_look(sepia=30, brightness=110, saturation=80, contrast=90),
    description="Faded film look",
))

_register_preset(Preset(
    name="Cyber",
    values=_look(saturation=180, contrast=130, hueRotate=15),
    description="Punchy neon colors",
))
