"""
Filter State - The immutable adjustment vector and its pure operations.

A FilterVector holds one value per adjustment channel. Every operation
returns a new vector; none mutate their input. Values are clamped into
each channel's range, but non-finite input is rejected.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

from ai_photo_edit.errors import InvalidChannelValue
from ai_photo_edit.filters.chain import FilterChain, to_filter_chain
from ai_photo_edit.filters.filter_registry import (
    Preset,
    get_channel,
    get_preset,
    list_channels,
)


def _coerce(channel: str, value: Any) -> float:
    """Validate and clamp a raw value for the named channel."""
    spec = get_channel(channel)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidChannelValue(
            f"{spec.key} must be a number, got {type(value).__name__}"
        )
    value = float(value)
    if not math.isfinite(value):
        raise InvalidChannelValue(f"{spec.key} must be finite, got {value}")
    return spec.clamp(value)


@dataclass(frozen=True)
class FilterVector:
    """
    Seven independent adjustment channels.

    Attributes:
        brightness: Percent, 0-200 (identity 100)
        contrast: Percent, 0-200 (identity 100)
        saturation: Percent, 0-200 (identity 100)
        grayscale: Percent, 0-100 (identity 0)
        sepia: Percent, 0-100 (identity 0)
        blur: Pixels, 0-20 (identity 0)
        hue_rotate: Degrees, 0-360 (identity 0)
    """
    brightness: float = 100.0
    contrast: float = 100.0
    saturation: float = 100.0
    grayscale: float = 0.0
    sepia: float = 0.0
    blur: float = 0.0
    hue_rotate: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _coerce(f.name, getattr(self, f.name)))

    @classmethod
    def identity(cls) -> FilterVector:
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FilterVector:
        """
        Build a vector from channel keys (camelCase or snake_case).

        Missing channels take their identity value; values are clamped.

        Raises:
            UnknownChannel: For keys that are not channels
            InvalidChannelValue: For non-finite or non-numeric values
        """
        kwargs = {get_channel(key).name: value for key, value in data.items()}
        return cls(**kwargs)

    def to_dict(self) -> dict[str, float]:
        """Channel wire key -> value."""
        return {spec.key: getattr(self, spec.name) for spec in list_channels()}

    def get(self, channel: str) -> float:
        return getattr(self, get_channel(channel).name)

    @property
    def is_identity(self) -> bool:
        return all(getattr(self, s.name) == s.identity for s in list_channels())

    def to_filter_chain(self) -> FilterChain:
        return to_filter_chain(self)


def set_channel(vector: FilterVector, channel: str, value: float) -> FilterVector:
    """
    Return a copy of ``vector`` with one channel changed.

    The value is clamped to the channel's range.

    Raises:
        UnknownChannel: If ``channel`` is not a filter channel
        InvalidChannelValue: If ``value`` is NaN, infinite or not a number
    """
    spec = get_channel(channel)
    return replace(vector, **{spec.name: _coerce(spec.name, value)})


def apply_preset(vector: FilterVector, preset: Preset | str) -> FilterVector:
    """
    Overwrite the channels named by a preset, keeping the rest.

    ``preset`` may be a Preset or a registered preset name.
    """
    if isinstance(preset, str):
        preset = get_preset(preset)
    if not preset.values:
        return vector
    changes = {get_channel(key).name: value for key, value in preset.values.items()}
    return replace(vector, **changes)


def reset() -> FilterVector:
    """The identity vector."""
    return FilterVector()
