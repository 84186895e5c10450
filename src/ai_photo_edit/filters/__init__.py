"""
Filters module - Adjustment channels, presets, the filter chain and its
rasterizer.

The FilterChain is the single description shared by the live preview and
the baked export.
"""

from ai_photo_edit.filters.filter_registry import (
    ChannelSpec,
    Preset,
    get_channel,
    get_preset,
    list_channels,
    list_presets,
)
from ai_photo_edit.filters.chain import FilterChain, FilterOp, to_filter_chain
from ai_photo_edit.filters.rasterizer import Rasterizer, apply_filter_chain

__all__ = [
    "ChannelSpec",
    "Preset",
    "get_channel",
    "get_preset",
    "list_channels",
    "list_presets",
    "FilterChain",
    "FilterOp",
    "to_filter_chain",
    "Rasterizer",
    "apply_filter_chain",
]
