"""
Filter Chain - The ordered effect list shared by preview and bake.

Both the live preview and the offline rasterizer consume the same
FilterChain, so their operation order and parameter semantics cannot
drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from ai_photo_edit.filters.filter_registry import ChannelSpec, list_channels

if TYPE_CHECKING:
    from ai_photo_edit.core.filter_state import FilterVector


@dataclass(frozen=True)
class FilterOp:
    """A single filter operation with its magnitude."""
    operation: str
    magnitude: float
    unit: str
    identity: float

    @property
    def is_identity(self) -> bool:
        return self.magnitude == self.identity

    def css(self) -> str:
        """Render as a CSS filter function, e.g. ``blur(2px)``."""
        return f"{self.operation}({_format_number(self.magnitude)}{self.unit})"

    def as_tuple(self) -> tuple[str, float]:
        return (self.operation, self.magnitude)


@dataclass(frozen=True)
class FilterChain:
    """Ordered, immutable sequence of filter operations."""
    ops: tuple[FilterOp, ...]

    def __iter__(self) -> Iterator[FilterOp]:
        return iter(self.ops)

    def __len__(self) -> int:
        return len(self.ops)

    @property
    def is_identity(self) -> bool:
        return all(op.is_identity for op in self.ops)

    @property
    def operations(self) -> list[str]:
        return [op.operation for op in self.ops]

    def css(self) -> str:
        """Declarative effect list for a live compositor."""
        return " ".join(op.css() for op in self.ops)

    def as_tuples(self) -> list[tuple[str, float]]:
        return [op.as_tuple() for op in self.ops]


def to_filter_chain(vector: FilterVector) -> FilterChain:
    """
    Describe a filter vector as an ordered filter chain.

    Order is fixed: brightness, contrast, saturate, grayscale, sepia,
    blur, hue-rotate.
    """
    return FilterChain(ops=tuple(
        _op_for(spec, getattr(vector, spec.name)) for spec in list_channels()
    ))


def _op_for(spec: ChannelSpec, value: float) -> FilterOp:
    return FilterOp(
        operation=spec.operation,
        magnitude=float(value),
        unit=spec.unit,
        identity=float(spec.identity),
    )


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:g}"
