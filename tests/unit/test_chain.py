"""
Tests for the filter chain description.
"""

from ai_photo_edit.core.filter_state import FilterVector
from ai_photo_edit.filters.chain import FilterChain, to_filter_chain


class TestFilterChain:

    def test_order_is_fixed(self):
        chain = to_filter_chain(FilterVector(hue_rotate=30, brightness=120))
        assert chain.operations == [
            "brightness", "contrast", "saturate", "grayscale", "sepia", "blur", "hue-rotate",
        ]
        assert len(chain) == 7

    def test_as_tuples(self):
        chain = FilterVector(brightness=150).to_filter_chain()
        assert chain.as_tuples() == [
            ("brightness", 150.0),
            ("contrast", 100.0),
            ("saturate", 100.0),
            ("grayscale", 0.0),
            ("sepia", 0.0),
            ("blur", 0.0),
            ("hue-rotate", 0.0),
        ]

    def test_css(self):
        chain = FilterVector(brightness=150, blur=2.5, hue_rotate=90).to_filter_chain()
        assert chain.css() == (
            "brightness(150%) contrast(100%) saturate(100%) grayscale(0%) "
            "sepia(0%) blur(2.5px) hue-rotate(90deg)"
        )

    def test_identity(self):
        assert FilterVector().to_filter_chain().is_identity
        assert not FilterVector(sepia=1).to_filter_chain().is_identity

    def test_deterministic(self):
        vector = FilterVector(contrast=80, grayscale=20)
        assert to_filter_chain(vector) == to_filter_chain(vector)

    def test_iterates_ops(self):
        chain = FilterVector(blur=3).to_filter_chain()
        assert isinstance(chain, FilterChain)
        blur = [op for op in chain if op.operation == "blur"][0]
        assert blur.magnitude == 3.0
        assert blur.unit == "px"
        assert not blur.is_identity
