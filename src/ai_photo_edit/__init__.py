"""
AI Photo Edit - Parametric photo adjustments with generative AI edits.
"""

__version__ = "0.1.0"
