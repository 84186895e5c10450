"""
UI components for AI Photo Edit (PySide6).
"""
