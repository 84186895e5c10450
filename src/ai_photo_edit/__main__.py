"""
Entry point for running AI Photo Edit as a module.

Usage:
    python -m ai_photo_edit [IMAGE]
"""

import sys

from ai_photo_edit.main import main

if __name__ == "__main__":
    sys.exit(main())
