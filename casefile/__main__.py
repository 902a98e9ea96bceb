"""
Run the content tools.

Usage:
    python -m casefile validate content/
"""

import sys

from .cli import main

sys.exit(main())
