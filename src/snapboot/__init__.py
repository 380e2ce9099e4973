"""
snapboot - application bootstrap and component lifecycle framework for asyncio.

This module provides a clean public surface for the framework.
Consumers should import from here for stable API access.
"""

from .api import *  # noqa: F401,F403
from .api import __all__

__version__ = "1.0.0"
