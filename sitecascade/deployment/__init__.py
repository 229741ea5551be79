"""
deployment/ - HTTP surface
"""

from .api import create_app, create_cascade_router

__all__ = [
    "create_app",
    "create_cascade_router",
]
