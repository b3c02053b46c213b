"""
HTTP API for the asset trail core.

- assets.py: asset lifecycle and history endpoints
"""

from .assets import bp as assets_bp

__all__ = ["assets_bp"]
