"""
Domain service exports.

This package contains domain services for scene geometry calculations.
"""

from .bounds import BoundsService


__all__ = ["BoundsService"]
