"""
Generation provider boundary.

Exports: RunwayClient
"""

from .client import RunwayClient

__all__ = ["RunwayClient"]
