"""
Integration Contract

This package provides the base class integrations subclass, and the
metadata types they use to declare requirements.
"""

from .base import Integration, Mapper, dispatch
from .models import InvalidMessageError, Requirement

__all__ = [
    "Integration",
    "Mapper",
    "dispatch",
    "Requirement",
    "InvalidMessageError",
]
