"""
Overseer API module for content moderation and policy management.

This module provides async access to the hosted Overseer moderation API.
"""

from .core import (
    # Main API Client
    OverseerAPI,

    # Data Models
    ValidationRequest,
    ValidationResult,
    Issue,
    Policy,
)

__all__ = [
    # Main API Client
    "OverseerAPI",

    # Data Models
    "ValidationRequest",
    "ValidationResult",
    "Issue",
    "Policy",
]
