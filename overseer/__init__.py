"""
Overseer - Python SDK for the Overseer content moderation API
"""

__version__ = "0.1.0"

# Import shared configuration and errors
from .utils import (
    ClientConfig,
    APIError,
    AuthenticationError,
    RateLimitError,
    RequestError,
    ResponseFormatError,
    InvalidInputError,
)

# Expose the client at the package root
from .client import (
    OverseerAPI,
    ValidationRequest,
    ValidationResult,
    Issue,
    Policy,
)

__all__ = [
    "__version__",

    # Configuration
    "ClientConfig",

    # Client
    "OverseerAPI",
    "ValidationRequest",
    "ValidationResult",
    "Issue",
    "Policy",

    # Errors
    "APIError",
    "AuthenticationError",
    "RateLimitError",
    "RequestError",
    "ResponseFormatError",
    "InvalidInputError",
]
