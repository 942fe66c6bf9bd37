"""
Type definitions for the Overseer SDK.

This module provides literals and TypedDict definitions describing
the JSON bodies exchanged with the Overseer API.
"""

from typing import Literal, Union, List, Optional, Dict, Any

from typing_extensions import NotRequired, TypedDict


# ==================== Common Literals ====================

HttpMethod = Literal["GET", "POST"]
"""HTTP methods supported by the API client."""

IssueType = Literal[
    "safety",
    "jailbreak",
    "data-protection",
    "compliance",
    "user-generated-content",
    "ai-decision",
    "minor-protection",
    "brand-safety",
    "operational-security",
]
"""Issue categories. ``safety`` is the generic policy-violation category."""

Severity = Literal["low", "medium", "high"]
"""Issue severity levels."""

PolicyStatus = Literal["active", "inactive", "archived"]
"""Lifecycle status of a server-side policy."""


# ==================== TypedDict Definitions ====================


class ValidationPayload(TypedDict):
    """Body sent to ``/api/v1/validate``."""
    content: str
    policies: List[str]
    system_id: NotRequired[str]
    policy_id: NotRequired[str]
    policy_config: NotRequired[Dict[str, Any]]


class ValidationResponseDict(TypedDict):
    """Body returned by ``/api/v1/validate``."""
    is_flagged: NotRequired[bool]
    is_allowed: NotRequired[bool]
    safety_code: NotRequired[Optional[str]]
    reasons: NotRequired[List[str]]
    type: NotRequired[str]
    severity: NotRequired[str]
    details: NotRequired[Dict[str, Any]]
    metadata: NotRequired[Dict[str, Any]]


class CheckResponseDetailsDict(TypedDict):
    reason: NotRequired[Optional[str]]
    safety_code: NotRequired[Optional[str]]


class CheckResponseDict(TypedDict):
    """Body returned by the legacy ``/api/v1/responses/check`` route."""
    is_allowed: bool
    text: NotRequired[str]
    details: NotRequired[CheckResponseDetailsDict]


class PolicyDict(TypedDict):
    """Policy object as stored on the server."""
    id: NotRequired[str]
    name: str
    description: NotRequired[str]
    status: NotRequired[PolicyStatus]
    rules: NotRequired[Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]]
    regions: NotRequired[List[str]]
    use_types: NotRequired[List[str]]
    metadata: NotRequired[Dict[str, Any]]


# ==================== Type Aliases ====================

JsonDict = Dict[str, Any]
"""JSON dictionary type."""

Headers = Dict[str, str]
"""HTTP headers dictionary."""


# ==================== Exports ====================

__all__ = [
    # Literals
    "HttpMethod",
    "IssueType",
    "Severity",
    "PolicyStatus",

    # TypedDict
    "ValidationPayload",
    "ValidationResponseDict",
    "CheckResponseDetailsDict",
    "CheckResponseDict",
    "PolicyDict",

    # Type Aliases
    "JsonDict",
    "Headers",
]
