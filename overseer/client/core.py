"""
Overseer API wrapper for content moderation and policy management.

This module provides an async interface to the hosted Overseer API,
allowing users to validate text against moderation policies and to list
and create policy configurations.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Union, FrozenSet

from ..types import (
    IssueType,
    Severity,
    PolicyStatus,
    ValidationPayload,
    ValidationResponseDict,
    CheckResponseDict,
    PolicyDict,
)
from ..utils import (
    BaseAPI,
    BaseResponse,
    ResponseFormatError,
    InvalidInputError,
)

logger = logging.getLogger(__name__)


VALIDATE_ENDPOINT = "/api/v1/validate"
CHECK_ENDPOINT = "/api/v1/responses/check"
POLICIES_ENDPOINT = "/api/v1/policies"

DEFAULT_POLICIES = ("safety",)
DEFAULT_ISSUE_TYPE = "safety"
DEFAULT_SEVERITY = "high"
DEFAULT_ISSUE_MESSAGE = "Content policy violation"
DEFAULT_REJECTION_TEXT = "Sorry, I can't help with that!"
SAFETY_CODE_PREFIX = "MLCommons"

ISSUE_TYPES = frozenset([
    "safety",
    "jailbreak",
    "data-protection",
    "compliance",
    "user-generated-content",
    "ai-decision",
    "minor-protection",
    "brand-safety",
    "operational-security",
])
SEVERITIES = frozenset(["low", "medium", "high"])


# ==================== Data Models ====================

@dataclass
class ValidationRequest:
    """Content to validate plus optional policy selectors."""
    content: str
    policies: Optional[List[str]] = None
    system_id: Optional[str] = None
    policy_id: Optional[str] = None
    policy_config: Optional[Dict[str, Any]] = None

    def to_payload(self) -> ValidationPayload:
        """Build the JSON body for the validate endpoint."""
        payload: ValidationPayload = {
            "content": self.content,
            "policies": list(self.policies) if self.policies is not None else list(DEFAULT_POLICIES),
        }
        if self.system_id is not None:
            payload["system_id"] = self.system_id
        if self.policy_id is not None:
            payload["policy_id"] = self.policy_id
        if self.policy_config is not None:
            payload["policy_config"] = self.policy_config
        return payload


@dataclass
class Issue(BaseResponse):
    """A policy violation attached to a denied validation result."""
    type: IssueType
    message: str
    severity: Severity = DEFAULT_SEVERITY
    code: Optional[str] = None
    category: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Union[ValidationResponseDict, CheckResponseDict]) -> "Issue":
        """
        Synthesize the Issue for a flagged response.

        Reads the top-level fields of a validate response, falling back to
        the ``details`` object used by the legacy check route. Only the
        first entry of ``reasons`` is used.
        """
        details = data.get("details") if isinstance(data.get("details"), dict) else None

        safety_code = data.get("safety_code")
        if safety_code is None and details:
            safety_code = details.get("safety_code")

        reasons = data.get("reasons")
        message = None
        if isinstance(reasons, list) and reasons and isinstance(reasons[0], str):
            message = reasons[0]
        if not message and details:
            message = details.get("reason")

        issue_type = data.get("type")
        severity = data.get("severity")

        return cls(
            type=issue_type if issue_type in ISSUE_TYPES else DEFAULT_ISSUE_TYPE,
            message=message or DEFAULT_ISSUE_MESSAGE,
            severity=severity if severity in SEVERITIES else DEFAULT_SEVERITY,
            code=safety_code,
            category=f"{SAFETY_CODE_PREFIX} {safety_code}" if safety_code else None,
            details=details,
        )


@dataclass
class ValidationResult(BaseResponse):
    """Outcome of a validation call."""
    valid: bool
    content: str
    issues: Optional[List[Issue]] = None
    safety_code: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @property
    def is_flagged(self) -> bool:
        return not self.valid

    @staticmethod
    def _is_flagged(data: Union[ValidationResponseDict, CheckResponseDict]) -> bool:
        if "is_flagged" in data:
            return bool(data["is_flagged"])
        return not data.get("is_allowed", True)

    @classmethod
    def from_dict(cls, data: ValidationResponseDict, content: str) -> "ValidationResult":
        """Create ValidationResult from a validate response."""
        flagged = cls._is_flagged(data)
        issue = Issue.from_dict(data) if flagged else None

        return cls(
            valid=not flagged,
            content=content,
            issues=[issue] if issue else None,
            safety_code=issue.code if issue else data.get("safety_code"),
            metadata=data.get("metadata"),
        )


@dataclass
class Policy(BaseResponse):
    """
    Server-side moderation policy.

    ``rules`` is kept as received: normally a tree keyed by category where
    each entry has an ``enabled`` flag plus category options, or the older
    list form of ``{"id", "type", "config"}`` entries. Fields the SDK does
    not know about are kept in ``extra`` and written back by ``to_dict()``.
    Keys the server sent, explicit nulls included, are written back even
    when their value is None.
    """
    name: Optional[str] = None
    id: Optional[str] = None
    description: Optional[str] = None
    status: Optional[PolicyStatus] = None
    rules: Optional[Union[Dict[str, Dict[str, Any]], List[Dict[str, Any]]]] = None
    regions: Optional[List[str]] = None
    use_types: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    _received: FrozenSet[str] = field(default=frozenset(), init=False, repr=False, compare=False)

    _FIELDS = ("id", "name", "description", "status", "rules", "regions", "use_types", "metadata")

    @classmethod
    def from_dict(cls, data: PolicyDict) -> "Policy":
        """Create Policy from API response dictionary."""
        policy = cls(
            name=data.get("name"),
            id=data.get("id"),
            description=data.get("description"),
            status=data.get("status"),
            rules=data.get("rules"),
            regions=data.get("regions"),
            use_types=data.get("use_types"),
            metadata=data.get("metadata"),
            extra={k: v for k, v in data.items() if k not in cls._FIELDS},
        )
        policy._received = frozenset(key for key in data if key in cls._FIELDS)
        return policy

    def to_dict(self) -> PolicyDict:
        data = dict(self.extra)
        for key in self._FIELDS:
            value = getattr(self, key)
            if value is not None or key in self._received:
                data[key] = value
        return data

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def enabled_categories(self) -> List[str]:
        """Categories switched on in the rule tree, in rule order."""
        if isinstance(self.rules, dict):
            return [
                category for category, rule in self.rules.items()
                if isinstance(rule, dict) and rule.get("enabled", False)
            ]
        if isinstance(self.rules, list):
            return [
                rule["type"] for rule in self.rules
                if isinstance(rule, dict) and "type" in rule and rule.get("enabled", True)
            ]
        return []

    def is_category_enabled(self, category: str) -> bool:
        return category in self.enabled_categories


# ==================== API Client ====================

class OverseerAPI(BaseAPI):
    """
    Async client for the Overseer content moderation API.

    Inherits from BaseAPI for common functionality including:
    - Session management
    - Header creation
    - Error translation

    Example:
        async with OverseerAPI(api_key="your_key") as client:
            result = await client.validate("Hello, how can I help you today?")
            print(result.valid)

            # Select policies and pass per-policy overrides
            result = await client.validate(
                "My card number is 4111 1111 1111 1111",
                policies=["safety", "data-protection"],
                policy_config={"data-protection": {"mask": True}},
            )
            if not result.valid:
                print(result.issues[0].message)

            policies = await client.get_policies()
            created = await client.create_policy({"name": "Strict", "rules": {}})
    """

    # __init__, __aenter__, __aexit__, _get_headers, _make_request inherited from BaseAPI

    async def validate(
        self,
        request: Union[ValidationRequest, str],
        policies: Optional[List[str]] = None,
        system_id: Optional[str] = None,
        policy_id: Optional[str] = None,
        policy_config: Optional[Dict[str, Any]] = None,
    ) -> ValidationResult:
        """
        Validate content against moderation policies.

        Args:
            request: A ValidationRequest, or the content string itself
            policies: Policy names to apply (defaults to ["safety"])
            system_id: Optional AI system identifier
            policy_id: Optional policy identifier
            policy_config: Per-policy overrides, sent verbatim

        Returns:
            ValidationResult; a denied result carries exactly one Issue

        Raises:
            InvalidInputError: If content is empty
            AuthenticationError: If the API key is rejected
            RateLimitError: If the rate limit is exceeded
            RequestError: If the request fails
        """
        if not isinstance(request, ValidationRequest):
            request = ValidationRequest(
                content=request,
                policies=policies,
                system_id=system_id,
                policy_id=policy_id,
                policy_config=policy_config,
            )

        if not request.content or not request.content.strip():
            raise InvalidInputError("Content cannot be empty")

        payload = request.to_payload()
        logger.info(f"Validating content against {payload['policies']}: {request.content[:50]}...")

        data = await self._make_request("POST", VALIDATE_ENDPOINT, json=payload)
        if not isinstance(data, dict):
            raise ResponseFormatError("Expected a JSON object", endpoint=VALIDATE_ENDPOINT)

        result = ValidationResult.from_dict(data, content=request.content)
        logger.info(f"Validation complete: valid={result.valid}, safety_code={result.safety_code}")
        return result

    async def check(self, text: str) -> ValidationResult:
        """
        Check AI-generated text through the legacy responses route.

        A denied result carries the server's replacement text (or a fixed
        refusal) instead of the original.

        Args:
            text: Text to check

        Returns:
            ValidationResult
        """
        if not text or not text.strip():
            raise InvalidInputError("Text cannot be empty")

        logger.info(f"Checking response text: {text[:50]}...")

        data = await self._make_request("POST", CHECK_ENDPOINT, json={"text": text, "rules": None})
        if not isinstance(data, dict):
            raise ResponseFormatError("Expected a JSON object", endpoint=CHECK_ENDPOINT)

        if not ValidationResult._is_flagged(data):
            return ValidationResult(valid=True, content=text, metadata=data.get("metadata"))

        issue = Issue.from_dict(data)
        logger.info(f"Response check complete: valid=False, safety_code={issue.code}")
        return ValidationResult(
            valid=False,
            content=data.get("text") or DEFAULT_REJECTION_TEXT,
            issues=[issue],
            safety_code=issue.code,
            metadata=data.get("metadata"),
        )

    async def get_policies(self) -> List[Policy]:
        """
        Get all policies configured for the account.

        Returns:
            List of Policy objects, in server order
        """
        data = await self._make_request("GET", POLICIES_ENDPOINT)
        if not isinstance(data, list):
            raise ResponseFormatError("Expected a JSON array of policies", endpoint=POLICIES_ENDPOINT)

        if not all(isinstance(item, dict) for item in data):
            raise ResponseFormatError("Expected every policy to be a JSON object", endpoint=POLICIES_ENDPOINT)

        policies = [Policy.from_dict(item) for item in data]
        logger.info(f"Retrieved {len(policies)} policies")
        return policies

    async def create_policy(self, policy: Union[Policy, PolicyDict]) -> Policy:
        """
        Create a new policy. The server assigns the identifier.

        Args:
            policy: Policy or plain dictionary, without an ``id``

        Returns:
            The created Policy as returned by the server

        Raises:
            InvalidInputError: If the policy already has an ``id``
        """
        body = policy.to_dict() if isinstance(policy, Policy) else policy
        if body.get("id") is not None:
            raise InvalidInputError("New policies must not carry an id")

        logger.info(f"Creating policy: {body.get('name')}")

        data = await self._make_request("POST", POLICIES_ENDPOINT, json=body)
        if not isinstance(data, dict):
            raise ResponseFormatError("Expected a JSON object", endpoint=POLICIES_ENDPOINT)

        created = Policy.from_dict(data)
        logger.info(f"Policy created: {created.id}")
        return created
