"""
Shared utilities for the Overseer SDK.

This module provides the client configuration, the exception hierarchy,
the response base class and the base API client that every request
goes through.
"""

import json
import logging
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

import aiohttp
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__
from .types import HttpMethod, Headers


# Configure logging
logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "https://api.overseerai.app"
DEFAULT_TIMEOUT = 30.0


# ==================== Custom Exceptions ====================

class APIError(Exception):
    """Base exception for Overseer API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        response_text: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_text = response_text
        super().__init__(message)


class AuthenticationError(APIError):
    """Raised when the API key is rejected (HTTP 401)."""
    pass


class RateLimitError(APIError):
    """Raised when the API rate limit is exceeded (HTTP 429)."""

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs: Any):
        self.retry_after = retry_after
        super().__init__(message, **kwargs)


class RequestError(APIError):
    """Raised when the API answers with any other non-success status."""
    pass


class ResponseFormatError(APIError):
    """Raised when a successful response body has an unexpected shape."""
    pass


class InvalidInputError(APIError):
    """Raised when caller input is rejected before a request is made."""
    pass


# ==================== Configuration ====================

class OverseerSettings(BaseSettings):
    """Client settings read from ``OVERSEER_*`` environment variables."""
    api_key: str = ""
    organization_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    model_config = SettingsConfigDict(env_prefix="OVERSEER_", env_ignore_empty=True)


@dataclass(frozen=True)
class ClientConfig:
    """
    Connection settings for an Overseer client.

    Args:
        api_key: Overseer API key, sent as a bearer token
        organization_id: Optional organization, sent as ``X-Organization-ID``
        base_url: API root (defaults to https://api.overseerai.app)
        timeout: Total request timeout in seconds (default: 30)
    """
    api_key: str
    organization_id: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.api_key or not str(self.api_key).strip():
            raise InvalidInputError("API key cannot be empty")

        # frozen dataclass, normalise through object.__setattr__
        object.__setattr__(self, "base_url", (self.base_url or DEFAULT_BASE_URL).rstrip("/"))
        if not self.organization_id:
            object.__setattr__(self, "organization_id", None)

    @classmethod
    def from_env(cls, prefix: str = "OVERSEER_") -> "ClientConfig":
        """
        Build a config from environment variables.

        Reads ``<prefix>API_KEY``, ``<prefix>ORGANIZATION_ID``,
        ``<prefix>BASE_URL`` and ``<prefix>TIMEOUT``.

        Raises:
            InvalidInputError: If the API key is missing or a value does not parse
        """
        try:
            settings = OverseerSettings(_env_prefix=prefix)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid environment configuration: {e}") from e

        return cls(
            api_key=settings.api_key,
            organization_id=settings.organization_id,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )


# ==================== Response Base ====================

def _drop_none(items) -> Dict[str, Any]:
    return {key: value for key, value in items if value is not None}


class BaseResponse:
    """Mixin for dataclass models: dictionary and JSON export."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, leaving out unset fields."""
        return asdict(self, dict_factory=_drop_none)

    def to_json(self, indent: Optional[int] = None) -> str:
        """
        Convert to JSON string.

        Args:
            indent: Number of spaces for indentation (None for compact JSON)

        Returns:
            JSON string representation
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


# ==================== Base API Client ====================

class BaseAPI:
    """
    Base async client handling headers, sessions and error translation.

    The client can be used as an async context manager, in which case one
    pooled ``aiohttp.ClientSession`` serves every call inside the block.
    Outside a context manager each call opens and closes its own session.
    Calls are never retried.
    """

    DEFAULT_BASE_URL = DEFAULT_BASE_URL

    def __init__(
        self,
        api_key: Optional[str] = None,
        organization_id: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        config: Optional[ClientConfig] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Overseer API key (ignored when ``config`` is given)
            organization_id: Optional organization identifier
            base_url: API root (defaults to DEFAULT_BASE_URL)
            timeout: Request timeout in seconds (default: 30)
            config: Ready-made ClientConfig
        """
        if config is None:
            config = ClientConfig(
                api_key=api_key or "",
                organization_id=organization_id,
                base_url=base_url or self.DEFAULT_BASE_URL,
                timeout=timeout,
            )
        self.config = config
        self._timeout = aiohttp.ClientTimeout(total=config.timeout)
        self._session: Optional[aiohttp.ClientSession] = None

        logger.info(f"{type(self).__name__} client initialized for {config.base_url}")

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def organization_id(self) -> Optional[str]:
        return self.config.organization_id

    async def __aenter__(self):
        """Async context manager entry."""
        self._session = aiohttp.ClientSession(timeout=self._timeout)
        logger.debug("HTTP session created")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None
            logger.debug("HTTP session closed")
        return False

    def _get_headers(self) -> Headers:
        """Get request headers with authentication."""
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": f"overseer-python/{__version__}",
        }
        if self.config.organization_id:
            headers["X-Organization-ID"] = self.config.organization_id
        return headers

    async def _make_request(
        self,
        method: HttpMethod,
        endpoint: str,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Make one async request to the API and decode the JSON body.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            json: Request body, sent as JSON

        Returns:
            Decoded JSON body (None for an empty body)

        Raises:
            AuthenticationError: On HTTP 401
            RateLimitError: On HTTP 429
            RequestError: On any other non-success status
            ResponseFormatError: If the body is not valid JSON

        Transport errors raised by aiohttp propagate unchanged.
        """
        url = f"{self.config.base_url}{endpoint}"
        logger.debug(f"Making {method} request to {endpoint}")

        if self._session is not None:
            return await self._send(self._session, method, url, endpoint, json)

        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            return await self._send(session, method, url, endpoint, json)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        method: HttpMethod,
        url: str,
        endpoint: str,
        body: Optional[Any],
    ) -> Any:
        async with session.request(method, url, headers=self._get_headers(), json=body) as response:
            text = await response.text()

            if not 200 <= response.status < 300:
                self._raise_for_status(
                    response.status,
                    response.reason,
                    text,
                    endpoint,
                    retry_after=response.headers.get("Retry-After"),
                )

            logger.debug(f"Request successful: {method} {endpoint} ({response.status})")

        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            raise ResponseFormatError(
                "Invalid JSON response",
                status_code=response.status,
                endpoint=endpoint,
                response_text=text,
            )

    @staticmethod
    def _extract_error_message(text: str) -> Optional[str]:
        """Pull the server's error message out of a response body."""
        if not text or not text.strip():
            return None
        try:
            data = json.loads(text)
        except ValueError:
            return text.strip()

        if isinstance(data, dict):
            for key in ("error", "message", "detail"):
                value = data.get(key)
                if isinstance(value, str) and value:
                    return value
                if isinstance(value, dict) and isinstance(value.get("message"), str):
                    return value["message"]
            return None
        if isinstance(data, str) and data:
            return data
        return None

    def _raise_for_status(
        self,
        status: int,
        reason: Optional[str],
        text: str,
        endpoint: str,
        retry_after: Optional[str] = None,
    ) -> None:
        """Translate a non-success HTTP status into an APIError subclass."""
        server_message = self._extract_error_message(text)
        context = {"status_code": status, "endpoint": endpoint, "response_text": text}

        if status == 401:
            raise AuthenticationError(server_message or "Invalid API key", **context)

        if status == 429:
            try:
                delay = float(retry_after) if retry_after else None
            except ValueError:
                delay = None
            raise RateLimitError(server_message or "Rate limit exceeded", retry_after=delay, **context)

        raise RequestError(
            f"API request failed: {server_message or reason or f'HTTP {status}'}",
            **context,
        )
