from __future__ import annotations

import logging
from typing import Any, FrozenSet, Mapping, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests import Response

from ..config import DEFAULT_USER_AGENT, ProviderConfig
from ..entities import Coordinates, RequestType


logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class ProviderError(RuntimeError):
    """Base provider error."""


class ProviderTimeout(ProviderError):
    """The provider did not answer within its timeout budget."""


class QuotaExceeded(ProviderError):
    """Raised when a provider reports a quota/usage limit issue."""


class ProviderHTTPError(ProviderError):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class MalformedPayload(ProviderError):
    """The response body does not match the provider's expected schema."""


class ProviderAdapter:
    """One external source: one HTTP exchange and one schema mapping.

    Subclasses implement a method per supported request type, named after the
    :class:`RequestType` value (``current``, ``forecast``, ``earthquakes`` ...),
    taking ``(location, options)`` and returning normalized entities. Adapters
    never retry; fallback belongs to the orchestrator.
    """

    request_types: FrozenSet[RequestType] = frozenset()

    def __init__(
        self,
        config: ProviderConfig,
        session: Optional[requests.Session] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self._log = logging.getLogger(self.__class__.__name__)

    # Identity -----------------------------------------------------------
    @property
    def name(self) -> str:
        return self.config.name

    @property
    def label(self) -> str:
        return self.config.label

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    @property
    def api_key(self) -> Optional[str]:
        return self.config.api_key

    @property
    def timeout(self) -> float:
        return self.config.timeout

    @property
    def requests_per_minute(self) -> int:
        return self.config.requests_per_minute

    # Contract -----------------------------------------------------------
    def supports(self, request_type: RequestType, location: Optional[Coordinates]) -> bool:
        return request_type in self.request_types

    def attempt_fetch(
        self,
        request_type: RequestType,
        location: Optional[Coordinates],
        options: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        method = getattr(self, RequestType(request_type).value, None)
        if request_type not in self.request_types or not callable(method):
            raise ProviderError(f"{request_type.value} is not supported")
        return method(location, dict(options or {}))

    def probe(self) -> None:
        """Issue one cheap request; raises :class:`ProviderError` when unreachable."""
        self._request("GET", self.base_url, timeout=min(self.timeout, 3.0))

    # HTTP helpers -------------------------------------------------------
    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text[:200])
            raise QuotaExceeded("quota exceeded")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderHTTPError(response.status_code)
        return response

    def _request(self, method: str, url: str, *, timeout: Optional[float] = None, **kwargs) -> Response:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        headers.update(kwargs.pop("headers", None) or {})
        budget = timeout if timeout is not None else self.timeout
        try:
            response = self.session.request(method, url, timeout=budget, headers=headers, **kwargs)
        except requests.Timeout as exc:
            self._log.error("Request timed out after %ss", budget)
            raise ProviderTimeout(f"timeout after {budget:g}s") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderError(f"request failed: {exc}") from exc
        return self._handle_response(response)

    def _get_json(self, url: str, **kwargs) -> Any:
        response = self._request("GET", url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise MalformedPayload("invalid json") from exc

    def _parse(self, schema: Type[SchemaT], payload: Any) -> SchemaT:
        try:
            return schema.model_validate(payload)
        except ValidationError as exc:
            self._log.error("Unexpected %s payload: %s", self.label, exc)
            raise MalformedPayload(f"unexpected response shape ({exc.error_count()} errors)") from exc


__all__ = [
    "MalformedPayload",
    "ProviderAdapter",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderTimeout",
    "QuotaExceeded",
]
