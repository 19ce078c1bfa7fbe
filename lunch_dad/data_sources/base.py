"""Interfaces and helpers shared by the provider clients."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

import requests
from pydantic import BaseModel, ValidationError

from lunch_dad.errors import DataContractError


class HttpResponse(Protocol):
    """The slice of requests.Response the clients rely on."""
    status_code: int

    def raise_for_status(self) -> None:
        """Raise requests.HTTPError for 4xx/5xx statuses."""
        ...

    def json(self) -> Any:
        """Decode the body as JSON."""
        ...


class HttpSession(Protocol):
    """Anything with a requests-compatible `get`."""

    def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """Issue a GET request."""
        ...


def build_session(user_agent: str) -> requests.Session:
    """Create a requests session that identifies itself and asks for JSON."""
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent, "Accept": "application/json"})
    return session


def decode_json(resp: HttpResponse, *, context: str) -> Any:
    """Decode a response body, turning undecodable payloads into DataContractError."""
    try:
        return resp.json()
    except ValueError as exc:
        raise DataContractError(f"{context}: response body is not valid JSON") from exc


def validate_payload(model: type[BaseModel], payload: Any, *, context: str):
    """Validate a decoded payload against a pydantic model at the deserialization boundary."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise DataContractError(f"{context}: unexpected response shape ({exc.error_count()} errors)") from exc
