"""HTTP adapter – RemoteClient over httpx with typed failure classification."""
from __future__ import annotations

import json
from typing import Any

import httpx

from care_sync.adapters.session import Session
from care_sync.kernel.errors import (
    BaseError,
    ForbiddenError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationError,
)
from care_sync.kernel.types import Err, Ok, Result
from care_sync.observability.logging import get_logger

__all__ = ["RemoteClient", "classify_response"]

logger = get_logger(__name__)

VALIDATION_STATUSES = frozenset({400, 409, 422})


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return {}
    return body if isinstance(body, dict) else {}


def _field_errors(body: dict[str, Any]) -> list[dict[str, Any]]:
    raw = body.get("errors", body.get("details"))
    if isinstance(raw, list):
        return [e if isinstance(e, dict) else {"message": str(e)} for e in raw]
    if isinstance(raw, dict):
        return [{"field": k, "message": str(v)} for k, v in raw.items()]
    return []


def classify_response(response: httpx.Response, method: str, path: str) -> BaseError:
    """Map a non-2xx response onto the error taxonomy."""
    status = response.status_code
    body = _error_body(response)
    message = body.get("message") or body.get("error")
    detail = {"method": method, "path": path, "status_code": status}

    if status == 401:
        return UnauthorizedError(message or "Authentication required", detail=detail)
    if status == 403:
        return ForbiddenError(message or "Access denied", detail=detail)
    if status == 404:
        return NotFoundError(path, detail=detail)
    if status in VALIDATION_STATUSES:
        return ValidationError(message or "Request rejected", errors=_field_errors(body), detail=detail)
    return ServerError(message, status_code=status, detail=detail)


class RemoteClient:
    """Issue JSON calls against the care API; never raises for remote failures.

    Every authenticated call carries ``Authorization: Bearer <token>`` from
    the session. A missing credential fails fast without touching the
    network; a 401 is reported to ``session.on_unauthorized()``.
    """

    def __init__(
        self,
        base_url: str,
        session: Session,
        *,
        timeout: float = 10.0,
        **kwargs: Any,
    ) -> None:
        self._session = session
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, **kwargs)

    @property
    def session(self) -> Session:
        return self._session

    async def __aenter__(self) -> "RemoteClient":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._client.__aexit__(*args)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, **kwargs: Any) -> Result[Any, BaseError]:
        return await self.call("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> Result[Any, BaseError]:
        return await self.call("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> Result[Any, BaseError]:
        return await self.call("PUT", path, body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Result[Any, BaseError]:
        return await self.call("DELETE", path, **kwargs)

    async def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Result[Any, BaseError]:
        method = method.upper()
        headers = {"Accept": "application/json"}
        if authenticated:
            token = self._session.get_credential()
            if not token:
                logger.warning("remote_call_without_credential", method=method, path=path)
                self._session.on_unauthorized()
                return Err(UnauthorizedError("No authentication token found"))
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(
                method,
                path,
                json=body,
                params=params,
                headers=headers,
            )
        except httpx.TransportError as exc:
            logger.warning("remote_call_unreachable", method=method, path=path, error=repr(exc))
            return Err(NetworkError(f"{method} {path} unreachable: {exc}", cause=exc))

        if response.is_success:
            return self._decode(response, method, path)

        error = classify_response(response, method, path)
        logger.warning("remote_call_failed", method=method, path=path, status=response.status_code, error=error.code)
        if type(error) is UnauthorizedError:
            self._session.on_unauthorized()
        return Err(error)

    @staticmethod
    def _decode(response: httpx.Response, method: str, path: str) -> Result[Any, BaseError]:
        if response.status_code == 204 or not response.content:
            return Ok(None)
        try:
            return Ok(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return Err(
                MalformedResponseError(
                    f"{method} {path} returned a non-JSON body",
                    status_code=response.status_code,
                    cause=exc,
                )
            )
