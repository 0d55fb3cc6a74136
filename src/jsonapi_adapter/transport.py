"""
Transport collaborator that issues ``RequestDescriptor`` objects over HTTP.
"""

from __future__ import annotations

import json
import typing as t

import httpx
import structlog

from jsonapi_adapter.exceptions import TransportError

if t.TYPE_CHECKING:
    from jsonapi_adapter.request import RequestDescriptor

log = structlog.get_logger(__name__)


class Transport(t.Protocol):
    """Shape required by the adapter to send requests."""

    async def send(self, request: RequestDescriptor) -> t.Any: ...


class HttpxTransport:
    """
    Send requests with ``httpx.AsyncClient``.

    Parameters
    ----------
    base_url : str, optional
        Base URL used to resolve root-relative request URLs.
    timeout_seconds : float, optional
        Client timeout.
    client_factory : typing.Callable[[], httpx.AsyncClient] | None, optional
        Factory returning a fresh client per request. Overrides ``base_url``
        and ``timeout_seconds`` when given.
    """

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 30.0,
        client_factory: t.Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._client_factory: t.Callable[[], httpx.AsyncClient] = (
            client_factory
            or (lambda: httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds))
        )

    async def send(self, request: RequestDescriptor) -> t.Any:
        """
        Send a request and decode its JSON body.

        Parameters
        ----------
        request : RequestDescriptor
            Request to send.

        Returns
        -------
        typing.Any
            Decoded JSON body, or ``None`` when the response has no content.

        Raises
        ------
        TransportError
            On network failure, timeout, or an HTTP error status.
        """
        content = None
        if request.body is not None:
            content = json.dumps(obj=request.body).encode(encoding="utf-8")

        log.debug(
            event="Sending request",
            method=request.method,
            url=request.url,
            query=request.flat_query(),
        )
        try:
            async with self._client_factory() as client:
                response = await client.request(
                    method=request.method,
                    url=request.url,
                    params=request.flat_query(),
                    headers=request.headers,
                    content=content,
                )
        except httpx.TimeoutException as error:
            log.error(event="Request timed out", method=request.method, url=request.url)
            raise TransportError(
                f"Request timed out: {request.method} {request.url}", request=request
            ) from error
        except httpx.HTTPError as error:
            log.error(
                event="Request failed",
                method=request.method,
                url=request.url,
                error=str(object=error),
            )
            raise TransportError(
                f"Request failed: {request.method} {request.url}: {error}", request=request
            ) from error

        if response.is_error:
            errors = self._extract_errors(response=response)
            log.error(
                event="Server returned error status",
                method=request.method,
                url=request.url,
                status_code=response.status_code,
                error_count=len(errors),
            )
            raise TransportError(
                f"{request.method} {request.url} returned {response.status_code}",
                request=request,
                status_code=response.status_code,
                errors=errors,
            )

        log.debug(
            event="Received response",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
        )
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as error:
            raise TransportError(
                f"{request.method} {request.url} returned a non-JSON body",
                request=request,
                status_code=response.status_code,
            ) from error

    @staticmethod
    def _extract_errors(*, response: httpx.Response) -> list[dict[str, t.Any]]:
        try:
            payload = response.json()
        except ValueError:
            return []
        if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
            return [error for error in payload["errors"] if isinstance(error, dict)]
        return []
