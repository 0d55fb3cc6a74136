"""
Adapter-specific runtime exceptions.
"""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from jsonapi_adapter.request import RequestDescriptor


class JSONAPIAdapterError(Exception):
    """Base class for every error raised by the adapter."""


class InvalidTypeError(JSONAPIAdapterError, ValueError):
    """
    Raised when a resource type cannot be mapped to a URL path.

    Notes
    -----
    This error is raised synchronously while building a request, before any
    network call is attempted.
    """


class TransportError(JSONAPIAdapterError):
    """
    Network or HTTP failure reported by the transport.

    Parameters
    ----------
    message : str
        Human-readable failure summary.
    request : RequestDescriptor | None, optional
        Request that failed.
    status_code : int | None, optional
        HTTP status code, when the server answered.
    errors : list[dict[str, typing.Any]] | None, optional
        JSON:API error objects found in the response body.
    """

    def __init__(
        self,
        message: str,
        *,
        request: RequestDescriptor | None = None,
        status_code: int | None = None,
        errors: list[dict[str, t.Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.request = request
        self.status_code = status_code
        self.errors = errors or []


class RecordNotReturnedError(JSONAPIAdapterError, LookupError):
    """
    Raised when a response lacks the record the request was made for.

    Parameters
    ----------
    resource_type : str
        Resource type of the missing record.
    id : str | None, optional
        Identifier that was requested but not returned. ``None`` for a create
        whose server-assigned id was never received.
    """

    def __init__(self, *, resource_type: str, id: str | None = None) -> None:
        if id is None:
            message = f"Server did not return the created {resource_type!r} record"
        else:
            message = f"Server did not return {resource_type!r} record with id {id!r}"
        super().__init__(message)
        self.resource_type = resource_type
        self.id = id
