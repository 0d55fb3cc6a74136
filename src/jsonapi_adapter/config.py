"""
Immutable adapter configuration.
"""

from __future__ import annotations

import os
import typing as t

from pydantic import BaseModel, ConfigDict, Field, field_validator

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

HOST_ENV_VAR = "JSONAPI_ADAPTER_HOST"
NAMESPACE_ENV_VAR = "JSONAPI_ADAPTER_NAMESPACE"
COALESCE_ENV_VAR = "JSONAPI_ADAPTER_COALESCE_FIND_REQUESTS"
TIMEOUT_ENV_VAR = "JSONAPI_ADAPTER_TIMEOUT_SECONDS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class AdapterConfig(BaseModel):
    """
    Settings shared by every component of one adapter instance.

    Attributes
    ----------
    coalesce_find_requests : bool
        Merge single-record fetches of one type issued in the same scheduling
        window into a single ``filter[id]`` request.
    default_content_type : str
        Content type given to body-bearing requests before JSON:API negotiation
        rewrites it.
    host : str | None
        Scheme and host prepended to every URL, e.g. ``https://api.example.com``.
    namespace : str | None
        Path prefix placed between host and resource path, e.g. ``api/v1``.
    headers : dict[str, str]
        Static headers added to every request.
    max_url_length : int
        Upper bound for a coalesced request URL; longer id lists are split.
    coalesce_window_seconds : float | None
        Fixed coalescing window. ``None`` flushes at the end of the current
        event-loop iteration.
    timeout_seconds : float
        Transport timeout.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    coalesce_find_requests: bool = False
    default_content_type: str = "application/json; charset=utf-8"
    host: str | None = None
    namespace: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    max_url_length: int = Field(default=2048, gt=0)
    coalesce_window_seconds: float | None = Field(default=None, ge=0)
    timeout_seconds: float = Field(default=30.0, gt=0)

    @field_validator("host")
    @classmethod
    def strip_host(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().rstrip("/") or None

    @field_validator("namespace")
    @classmethod
    def strip_namespace(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().strip("/") or None

    @classmethod
    def from_env(cls, **overrides: t.Any) -> AdapterConfig:
        """
        Build a configuration from ``JSONAPI_ADAPTER_*`` environment variables.

        Parameters
        ----------
        **overrides : typing.Any
            Explicit values; they win over the environment.

        Returns
        -------
        AdapterConfig
            Validated configuration.
        """
        values: dict[str, t.Any] = {}
        host = os.getenv(HOST_ENV_VAR)
        if host:
            values["host"] = host
        namespace = os.getenv(NAMESPACE_ENV_VAR)
        if namespace:
            values["namespace"] = namespace
        coalesce = os.getenv(COALESCE_ENV_VAR)
        if coalesce:
            values["coalesce_find_requests"] = coalesce.strip().lower() in _TRUTHY
        timeout = os.getenv(TIMEOUT_ENV_VAR)
        if timeout:
            values["timeout_seconds"] = float(timeout)
        values.update(overrides)
        return cls(**values)
