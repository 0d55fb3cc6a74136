"""
URL resolution for JSON:API resources.

Resource types are mapped to dash-cased, pluralized path segments; ids are
appended as path segments only for operations that target a single record.
"""

from __future__ import annotations

import typing as t
from urllib.parse import quote

import structlog

from jsonapi_adapter.exceptions import InvalidTypeError
from jsonapi_adapter.inflector import Inflector, dasherize

if t.TYPE_CHECKING:
    from jsonapi_adapter.config import AdapterConfig

log = structlog.get_logger(__name__)

Identifier = str | int
Operation = t.Literal[
    "find_record",
    "find_many",
    "find_all",
    "query",
    "create_record",
    "update_record",
    "delete_record",
]

SINGLE_RECORD_OPERATIONS: frozenset[str] = frozenset(
    {"find_record", "update_record", "delete_record"}
)


def normalize_id(id: Identifier) -> str:
    """
    Normalize a record identifier to its string form.

    Parameters
    ----------
    id : Identifier
        String or integer identifier.

    Returns
    -------
    str
        String identifier.
    """
    normalized = str(id)
    if not normalized:
        raise ValueError("Record id cannot be empty")
    return normalized


class URLResolver:
    """
    Build request URLs from resource types and ids.

    Parameters
    ----------
    inflector : Inflector | None, optional
        Inflector used to pluralize path segments. Defaults to English rules.
    host : str | None, optional
        Scheme and host prefix, without trailing slash.
    namespace : str | None, optional
        Path prefix, without surrounding slashes.
    """

    def __init__(
        self,
        *,
        inflector: Inflector | None = None,
        host: str | None = None,
        namespace: str | None = None,
    ) -> None:
        self.inflector = inflector or Inflector.english()
        self.host = host
        self.namespace = namespace

    @classmethod
    def from_config(
        cls, *, config: AdapterConfig, inflector: Inflector | None = None
    ) -> URLResolver:
        """Build a resolver using the host and namespace of ``config``."""
        return cls(inflector=inflector, host=config.host, namespace=config.namespace)

    def path_for_type(self, resource_type: str) -> str:
        """
        Map a resource type to its wire path segment.

        Parameters
        ----------
        resource_type : str
            Resource type such as ``"blogPost"`` or ``"blog-post"``.

        Returns
        -------
        str
            Dash-cased plural path segment, e.g. ``"blog-posts"``.

        Raises
        ------
        InvalidTypeError
            If ``resource_type`` is empty.
        """
        if not isinstance(resource_type, str) or not resource_type.strip():
            raise InvalidTypeError(f"Invalid resource type: {resource_type!r}")
        return self.inflector.pluralize(dasherize(resource_type.strip()))

    def url_prefix(self) -> str:
        """
        Return the host and namespace part shared by every URL.

        Returns
        -------
        str
            ``host/namespace`` or ``/namespace``; empty when neither is set.
        """
        parts: list[str] = []
        if self.host:
            parts.append(self.host)
        if self.namespace:
            parts.append(self.namespace)
        prefix = "/".join(parts)
        if not self.host and prefix:
            prefix = f"/{prefix}"
        return prefix

    def build_url(
        self,
        resource_type: str,
        ids: Identifier | t.Sequence[Identifier] | None = None,
        operation: Operation = "find_record",
    ) -> str:
        """
        Build the URL for an operation on a resource type.

        Parameters
        ----------
        resource_type : str
            Resource type of the targeted records.
        ids : Identifier | typing.Sequence[Identifier] | None, optional
            Record id, or ids for ``find_many``.
        operation : Operation, optional
            Operation the URL is built for.

        Returns
        -------
        str
            Absolute (with host) or root-relative URL.

        Raises
        ------
        InvalidTypeError
            If ``resource_type`` is empty.
        ValueError
            If a single-record operation does not receive exactly one id.
        """
        url = f"{self.url_prefix()}/{self.path_for_type(resource_type)}"

        if operation in SINGLE_RECORD_OPERATIONS:
            if ids is None or (not isinstance(ids, (str, int)) and len(ids) != 1):
                raise ValueError(f"Operation {operation!r} requires exactly one id")
            id = ids if isinstance(ids, (str, int)) else ids[0]
            url = f"{url}/{quote(normalize_id(id), safe='')}"

        log.debug(
            event="Built URL",
            resource_type=resource_type,
            operation=operation,
            url=url,
        )
        return url
