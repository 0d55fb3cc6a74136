"""
Transport-agnostic request construction with JSON:API content negotiation.
"""

from __future__ import annotations

import typing as t
from dataclasses import dataclass, field

import structlog

from jsonapi_adapter.config import JSONAPI_MEDIA_TYPE, AdapterConfig
from jsonapi_adapter.urls import Identifier, URLResolver, normalize_id

log = structlog.get_logger(__name__)

HTTPMethod = t.Literal["GET", "POST", "PATCH", "DELETE"]
HeaderMiddleware = t.Callable[[dict[str, str]], None]

ACCEPT_HEADER = "Accept"
CONTENT_TYPE_HEADER = "Content-Type"


class RequestOptions(t.TypedDict, total=False):
    """
    Caller options accepted by ``RequestBuilder.build``.
    """

    query: dict[str, t.Any]
    body: t.Any
    headers: dict[str, str]
    content_type: str
    middlewares: t.Sequence[HeaderMiddleware]


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Description of one HTTP request, independent of the transport.

    Parameters
    ----------
    method : HTTPMethod
        HTTP verb.
    url : str
        Request URL without query string.
    query : dict[str, typing.Any]
        Nested query mapping, e.g. ``{"filter": {"id": "1,2"}}``.
    headers : dict[str, str]
        Final request headers.
    body : typing.Any
        JSON-serializable payload, or ``None`` for bodyless requests.
    """

    method: HTTPMethod
    url: str
    query: dict[str, t.Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: t.Any = None

    def header(self, name: str) -> str | None:
        """Return a header value using case-insensitive lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def content_type(self) -> str | None:
        return self.header(CONTENT_TYPE_HEADER)

    def flat_query(self) -> list[tuple[str, str]]:
        """
        Flatten the nested query into wire key/value pairs.

        Returns
        -------
        list[tuple[str, str]]
            Pairs such as ``[("filter[id]", "1,2")]``.
        """
        return flatten_query(self.query)


def flatten_query(query: t.Mapping[str, t.Any], *, prefix: str = "") -> list[tuple[str, str]]:
    """
    Flatten nested mappings into bracketed query keys.

    Nested mappings produce ``outer[inner]`` keys and sequences produce repeated
    ``key[]`` entries. A comma-joined string stays a single value.

    Parameters
    ----------
    query : typing.Mapping[str, typing.Any]
        Nested query mapping.
    prefix : str, optional
        Key prefix used while recursing.

    Returns
    -------
    list[tuple[str, str]]
        Flat query pairs in insertion order.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in query.items():
        full_key = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, t.Mapping):
            pairs.extend(flatten_query(value, prefix=full_key))
        elif isinstance(value, (list, tuple)):
            pairs.extend((f"{full_key}[]", _format_query_value(item)) for item in value)
        else:
            pairs.append((full_key, _format_query_value(value)))
    return pairs


def _format_query_value(value: t.Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_header(headers: dict[str, str], name: str, value: str) -> None:
    """
    Set a header, replacing any existing spelling of the same name.

    Parameters
    ----------
    headers : dict[str, str]
        Header mapping to mutate.
    name : str
        Header name.
    value : str
        Header value.
    """
    remove_header(headers, name)
    headers[name] = value


def remove_header(headers: dict[str, str], name: str) -> None:
    lowered = name.lower()
    for key in [key for key in headers if key.lower() == lowered]:
        del headers[key]


def accept_header_middleware(value: str = JSONAPI_MEDIA_TYPE) -> HeaderMiddleware:
    """
    Build a middleware that injects the ``Accept`` header.

    Parameters
    ----------
    value : str, optional
        Accepted media type.

    Returns
    -------
    HeaderMiddleware
        Middleware setting ``Accept`` to ``value``.
    """

    def inject_accept(headers: dict[str, str]) -> None:
        set_header(headers, ACCEPT_HEADER, value)

    return inject_accept


class RequestBuilder:
    """
    Produce ``RequestDescriptor`` objects for adapter operations.

    Parameters
    ----------
    config : AdapterConfig
        Adapter configuration.
    url_resolver : URLResolver | None, optional
        URL strategy. Defaults to a resolver built from ``config``.
    middlewares : typing.Sequence[HeaderMiddleware], optional
        Header middlewares applied to every request, after ``Accept`` injection
        and before per-request middlewares.
    """

    def __init__(
        self,
        *,
        config: AdapterConfig,
        url_resolver: URLResolver | None = None,
        middlewares: t.Sequence[HeaderMiddleware] = (),
    ) -> None:
        self.config = config
        self.url_resolver = url_resolver or URLResolver.from_config(config=config)
        self._middlewares = tuple(middlewares)

    def build(
        self,
        method: HTTPMethod,
        url: str,
        options: RequestOptions | None = None,
    ) -> RequestDescriptor:
        """
        Build a request with JSON:API headers.

        ``Accept`` is always forced to the JSON:API media type. ``Content-Type``
        is rewritten to the JSON:API media type only when the request already
        carries one, so bodyless requests never get a content type.

        Parameters
        ----------
        method : HTTPMethod
            HTTP verb.
        url : str
            Request URL.
        options : RequestOptions | None, optional
            Query, body, headers, content type, and extra header middlewares.

        Returns
        -------
        RequestDescriptor
            Fresh request description owned by the caller.
        """
        options = options or {}
        headers: dict[str, str] = {}
        for name, value in {**self.config.headers, **options.get("headers", {})}.items():
            set_header(headers, name, value)

        body = options.get("body")
        content_type = options.get("content_type")
        if content_type is None:
            content_type = self._content_type_from_headers(headers=headers)
        if content_type is None and body is not None and method != "GET":
            content_type = self.config.default_content_type

        remove_header(headers, CONTENT_TYPE_HEADER)
        if content_type:
            headers[CONTENT_TYPE_HEADER] = JSONAPI_MEDIA_TYPE

        pipeline = (
            accept_header_middleware(),
            *self._middlewares,
            *options.get("middlewares", ()),
        )
        for middleware in pipeline:
            middleware(headers)
        # Hooks can read Accept but never replace it.
        set_header(headers, ACCEPT_HEADER, JSONAPI_MEDIA_TYPE)

        descriptor = RequestDescriptor(
            method=method,
            url=url,
            query=dict(options.get("query", {})),
            headers=headers,
            body=body,
        )
        log.debug(
            event="Built request",
            method=method,
            url=url,
            has_body=body is not None,
            content_type=descriptor.content_type,
            middleware_count=len(pipeline),
        )
        return descriptor

    @staticmethod
    def _content_type_from_headers(*, headers: dict[str, str]) -> str | None:
        for key, value in headers.items():
            if key.lower() == CONTENT_TYPE_HEADER.lower():
                return value
        return None

    def build_find_record(self, resource_type: str, id: Identifier) -> RequestDescriptor:
        """Build ``GET /<types>/<id>``."""
        url = self.url_resolver.build_url(resource_type, id, "find_record")
        return self.build("GET", url)

    def build_find_many(
        self, resource_type: str, ids: t.Sequence[Identifier]
    ) -> RequestDescriptor:
        """
        Build ``GET /<types>?filter[id]=<ids>`` for several ids.

        Parameters
        ----------
        resource_type : str
            Resource type of the records.
        ids : typing.Sequence[Identifier]
            Ids, sent as one comma-separated value.

        Returns
        -------
        RequestDescriptor
            Multi-id fetch request.
        """
        if not ids:
            raise ValueError("find_many requires at least one id")
        normalized = [normalize_id(id) for id in ids]
        url = self.url_resolver.build_url(resource_type, normalized, "find_many")
        return self.build("GET", url, {"query": {"filter": {"id": ",".join(normalized)}}})

    def build_find_all(self, resource_type: str) -> RequestDescriptor:
        """Build ``GET /<types>``."""
        url = self.url_resolver.build_url(resource_type, None, "find_all")
        return self.build("GET", url)

    def build_query(self, resource_type: str, query: dict[str, t.Any]) -> RequestDescriptor:
        """Build ``GET /<types>`` with a caller-supplied query."""
        url = self.url_resolver.build_url(resource_type, None, "query")
        return self.build("GET", url, {"query": query})

    def build_create(self, resource_type: str, body: t.Any) -> RequestDescriptor:
        """Build ``POST /<types>`` with a serialized body."""
        url = self.url_resolver.build_url(resource_type, None, "create_record")
        return self.build("POST", url, {"body": body})

    def build_update(self, resource_type: str, id: Identifier, body: t.Any) -> RequestDescriptor:
        """
        Build ``PATCH /<types>/<id>`` with a serialized body.

        Parameters
        ----------
        resource_type : str
            Resource type of the record.
        id : Identifier
            Record id, appended to the path.
        body : typing.Any
            JSON:API document produced by the serializer.

        Returns
        -------
        RequestDescriptor
            Update request.
        """
        url = self.url_resolver.build_url(resource_type, id, "update_record")
        return self.build("PATCH", url, {"body": body})

    def build_delete(self, resource_type: str, id: Identifier) -> RequestDescriptor:
        """Build ``DELETE /<types>/<id>``."""
        url = self.url_resolver.build_url(resource_type, id, "delete_record")
        return self.build("DELETE", url)
