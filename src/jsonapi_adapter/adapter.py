"""
Public adapter surface consumed by a record store.
"""

from __future__ import annotations

import typing as t

import structlog

from jsonapi_adapter.coalescing import CoalescingController, RecordFuture
from jsonapi_adapter.config import AdapterConfig
from jsonapi_adapter.exceptions import RecordNotReturnedError
from jsonapi_adapter.inflector import Inflector
from jsonapi_adapter.models import ResourceObject, Snapshot
from jsonapi_adapter.request import HeaderMiddleware, RequestBuilder
from jsonapi_adapter.scheduler import EventLoopScheduler, Scheduler
from jsonapi_adapter.serializer import JSONAPISerializer, Serializer
from jsonapi_adapter.transport import HttpxTransport, Transport
from jsonapi_adapter.urls import Identifier, URLResolver, normalize_id

log = structlog.get_logger(__name__)

SnapshotLike = Snapshot | t.Mapping[str, t.Any]


class JSONAPIAdapter:
    """
    Translate record operations into JSON:API requests.

    Every collaborator is a strategy object: pass a different URL resolver,
    transport, serializer, or scheduler to change behavior.

    Parameters
    ----------
    config : AdapterConfig | None, optional
        Adapter configuration. Defaults to ``AdapterConfig()``.
    transport : Transport | None, optional
        Transport. Defaults to ``HttpxTransport`` with the configured timeout.
    serializer : Serializer | None, optional
        Serializer. Defaults to ``JSONAPISerializer``.
    scheduler : Scheduler | None, optional
        Coalescing window scheduler. Defaults to ``EventLoopScheduler``.
    url_resolver : URLResolver | None, optional
        URL strategy. Defaults to a resolver built from ``config``.
    inflector : Inflector | None, optional
        Inflector shared by the default URL resolver and serializer.
    middlewares : typing.Sequence[HeaderMiddleware], optional
        Header middlewares applied to every request.
    """

    def __init__(
        self,
        config: AdapterConfig | None = None,
        *,
        transport: Transport | None = None,
        serializer: Serializer | None = None,
        scheduler: Scheduler | None = None,
        url_resolver: URLResolver | None = None,
        inflector: Inflector | None = None,
        middlewares: t.Sequence[HeaderMiddleware] = (),
    ) -> None:
        self.config = config or AdapterConfig()
        inflector = inflector or Inflector.english()
        self.url_resolver = url_resolver or URLResolver.from_config(
            config=self.config, inflector=inflector
        )
        self.request_builder = RequestBuilder(
            config=self.config,
            url_resolver=self.url_resolver,
            middlewares=middlewares,
        )
        self.transport = transport or HttpxTransport(timeout_seconds=self.config.timeout_seconds)
        self.serializer = serializer or JSONAPISerializer(inflector=inflector)
        self.coalescing = CoalescingController(
            config=self.config,
            request_builder=self.request_builder,
            transport=self.transport,
            serializer=self.serializer,
            scheduler=scheduler
            or EventLoopScheduler(window_seconds=self.config.coalesce_window_seconds),
        )

    def find_one(self, resource_type: str, id: Identifier) -> RecordFuture:
        """
        Fetch one record, coalescing with sibling fetches when enabled.

        Must be called from a running event loop. The returned handle can be
        awaited; cancelling it only drops this caller's interest.

        Parameters
        ----------
        resource_type : str
            Resource type of the record.
        id : Identifier
            Record id.

        Returns
        -------
        asyncio.Future[ResourceObject]
            Handle resolving to the record.
        """
        return self.coalescing.find_one(resource_type, id)

    async def find_many(
        self, resource_type: str, ids: t.Sequence[Identifier]
    ) -> list[ResourceObject]:
        """
        Fetch several records with one ``filter[id]`` request.

        Parameters
        ----------
        resource_type : str
            Resource type of the records.
        ids : typing.Sequence[Identifier]
            Record ids.

        Returns
        -------
        list[ResourceObject]
            Records in response order.
        """
        request = self.request_builder.build_find_many(resource_type, ids)
        payload = await self.transport.send(request)
        return self.serializer.normalize_response(payload)

    async def find_all(self, resource_type: str) -> list[ResourceObject]:
        request = self.request_builder.build_find_all(resource_type)
        payload = await self.transport.send(request)
        return self.serializer.normalize_response(payload)

    async def query(
        self, resource_type: str, query: dict[str, t.Any]
    ) -> list[ResourceObject]:
        """Fetch records matching a server-side query, e.g. ``{"filter": {...}}``."""
        request = self.request_builder.build_query(resource_type, query)
        payload = await self.transport.send(request)
        return self.serializer.normalize_response(payload)

    async def update(
        self, resource_type: str, id: Identifier, snapshot: SnapshotLike
    ) -> ResourceObject:
        """
        Save a record with ``PATCH /<types>/<id>``.

        Parameters
        ----------
        resource_type : str
            Resource type of the record.
        id : Identifier
            Record id; written into the body.
        snapshot : Snapshot | typing.Mapping[str, typing.Any]
            Record state to send.

        Returns
        -------
        ResourceObject
            Record returned by the server, or the sent resource object when
            the server answers without content.
        """
        normalized_id = normalize_id(id)
        record_snapshot = _coerce_snapshot(snapshot)
        if record_snapshot.id is None:
            record_snapshot = record_snapshot.model_copy(update={"id": normalized_id})
        elif record_snapshot.id != normalized_id:
            raise ValueError(
                f"Snapshot id {record_snapshot.id!r} does not match {normalized_id!r}"
            )

        body = self.serializer.serialize_for_update(
            resource_type, record_snapshot, include_id=True
        )
        request = self.request_builder.build_update(resource_type, normalized_id, body)
        payload = await self.transport.send(request)
        records = self.serializer.normalize_response(payload)
        if records:
            return records[0]
        log.debug(
            event="Update returned no content",
            resource_type=resource_type,
            id=normalized_id,
        )
        return ResourceObject.model_validate(body["data"])

    async def create(self, resource_type: str, snapshot: SnapshotLike) -> ResourceObject:
        """
        Create a record with ``POST /<types>``.

        A client-generated id on the snapshot is sent in the body.
        """
        record_snapshot = _coerce_snapshot(snapshot)
        body = self.serializer.serialize_for_update(
            resource_type, record_snapshot, include_id=record_snapshot.id is not None
        )
        request = self.request_builder.build_create(resource_type, body)
        payload = await self.transport.send(request)
        records = self.serializer.normalize_response(payload)
        if records:
            return records[0]
        if record_snapshot.id is not None:
            return ResourceObject.model_validate(body["data"])
        raise RecordNotReturnedError(resource_type=resource_type)

    async def delete(self, resource_type: str, id: Identifier) -> None:
        request = self.request_builder.build_delete(resource_type, id)
        await self.transport.send(request)

    async def close(self) -> None:
        """Flush pending coalesced fetches and wait for in-flight requests."""
        await self.coalescing.close()

    async def __aenter__(self) -> JSONAPIAdapter:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: t.Any,
    ) -> None:
        await self.close()


def _coerce_snapshot(snapshot: SnapshotLike) -> Snapshot:
    if isinstance(snapshot, Snapshot):
        return snapshot
    return Snapshot.model_validate(dict(snapshot))
