"""
Coalescing of single-record fetches into multi-id requests.

Within one scheduling window, every ``find_one`` for the same resource type is
collected into a batch. When the window closes the unique ids are sent as one
``GET /<types>?filter[id]=...`` request and each waiter is resolved by matching
the returned record ids. Batches are partitioned by resource type.
"""

from __future__ import annotations

import asyncio
import functools
import typing as t
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote

import structlog

from jsonapi_adapter.config import AdapterConfig
from jsonapi_adapter.exceptions import RecordNotReturnedError
from jsonapi_adapter.models import ResourceObject
from jsonapi_adapter.request import RequestBuilder, RequestDescriptor
from jsonapi_adapter.scheduler import Scheduler, WindowHandle
from jsonapi_adapter.serializer import Serializer
from jsonapi_adapter.transport import Transport
from jsonapi_adapter.urls import Identifier, normalize_id
from jsonapi_adapter.utils.logging import fetch_context

log = structlog.get_logger(__name__)

RecordFuture = asyncio.Future[ResourceObject]

# Encoded length of "?filter[id]=" and of one "," separator.
_FILTER_PREFIX_LENGTH = len("?" + quote("filter[id]", safe="") + "=")
_SEPARATOR_LENGTH = len(quote(",", safe=""))


class BatchState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FLUSHING = "flushing"


@dataclass
class _CoalesceBatch:
    """Pending fetches of one resource type within one window."""

    resource_type: str
    # id -> waiters, in first-seen order
    pending: dict[str, list[RecordFuture]] = field(default_factory=dict)
    window: WindowHandle | None = None


class CoalescingController:
    """
    Route ``find_one`` calls either directly or through per-type batches.

    Parameters
    ----------
    config : AdapterConfig
        Adapter configuration; ``coalesce_find_requests`` selects the mode.
    request_builder : RequestBuilder
        Builder for single and multi-id fetch requests.
    transport : Transport
        Transport used to send requests.
    serializer : Serializer
        Serializer used to extract records from responses.
    scheduler : Scheduler
        Scheduler that closes coalescing windows.
    """

    def __init__(
        self,
        *,
        config: AdapterConfig,
        request_builder: RequestBuilder,
        transport: Transport,
        serializer: Serializer,
        scheduler: Scheduler,
    ) -> None:
        self._config = config
        self._request_builder = request_builder
        self._transport = transport
        self._serializer = serializer
        self._scheduler = scheduler

        self._batches: dict[str, _CoalesceBatch] = {}
        self._in_flight: dict[str, set[asyncio.Task[None]]] = {}
        self._direct_tasks: set[asyncio.Task[ResourceObject]] = set()

        log.debug(
            event="Initialized CoalescingController",
            coalesce_find_requests=config.coalesce_find_requests,
            max_url_length=config.max_url_length,
        )

    def state(self, resource_type: str) -> BatchState:
        """
        Report the coalescing state of a resource type.

        A new batch may be accumulating while an earlier one is still in
        flight; accumulation is reported first.
        """
        if resource_type in self._batches:
            return BatchState.ACCUMULATING
        if self._in_flight.get(resource_type):
            return BatchState.FLUSHING
        return BatchState.IDLE

    def pending_ids(self, resource_type: str) -> list[str]:
        batch = self._batches.get(resource_type)
        return list(batch.pending) if batch else []

    def find_one(self, resource_type: str, id: Identifier) -> RecordFuture:
        """
        Request one record and return a handle resolving to it.

        Invalid resource types and ids fail synchronously, before any request
        is queued.

        Parameters
        ----------
        resource_type : str
            Resource type of the record.
        id : Identifier
            Record id.

        Returns
        -------
        asyncio.Future[ResourceObject]
            Handle resolved with the record or rejected with the failure.
        """
        normalized_id = normalize_id(id)
        loop = asyncio.get_running_loop()

        if not self._config.coalesce_find_requests:
            request = self._request_builder.build_find_record(resource_type, normalized_id)
            task = loop.create_task(
                self._fetch_single(
                    resource_type=resource_type,
                    id=normalized_id,
                    request=request,
                ),
                name=f"find_record_{resource_type}_{normalized_id}",
            )
            self._direct_tasks.add(task)
            task.add_done_callback(self._direct_tasks.discard)
            return task

        # Fail fast on types that cannot be mapped to a URL.
        self._request_builder.url_resolver.path_for_type(resource_type)

        future: RecordFuture = loop.create_future()
        batch = self._batches.get(resource_type)
        if batch is None:
            batch = _CoalesceBatch(resource_type=resource_type)
            self._batches[resource_type] = batch
            batch.window = self._scheduler.on_window_close(
                resource_type,
                functools.partial(self._flush, resource_type),
            )
            log.debug(event="Opened coalesce batch", resource_type=resource_type)

        waiters = batch.pending.setdefault(normalized_id, [])
        waiters.append(future)
        log.debug(
            event="Queued find for coalescing",
            resource_type=resource_type,
            id=normalized_id,
            duplicate=len(waiters) > 1,
            pending_count=len(batch.pending),
        )
        return future

    async def _fetch_single(
        self,
        *,
        resource_type: str,
        id: str,
        request: RequestDescriptor,
    ) -> ResourceObject:
        with fetch_context(resource_type, [id]):
            payload = await self._transport.send(request)
            records = self._serializer.normalize_response(payload)
            for record in records:
                if record.id == id:
                    return record
            log.error(event="Record missing from response")
            raise RecordNotReturnedError(resource_type=resource_type, id=id)

    def _flush(self, resource_type: str) -> None:
        """
        Close the window of ``resource_type`` and dispatch its batch.

        A group whose request cannot be built rejects its own waiters; the
        other groups are still dispatched.
        """
        batch = self._batches.pop(resource_type, None)
        if batch is None or not batch.pending:
            return

        ids = list(batch.pending)
        try:
            groups = self.group_ids(resource_type, ids)
        except Exception as error:
            log.error(
                event="Could not group coalesce batch",
                resource_type=resource_type,
                id_count=len(ids),
                error=str(object=error),
            )
            _reject(batch.pending, error)
            return
        log.info(
            event="Flushing coalesce batch",
            resource_type=resource_type,
            id_count=len(ids),
            request_count=len(groups),
        )

        loop = asyncio.get_running_loop()
        for group in groups:
            waiters = {id: batch.pending[id] for id in group}
            try:
                request = self._request_builder.build_find_many(resource_type, group)
            except Exception as error:
                log.error(
                    event="Could not build coalesced request",
                    resource_type=resource_type,
                    ids=group,
                    error=str(object=error),
                )
                _reject(waiters, error)
                continue
            task = loop.create_task(
                self._dispatch(resource_type=resource_type, waiters=waiters, request=request),
                name=f"find_many_{resource_type}",
            )
            in_flight = self._in_flight.setdefault(resource_type, set())
            in_flight.add(task)
            task.add_done_callback(
                functools.partial(self._forget_task, resource_type),
            )

    def _forget_task(self, resource_type: str, task: asyncio.Task[None]) -> None:
        in_flight = self._in_flight.get(resource_type)
        if in_flight is None:
            return
        in_flight.discard(task)
        if not in_flight:
            del self._in_flight[resource_type]

    def group_ids(self, resource_type: str, ids: t.Sequence[str]) -> list[list[str]]:
        """
        Split ids so that each multi-id request URL fits ``max_url_length``.

        Parameters
        ----------
        resource_type : str
            Resource type of the records.
        ids : typing.Sequence[str]
            Unique ids in first-seen order.

        Returns
        -------
        list[list[str]]
            Id groups in order; a single group unless the URL would be too long.
        """
        base_length = (
            len(self._request_builder.url_resolver.build_url(resource_type, ids, "find_many"))
            + _FILTER_PREFIX_LENGTH
        )
        groups: list[list[str]] = []
        current: list[str] = []
        current_length = base_length
        for id in ids:
            id_length = len(quote(id, safe=""))
            added = id_length if not current else id_length + _SEPARATOR_LENGTH
            if current and current_length + added > self._config.max_url_length:
                groups.append(current)
                current = []
                current_length = base_length
                added = id_length
            current.append(id)
            current_length += added
        if current:
            groups.append(current)
        return groups

    async def _dispatch(
        self,
        *,
        resource_type: str,
        waiters: dict[str, list[RecordFuture]],
        request: RequestDescriptor,
    ) -> None:
        """Send one multi-id request and settle every waiter of its ids."""
        with fetch_context(resource_type, waiters):
            try:
                payload = await self._transport.send(request)
                records = self._serializer.normalize_response(payload)
            except asyncio.CancelledError:
                for futures in waiters.values():
                    for future in futures:
                        future.cancel()
                raise
            except Exception as error:
                log.error(
                    event="Coalesced request failed",
                    url=request.url,
                    error=str(object=error),
                )
                _reject(waiters, error)
                return

            by_id = {record.id: record for record in records}
            missing: list[str] = []
            for id, futures in waiters.items():
                record = by_id.get(id)
                if record is None:
                    missing.append(id)
                    error = RecordNotReturnedError(resource_type=resource_type, id=id)
                    _reject({id: futures}, error)
                    continue
                for future in futures:
                    # Abandoned waiters are cancelled and skipped.
                    if not future.done():
                        future.set_result(record)

            if missing:
                log.error(event="Records missing from coalesced response", missing_ids=missing)
            log.debug(
                event="Resolved coalesced request",
                resolved_count=len(waiters) - len(missing),
                missing_count=len(missing),
            )

    async def close(self) -> None:
        """
        Flush every open batch now and wait for all in-flight requests.
        """
        for resource_type, batch in list(self._batches.items()):
            if batch.window is not None:
                batch.window.cancel()
            log.debug(event="Flushing batch on close", resource_type=resource_type)
            self._flush(resource_type)

        tasks: list[asyncio.Task[t.Any]] = [
            task for in_flight in self._in_flight.values() for task in in_flight
        ]
        tasks.extend(self._direct_tasks)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log.debug(event="CoalescingController closed")


def _reject(waiters: t.Mapping[str, list[RecordFuture]], error: BaseException) -> None:
    """Fail every waiter that is still pending with the same ``error``."""
    for futures in waiters.values():
        for future in futures:
            if not future.done():
                future.set_exception(error)
