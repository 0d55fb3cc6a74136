"""
Serializer collaborator: record snapshots to JSON:API documents and back.
"""

from __future__ import annotations

import typing as t

import structlog
from pydantic import ValidationError

from jsonapi_adapter.inflector import Inflector, dasherize
from jsonapi_adapter.models import Document, ResourceObject, Snapshot

log = structlog.get_logger(__name__)


class Serializer(t.Protocol):
    """Shape required by the adapter to encode payloads and decode responses."""

    def serialize_for_update(
        self, resource_type: str, snapshot: Snapshot, *, include_id: bool
    ) -> dict[str, t.Any]: ...

    def normalize_response(self, payload: t.Any) -> list[ResourceObject]: ...


class JSONAPISerializer:
    """
    Default JSON:API serializer.

    Resource object ``type`` members are the pluralized, dash-cased resource
    type, and attribute and relationship keys are dash-cased.

    Parameters
    ----------
    inflector : Inflector | None, optional
        Inflector used to pluralize ``type`` members.
    """

    def __init__(self, *, inflector: Inflector | None = None) -> None:
        self.inflector = inflector or Inflector.english()

    def payload_key_for_type(self, resource_type: str) -> str:
        return self.inflector.pluralize(dasherize(resource_type))

    def serialize_for_update(
        self, resource_type: str, snapshot: Snapshot, *, include_id: bool
    ) -> dict[str, t.Any]:
        """
        Serialize a snapshot into a JSON:API document.

        Parameters
        ----------
        resource_type : str
            Resource type of the record.
        snapshot : Snapshot
            Record state to send.
        include_id : bool
            Whether the ``id`` member is written.

        Returns
        -------
        dict[str, typing.Any]
            ``{"data": {...}}`` document.
        """
        resource: dict[str, t.Any] = {"type": self.payload_key_for_type(resource_type)}
        if include_id:
            if snapshot.id is None:
                raise ValueError(f"Snapshot of {resource_type!r} has no id to include")
            resource["id"] = snapshot.id
        resource["attributes"] = {
            dasherize(key): value for key, value in snapshot.attributes.items()
        }
        if snapshot.relationships:
            resource["relationships"] = {
                dasherize(key): value for key, value in snapshot.relationships.items()
            }
        return {"data": resource}

    def normalize_response(self, payload: t.Any) -> list[ResourceObject]:
        """
        Extract primary records from a response document.

        Parameters
        ----------
        payload : typing.Any
            Decoded response body.

        Returns
        -------
        list[ResourceObject]
            Primary data records; empty for an empty body.
        """
        if payload is None:
            return []
        try:
            document = Document.model_validate(payload)
        except ValidationError as error:
            log.error(
                event="Response is not a JSON:API document",
                error_count=error.error_count(),
            )
            raise ValueError(f"Response is not a JSON:API document: {error}") from error
        return document.records
