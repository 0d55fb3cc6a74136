import typing as t

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Snapshot(BaseModel):
    """Record state handed to the serializer when saving."""

    model_config = ConfigDict(extra="forbid")

    id: str | None = None
    attributes: dict[str, t.Any] = Field(default_factory=dict)
    relationships: dict[str, t.Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: t.Any) -> t.Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ResourceObject(BaseModel):
    """A JSON:API resource object as returned by the server."""

    model_config = ConfigDict(extra="allow")

    type: str
    id: str
    attributes: dict[str, t.Any] = Field(default_factory=dict)
    relationships: dict[str, t.Any] = Field(default_factory=dict)
    links: dict[str, t.Any] | None = None
    meta: dict[str, t.Any] | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: t.Any) -> t.Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class Document(BaseModel):
    """Top-level JSON:API document."""

    model_config = ConfigDict(extra="allow")

    data: ResourceObject | list[ResourceObject] | None = None
    included: list[ResourceObject] = Field(default_factory=list)
    meta: dict[str, t.Any] | None = None
    links: dict[str, t.Any] | None = None
    errors: list[dict[str, t.Any]] | None = None

    @property
    def records(self) -> list[ResourceObject]:
        """Primary data as a list, whatever its cardinality."""
        if self.data is None:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]
