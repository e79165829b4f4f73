"""Pydantic models for records stored in tenant collections."""

import secrets
from datetime import datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, JsonValue, model_validator

from .utils import camel_to_kebab

DEFAULT_PAGE_LIMIT = 30


class Record(BaseModel):
    """
    Base persisted record.

    Subclasses add declared fields; fields marked with
    ``json_schema_extra={"locked": True}`` are never written by updates.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(None, description="Record ID")
    tenant: str | None = Field(
        None,
        description="Owning tenant ID",
        json_schema_extra={"locked": True},
    )
    type: str = Field(  # noqa: A003
        "",
        description="Record kind, defaults to the kebab-cased class name",
        json_schema_extra={"locked": True},
    )
    name: str | None = Field(None, description="Display name")
    parent_id: str | None = Field(
        None,
        description="Parent record ID",
        json_schema_extra={"locked": True},
    )
    created: datetime | None = Field(
        None,
        description="Creation timestamp",
        json_schema_extra={"locked": True},
    )
    updated: datetime | None = Field(None, description="Last update timestamp")
    properties: dict[str, JsonValue] = Field(
        default_factory=dict, description="Open property map"
    )

    @classmethod
    def type_name(cls) -> str:
        """Get the record type name for this model."""
        return camel_to_kebab(cls.__name__)

    @model_validator(mode="before")
    @classmethod
    def default_type(cls, data: object) -> object:
        """Fill in the record type from the model class."""
        if isinstance(data, dict) and not data.get("type"):
            return {**data, "type": cls.type_name()}
        return data

    def add_property(self, name: str, value: JsonValue) -> Self:
        """Set a value in the property map."""
        self.properties[name] = value
        return self

    def get_property(self, name: str) -> JsonValue:
        """Get a value from the property map."""
        return self.properties.get(name)

    def remove_property(self, name: str) -> Self:
        """Remove a value from the property map."""
        self.properties.pop(name, None)
        return self


def _new_secret() -> str:
    return secrets.token_urlsafe(32)


class Tenant(Record):
    """A tenant, stored as a record of the root tenant."""

    shared: bool = Field(
        False,
        description="Whether the tenant shares another tenant's collection",
    )
    secret: str = Field(
        default_factory=_new_secret,
        description="Tenant API secret",
        json_schema_extra={"locked": True},
    )

    def reset_secret(self) -> None:
        """Generate a new secret (not persisted by update)."""
        self.secret = _new_secret()


class Pager(BaseModel):
    """Forward-only keyset pagination state."""

    limit: int = Field(DEFAULT_PAGE_LIMIT, gt=0, description="Page size")
    last_key: str | None = Field(
        None, description="Cursor key of the last item returned"
    )
    count: int = Field(0, ge=0, description="Items returned so far")
