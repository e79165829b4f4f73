"""Conversion between records and stored documents."""

import logging
from typing import NamedTuple

from pydantic import ValidationError

from .field_codec import desanitize, desanitize_value, sanitize, sanitize_value
from .metadata import RecordTypeRegistry, default_registry
from .models import Record
from .store import CURSOR_FIELD, ID_FIELD, Document
from .utils import generate_cursor_key, is_blank

logger = logging.getLogger(__name__)


class Decoded(NamedTuple):
    """A decoded record and the cursor key it was stored with."""

    record: Record
    cursor: str | None


class RecordCodec:
    """Encode records into documents and decode them back."""

    def __init__(self, registry: RecordTypeRegistry | None = None) -> None:
        self.registry = registry or default_registry()

    def locked_fields(self, record: Record) -> frozenset[str]:
        """Get the fields of a record that updates must not write."""
        return self.registry.locked_fields(record.type)

    def encode(
        self,
        record: Record | None,
        locked_filter: bool = False,
        include_blank: bool = False,
        assign_cursor: bool = False,
    ) -> Document:
        """
        Encode a record into a store document.

        Values keep their original types; only field names are rewritten.

        Args:
            record: Record to encode
            locked_filter: Leave out fields locked for the record's type
            include_blank: Keep empty and whitespace-only string values
            assign_cursor: Attach a fresh pagination cursor key

        Returns:
            Document ready for the store

        """
        row: Document = {}
        if record is None:
            return row

        excluded = set(self.locked_fields(record)) if locked_filter else set()
        for field_name, value in record.model_dump(exclude=excluded).items():
            if value is None or (is_blank(value) and not include_blank):
                continue
            # "id" in a record is the primary key of the document
            if field_name == "id":
                row[ID_FIELD] = str(value)
            else:
                row[sanitize(field_name)] = sanitize_value(value)

        if assign_cursor:
            row[CURSOR_FIELD] = generate_cursor_key()
        return row

    def decode(
        self, document: Document | None, partial: bool = False
    ) -> Decoded | None:
        """
        Decode a store document into a record.

        Args:
            document: Stored document
            partial: Decode through the base ``Record`` model only

        Returns:
            The record and its cursor key, or None for an empty or invalid document

        """
        if not document:
            return None

        props: dict[str, object] = {}
        cursor = None
        for key, value in document.items():
            if key == ID_FIELD:
                props["id"] = str(value)
            elif key == CURSOR_FIELD:
                cursor = value
            else:
                props[desanitize(key)] = desanitize_value(value)

        model = Record if partial else self.registry.model_for(props.get("type"))
        try:
            record = model.model_validate(props)
        except ValidationError:
            logger.exception("Cannot decode document %s", props.get("id"))
            return None
        return Decoded(record, cursor)

    def summary_columns(self) -> list[str]:
        """Stored field names kept when a read skips the property map."""
        columns = [ID_FIELD, CURSOR_FIELD]
        columns += [
            sanitize(name)
            for name in Record.model_fields
            if name not in ("id", "properties")
        ]
        return columns
