"""Record type metadata: model classes and their locked fields."""

import logging
from collections.abc import Iterable

from .models import Record
from .utils import get_all_subclasses

logger = logging.getLogger(__name__)


def _get_locked_fields(model: type[Record]) -> frozenset[str]:
    """Get the field names marked as locked in model metadata."""
    locked: set[str] = set()
    for field_name, field_info in model.model_fields.items():
        extra = field_info.json_schema_extra
        if isinstance(extra, dict) and extra.get("locked"):
            locked.add(field_name)
    return frozenset(locked)


class RecordTypeRegistry:
    """
    Explicit per-type registry consulted when encoding and decoding.

    Maps a record type name to the model class used to decode it and to the
    set of fields ``update`` must not overwrite.
    """

    def __init__(self) -> None:
        self._models: dict[str, type[Record]] = {}
        self._locked: dict[str, frozenset[str]] = {}

    def register(
        self,
        type_name: str,
        model: type[Record] = Record,
        locked: Iterable[str] | None = None,
    ) -> None:
        """
        Register a record type.

        Args:
            type_name: Record type name as stored in the ``type`` field
            model: Model class used to decode documents of this type
            locked: Locked field names (defaults to the model's metadata)

        """
        self._models[type_name] = model
        locked_fields = _get_locked_fields(model)
        if locked is not None:
            locked_fields = locked_fields | frozenset(locked)
        self._locked[type_name] = locked_fields
        logger.debug("Registered record type '%s' locked=%s", type_name, locked_fields)

    def register_model(self, model: type[Record]) -> None:
        """Register a model under its own type name."""
        self.register(model.type_name(), model)

    def model_for(self, type_name: str | None) -> type[Record]:
        """Get the model class for a type, falling back to ``Record``."""
        return self._models.get(type_name or "", Record)

    def locked_fields(self, type_name: str | None) -> frozenset[str]:
        """Get the locked fields for a type, falling back to ``Record``'s."""
        if type_name in self._locked:
            return self._locked[type_name]
        return _get_locked_fields(self.model_for(type_name))

    def types(self) -> list[str]:
        """List registered type names."""
        return sorted(self._models)


def default_registry() -> RecordTypeRegistry:
    """Build a registry of ``Record`` and every subclass currently defined."""
    registry = RecordTypeRegistry()
    for model_class in [Record, *get_all_subclasses(Record)]:
        registry.register_model(model_class)
    return registry
