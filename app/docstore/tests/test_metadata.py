"""Tests for RecordTypeRegistry."""

from docstore.metadata import RecordTypeRegistry, default_registry
from docstore.models import Record, Tenant

BASE_LOCKED = {"tenant", "type", "parent_id", "created"}


class Gadget(Record):
    """Record subtype used by the registry tests."""

    serial: str | None = None


class TestRecordTypeRegistry:
    """Test cases for RecordTypeRegistry."""

    def test_base_locked_fields(self) -> None:
        """Test the base record locks its structural fields."""
        registry = RecordTypeRegistry()
        registry.register_model(Record)

        assert registry.locked_fields("record") == BASE_LOCKED

    def test_model_metadata_locked_fields(self) -> None:
        """Test locked fields declared on a subtype are picked up."""
        registry = RecordTypeRegistry()
        registry.register_model(Tenant)

        assert registry.locked_fields("tenant") == BASE_LOCKED | {"secret"}

    def test_explicit_locked_fields(self) -> None:
        """Test explicitly registered locked fields add to the metadata."""
        registry = RecordTypeRegistry()
        registry.register("gadget", Gadget, locked=["serial"])

        assert registry.locked_fields("gadget") == BASE_LOCKED | {"serial"}
        assert registry.model_for("gadget") is Gadget

    def test_unknown_type(self) -> None:
        """Test unknown types fall back to the base record."""
        registry = RecordTypeRegistry()

        assert registry.model_for("missing") is Record
        assert registry.model_for(None) is Record
        assert registry.locked_fields("missing") == BASE_LOCKED

    def test_types(self) -> None:
        """Test registered type names are listed sorted."""
        registry = RecordTypeRegistry()
        registry.register_model(Tenant)
        registry.register_model(Record)

        assert registry.types() == ["record", "tenant"]

    def test_default_registry(self) -> None:
        """Test the default registry knows every record subclass."""
        registry = default_registry()

        assert registry.model_for("record") is Record
        assert registry.model_for("tenant") is Tenant
        assert registry.model_for("gadget") is Gadget
