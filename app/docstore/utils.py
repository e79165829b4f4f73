"""Utility functions for the document store."""

import re
from collections import OrderedDict
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

import uuid6
from bson import ObjectId


def camel_to_kebab(name: str) -> str:
    """Convert CamelCase or camelCase to kebab-case."""
    # Insert hyphen before any capital letter preceded by a lowercase or number
    s1 = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name)
    # Insert hyphen before contiguous capitals (for acronyms) like HTTPServer
    s2 = re.sub(r"([A-Z]+)([A-Z][a-z0-9])", r"\1-\2", s1)
    return s2.lower()


def get_all_subclasses(cls: type) -> list[type]:
    """Get all subclasses of a class."""

    subclasses = cls.__subclasses__()
    return subclasses + [
        sub for subclass in subclasses for sub in get_all_subclasses(subclass)
    ]


def is_blank(value: object) -> bool:
    """Check whether a value is None or renders as a whitespace-only string."""
    return value is None or not str(value).strip()


def utc_now() -> datetime:
    """Current UTC time truncated to milliseconds (BSON datetime precision)."""
    now = datetime.now(timezone.utc)  # noqa: UP017
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def generate_id() -> str:
    """Create a new unique record id."""
    return str(ObjectId())


def generate_cursor_key() -> str:
    """Create a new time-ordered cursor key for pagination."""
    return uuid6.uuid7().hex


class AccessOrderedDict(OrderedDict):
    """
    Bounded mapping that keeps entries in access order.

    Reading or writing an entry moves it to the end; once ``maxsize``
    is exceeded the least recently accessed entry is evicted.
    """

    def __init__(
        self,
        items: Iterable[tuple[object, object]] = (),
        maxsize: int | None = None,
    ) -> None:
        self.maxsize = maxsize
        super().__init__(items)

    def __iter__(self) -> Iterator[object]:
        # reads reorder entries, so iterate over a snapshot of the keys
        return iter(list(super().__iter__()))

    def __getitem__(self, key: object) -> object:
        value = super().__getitem__(key)
        self.move_to_end(key)
        return value

    def __setitem__(self, key: object, value: object) -> None:
        if key in self:
            self.move_to_end(key)
        super().__setitem__(key, value)
        if self.maxsize is not None and len(self) > self.maxsize:
            self.popitem(last=False)

    def get(self, key: object, default: object = None) -> object:
        if key in self:
            return self[key]
        return default

    def copy(self) -> "AccessOrderedDict":
        return self.__class__(list(self.items()), maxsize=self.maxsize)

    def __reduce__(self) -> tuple:
        return self.__class__, (list(self.items()), self.maxsize)
