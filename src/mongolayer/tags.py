"""Serialization tags on record fields.

A record is a pydantic model or a dataclass instance. Each field may carry a
``bson`` tag with the same grammar the Go driver uses for struct tags::

    tag          := primary_name ("," modifier)*
    primary_name := identifier | "" | "-"

An empty primary name falls back to the lower-cased field name; ``-`` as the
whole tag excludes the field.
"""

import dataclasses
from collections.abc import Iterator
from typing import Any, NamedTuple, get_type_hints

from pydantic import BaseModel, Field

BSON_TAG_KEY = "bson"
IGNORE_TAG = "-"
OMITEMPTY = "omitempty"
INLINE = "inline"


class BsonTag(NamedTuple):
    """Parsed ``bson`` tag."""

    name: str
    modifiers: frozenset[str]
    ignored: bool = False

    @property
    def omitempty(self) -> bool:
        return OMITEMPTY in self.modifiers

    @property
    def inline(self) -> bool:
        return INLINE in self.modifiers


class RecordField(NamedTuple):
    """One field of a record as seen by the codec and the update builder."""

    name: str
    tag: str | None
    value: Any


def bson_field(tag: str, default: Any = None, **kwargs: Any) -> Any:
    """Declare a pydantic field carrying a ``bson`` tag.

    Example:
        username: str = bson_field("username", default="")
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[BSON_TAG_KEY] = tag
    if "default_factory" in kwargs:
        return Field(json_schema_extra=extra, **kwargs)
    return Field(default=default, json_schema_extra=extra, **kwargs)


def dataclass_field(tag: str, **kwargs: Any) -> Any:
    """Declare a dataclass field carrying a ``bson`` tag."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[BSON_TAG_KEY] = tag
    return dataclasses.field(metadata=metadata, **kwargs)


def parse_tag(tag: str, field_name: str = "") -> BsonTag:
    """
    Split a tag into its external name and modifier set.

    Args:
        tag: Raw tag value, e.g. ``"profile.bio,omitempty"``
        field_name: Declared field name, used when the primary name is empty

    Returns:
        Parsed tag; ``ignored`` is set when the whole tag is ``-``
    """
    if tag == IGNORE_TAG:
        return BsonTag(name="", modifiers=frozenset(), ignored=True)

    name, *modifiers = tag.split(",")
    if not name:
        name = field_name.lower()
    return BsonTag(name=name, modifiers=frozenset(modifiers))


def is_record(value: Any) -> bool:
    """Whether ``value`` is a structured record instance (not a class)."""
    if isinstance(value, BaseModel):
        return True
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _pydantic_tag(info: Any) -> str | None:
    extra = info.json_schema_extra
    if isinstance(extra, dict):
        tag = extra.get(BSON_TAG_KEY)
        return tag if isinstance(tag, str) else None
    return None


def iter_record_fields(record: Any) -> Iterator[RecordField]:
    """Yield the public fields of a record in declaration order."""
    if isinstance(record, BaseModel):
        for name, info in type(record).model_fields.items():
            if name.startswith("_"):
                continue
            yield RecordField(name, _pydantic_tag(info), getattr(record, name))
    elif is_record(record):
        for f in dataclasses.fields(record):
            if f.name.startswith("_"):
                continue
            tag = f.metadata.get(BSON_TAG_KEY)
            yield RecordField(
                f.name, tag if isinstance(tag, str) else None, getattr(record, f.name)
            )


def iter_model_tags(model: type) -> Iterator[tuple[str, str | None, Any]]:
    """Yield ``(field_name, tag, annotation)`` for a record class."""
    if isinstance(model, type) and issubclass(model, BaseModel):
        for name, info in model.model_fields.items():
            yield name, _pydantic_tag(info), info.annotation
    elif dataclasses.is_dataclass(model):
        hints = get_type_hints(model)
        for f in dataclasses.fields(model):
            tag = f.metadata.get(BSON_TAG_KEY)
            yield f.name, tag if isinstance(tag, str) else None, hints.get(f.name)
