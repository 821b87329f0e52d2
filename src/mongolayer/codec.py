"""Record <-> document conversion using ``bson`` field tags."""

import dataclasses
import types
from collections.abc import Iterable, Mapping
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel

from mongolayer.tags import is_record, iter_model_tags, iter_record_fields, parse_tag
from mongolayer.zero import is_zero


def encode_value(value: Any, parents: Iterable[Any] = ()) -> Any:
    """
    Encode nested records to documents; leave everything else as-is.

    Lists, tuples and mappings are copied with their items encoded. A record
    that is already being encoded (one of ``parents`` or an enclosing
    record) is not encoded again: record fields holding it are left out and
    container items become ``None``.
    """
    return _encode_value(value, frozenset(id(parent) for parent in parents))


def _encode_value(value: Any, ancestors: frozenset[int]) -> Any:
    if is_record(value):
        if id(value) in ancestors:
            return None
        return _encode_record(value, ancestors | {id(value)})
    if isinstance(value, Mapping):
        return {key: _encode_value(item, ancestors) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_encode_value(item, ancestors) for item in value]
    return value


def encode_record(record: Any) -> dict[str, Any]:
    """
    Encode a whole record into a document for insert or replace.

    Unlike the update builder, untagged public fields are written under their
    lower-cased name, and the ``inline`` modifier flattens a nested record
    into its parent.

    Args:
        record: pydantic model or dataclass instance

    Returns:
        Document ready to hand to the driver
    """
    return _encode_record(record, frozenset({id(record)}))


def _encode_record(record: Any, ancestors: frozenset[int]) -> dict[str, Any]:
    document: dict[str, Any] = {}
    for field in iter_record_fields(record):
        tag = parse_tag(field.tag or "", field.name)
        if tag.ignored:
            continue
        if tag.omitempty and is_zero(field.value):
            continue
        if is_record(field.value) and id(field.value) in ancestors:
            continue
        if tag.inline and is_record(field.value):
            document.update(
                _encode_record(field.value, ancestors | {id(field.value)})
            )
            continue
        document[tag.name] = _encode_value(field.value, ancestors)
    return document


def _record_type(annotation: Any) -> type | None:
    """Return the record class inside ``annotation`` (unwrapping Optional)."""
    origin = get_origin(annotation)
    if origin in (Union, types.UnionType):
        for arg in get_args(annotation):
            found = _record_type(arg)
            if found is not None:
                return found
        return None
    if origin is None and isinstance(annotation, type):
        if issubclass(annotation, BaseModel) or dataclasses.is_dataclass(annotation):
            return annotation
    return None


def decode_document(model: type, document: dict[str, Any]) -> Any:
    """
    Build an instance of ``model`` from a stored document.

    External names are mapped back to field names; nested record fields are
    decoded recursively. Keys with no matching field are dropped.
    """
    values: dict[str, Any] = {}
    for name, raw_tag, annotation in iter_model_tags(model):
        tag = parse_tag(raw_tag or "", name)
        if tag.ignored:
            continue

        nested = _record_type(annotation)
        if tag.inline and nested is not None:
            values[name] = decode_document(nested, document)
            continue
        if tag.name not in document:
            continue

        value = document[tag.name]
        if nested is not None and isinstance(value, dict):
            value = decode_document(nested, value)
        values[name] = value

    if issubclass(model, BaseModel):
        return model.model_validate(values)
    return model(**values)
