"""ObjectId conversion and query-filter helpers."""

from collections.abc import Iterable, Mapping
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from mongolayer.exceptions import InvalidObjectIdError
from mongolayer.zero import NIL_OBJECT_ID

# ==================== ObjectId helpers ====================


def object_id_from_string(value: str) -> ObjectId:
    """Parse a 24-character hex string into an ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise InvalidObjectIdError(value) from e


def object_ids_from_strings(values: Iterable[str]) -> list[ObjectId]:
    """Parse several hex strings; the first invalid one raises."""
    return [object_id_from_string(value) for value in values]


def string_from_object_id(object_id: ObjectId) -> str:
    return str(object_id)


def strings_from_object_ids(object_ids: Iterable[ObjectId]) -> list[str]:
    return [str(object_id) for object_id in object_ids]


def validate_object_id(value: Any) -> bool:
    """Whether ``value`` is a valid ObjectId or ObjectId hex string."""
    return ObjectId.is_valid(value)


def new_object_id() -> ObjectId:
    return ObjectId()


def is_zero_object_id(object_id: ObjectId | None) -> bool:
    """Whether ``object_id`` is unset (``None`` or all-zero bytes)."""
    return object_id is None or object_id == NIL_OBJECT_ID


def to_object_id(value: Any) -> ObjectId:
    """
    Coerce ``value`` into an ObjectId.

    Args:
        value: ObjectId (returned unchanged) or hex string

    Raises:
        InvalidObjectIdError: For any other type or an invalid string
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str):
        return object_id_from_string(value)
    raise InvalidObjectIdError(value)


# ==================== Filter builders ====================


def merge_documents(*documents: Mapping[str, Any]) -> dict[str, Any]:
    """Shallow-merge documents left to right; later keys win."""
    result: dict[str, Any] = {}
    for document in documents:
        result.update(document)
    return result


def build_filter(conditions: Mapping[str, Any]) -> dict[str, Any]:
    """Build a filter from conditions, dropping those whose value is None."""
    return {key: value for key, value in conditions.items() if value is not None}


def build_sort(sorts: Mapping[str, int]) -> list[tuple[str, int]]:
    """
    Build an ordered sort specification.

    Args:
        sorts: Field to direction (1 ascending, -1 descending), in priority order

    Returns:
        List of ``(field, direction)`` pairs accepted by ``find(sort=...)``
    """
    return [(field, direction) for field, direction in sorts.items()]


def build_regex_filter(field: str, pattern: str, *options: str) -> dict[str, Any]:
    """
    Build a ``$regex`` filter.

    Examples:
        - build_regex_filter("name", "^jo") -> {"name": {"$regex": "^jo"}}
        - build_regex_filter("name", "^jo", "i", "m")
          -> {"name": {"$regex": "^jo", "$options": "im"}}
    """
    regex: dict[str, Any] = {"$regex": pattern}
    if options:
        regex["$options"] = "".join(options)
    return {field: regex}


def build_in_filter(field: str, values: Iterable[Any]) -> dict[str, Any]:
    return {field: {"$in": list(values)}}


def build_range_filter(
    field: str, min_value: Any = None, max_value: Any = None
) -> dict[str, Any]:
    """Build an inclusive range filter; a ``None`` bound is left open."""
    bounds: dict[str, Any] = {}
    if min_value is not None:
        bounds["$gte"] = min_value
    if max_value is not None:
        bounds["$lte"] = max_value
    return {field: bounds}


def build_text_search_filter(text: str) -> dict[str, Any]:
    """Build a ``$text`` search filter (requires a text index)."""
    return {"$text": {"$search": text}}
