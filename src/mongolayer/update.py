"""Partial-update document builder.

``build_update_set`` turns a record into a ``{"$set": {...}}`` update holding
only the fields the caller means to write: tagged fields, minus
``omitempty`` fields at their zero value, minus the ``_id`` identity field.

Example:
    class Account(BaseModel):
        id: str | None = bson_field("_id,omitempty")
        name: str = bson_field("username", default="")
        bio: str = bson_field("profile.bio,omitempty", default="")

    build_update_set(Account(id="a1", name="alice"))
    # -> {'$set': {'username': 'alice'}}
"""

from typing import Any

from mongolayer.codec import encode_value
from mongolayer.tags import is_record, iter_record_fields, parse_tag
from mongolayer.utils.logger import get_logger
from mongolayer.zero import is_zero

logger = get_logger(__name__)

ID_FIELD = "_id"
SET_OPERATOR = "$set"


def build_update_set(data: Any) -> dict[str, Any]:
    """
    Build the ``$set`` part of an update from a record.

    Args:
        data: A pydantic model or dataclass instance. ``None`` and values of
            any other shape produce an empty update.

    Returns:
        ``{"$set": {external_name: value, ...}}``, or ``{}`` when no field
        qualifies. Callers should skip the write on ``{}``.
    """
    update: dict[str, Any] = {}

    if data is None or not is_record(data):
        logger.debug(
            "build_update_set: %s is not a record, returning empty update",
            type(data).__name__,
        )
        return update

    fields: dict[str, Any] = {}
    for field in iter_record_fields(data):
        if not field.tag:
            continue

        tag = parse_tag(field.tag, field.name)
        if tag.ignored:
            continue

        if tag.omitempty and is_zero(field.value):
            continue

        if tag.name == ID_FIELD:
            continue

        if field.value is data:
            continue

        fields[tag.name] = encode_value(field.value, parents=(data,))

    if fields:
        update[SET_OPERATOR] = fields

    return update
