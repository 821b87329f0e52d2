"""Zero-value detection shared by the update builder and the codec."""

import math
from datetime import date, datetime, timedelta
from functools import singledispatch
from typing import Any

from bson import ObjectId

from mongolayer.tags import is_record, iter_record_fields
from mongolayer.utils.logger import get_logger

logger = get_logger(__name__)

NIL_OBJECT_ID = ObjectId(b"\x00" * 12)


@singledispatch
def is_zero(value: Any) -> bool:
    """
    Whether ``value`` equals the zero value of its type.

    Records are zero when every field is zero; a record reached again
    through its own fields counts as non-zero. Other values are compared
    against their type's default-constructed instance. Types that cannot be
    default-constructed or compared are never zero.
    """
    if value is None:
        return True
    if is_record(value):
        return _record_is_zero(value, set())
    try:
        return bool(value == type(value)())
    except Exception as e:
        logger.debug(
            "No zero value for %s, treating as set: %s", type(value).__name__, e
        )
        return False


def _record_is_zero(record: Any, visiting: set[int]) -> bool:
    if id(record) in visiting:
        return False
    visiting.add(id(record))
    try:
        for field in iter_record_fields(record):
            if is_record(field.value):
                if not _record_is_zero(field.value, visiting):
                    return False
            elif not is_zero(field.value):
                return False
        return True
    finally:
        visiting.discard(id(record))


@is_zero.register
def _(value: float) -> bool:
    # -0.0 differs from 0.0 in its sign bit
    return value == 0 and math.copysign(1.0, value) > 0


@is_zero.register
def _(value: ObjectId) -> bool:
    return value == NIL_OBJECT_ID


@is_zero.register
def _(value: datetime) -> bool:
    return value.replace(tzinfo=None) == datetime.min


@is_zero.register
def _(value: date) -> bool:
    return value == date.min


@is_zero.register
def _(value: timedelta) -> bool:
    return value == timedelta(0)
