"""
JSON normalisation for values stored in JSON columns and log records.

Request metadata is ``map<str, Any>``: callers hand in Decimal amounts,
datetimes, UUIDs and enum members.  The JSON columns on the history and
audit tables only take what ``json.dumps`` accepts, so values are converted
once, before the row is built.
"""

import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def json_default(obj: Any) -> Any:
    """
    ``default=`` hook for json.dumps.

    Decimal keeps its exact string form ("500.00" stays "500.00").

    Raises:
        TypeError: the type has no JSON form.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if isinstance(obj, Mapping):
        return dict(obj)
    if isinstance(obj, bytes):
        return obj.hex()

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json_safe(data: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Return ``data`` as plain JSON types, or None when it is empty."""
    if not data:
        return None
    return json.loads(json.dumps(dict(data), default=json_default))
