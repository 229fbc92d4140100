from __future__ import annotations

import re
from typing import Any, Iterable

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")

# Request keys whose column name is not the plain snake_case form.
_COLUMN_RENAMES = {"metadata": "metadata_json"}


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY_RE.sub("_", name).lower()


def payload_columns(
    payload: BaseModel,
    *,
    exclude: Iterable[str] = (),
    drop_none: bool = False,
) -> dict[str, Any]:
    """Map the fields a client actually sent onto model column names."""
    skip = set(exclude)
    columns: dict[str, Any] = {}
    for name in payload.model_fields_set:
        if name in skip:
            continue
        value = getattr(payload, name)
        if drop_none and value is None:
            continue
        columns[_COLUMN_RENAMES.get(name, snake_case(name))] = value
    return columns


def serialize(record: Any) -> dict[str, Any]:
    data = jsonable_encoder(record)
    if "metadata_json" in data:
        data["metadata"] = data.pop("metadata_json")
    return data


def serialize_many(records: Iterable[Any]) -> list[dict[str, Any]]:
    return [serialize(record) for record in records]
