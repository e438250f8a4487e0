"""
Helper utilities for the raw conversion pipeline.

Common functions used across domains.
"""

import dataclasses
import json
from typing import Any, Iterable, List

from pydantic import BaseModel


def to_json_ready(record: Any) -> Any:
    """
    Turn a converter record into a JSON serialisable value.

    Args:
        record: pydantic model, dataclass instance or plain JSON value

    Returns:
        Value accepted by json.dumps
    """
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    return record


def records_to_json(records: Iterable[Any]) -> str:
    """Serialize converter records as a JSON array."""
    payload: List[Any] = [to_json_ready(record) for record in records]
    return json.dumps(payload, indent=2, sort_keys=True, default=str)


def format_duration(seconds: float) -> str:
    """Format seconds as milliseconds the way timeouts are reported."""
    return f"{int(round(seconds * 1000))} ms"

