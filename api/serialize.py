from __future__ import annotations

import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import BaseModel


JSONScalar = Union[str, int, float, bool, None]
JSONType = Union[JSONScalar, List["JSONType"], Dict[str, "JSONType"]]


def to_jsonable(obj: Any) -> JSONType:
    """
    Convert analysis payloads into JSON-serializable structures.
    - Enum members -> their value
    - pydantic models -> model_dump()
    - NaN/inf -> None
    - datetime/date -> isoformat
    - dict/list/tuple/set -> recursively
    """
    if obj is None:
        return None

    if isinstance(obj, Enum):
        return to_jsonable(obj.value)

    if isinstance(obj, (str, bool, int)):
        return obj

    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None

    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, BaseModel):
        return to_jsonable(obj.model_dump())

    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in obj]

    return str(obj)
