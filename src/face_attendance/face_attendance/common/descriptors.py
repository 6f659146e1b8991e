"""Face descriptor normalization.

Descriptors reach us as JSON arrays, as index-keyed objects (what a browser
produces when it serializes a Float32Array), as JSON text from the database or
as numpy arrays from the encoder. Everything past the store boundary sees a
plain tuple of floats of fixed length.
"""

from __future__ import annotations

import json
import math
from typing import Any, Mapping, Optional, Tuple

import numpy as np

from ..core.constants import DESCRIPTOR_LENGTH
from ..core.exceptions import ValidationError

Descriptor = Tuple[float, ...]


def normalize_descriptor(value: Any, *, length: int = DESCRIPTOR_LENGTH) -> Descriptor:
    if value is None:
        raise ValidationError("Face descriptor is required")

    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            raise ValidationError("Face descriptor is not valid JSON")

    if isinstance(value, Mapping):
        try:
            keys = sorted(value.keys(), key=lambda k: int(k))
        except (TypeError, ValueError):
            raise ValidationError("Face descriptor object must be keyed by index")
        value = [value[k] for k in keys]

    if isinstance(value, np.ndarray):
        value = value.ravel().tolist()

    if not isinstance(value, (list, tuple)):
        raise ValidationError("Face descriptor must be a list of numbers")

    if len(value) != length:
        raise ValidationError(f"Face descriptor must have {length} values (got {len(value)})")

    out: list[float] = []
    for item in value:
        if isinstance(item, bool):
            raise ValidationError("Face descriptor must contain only numbers")
        try:
            f = float(item)
        except (TypeError, ValueError):
            raise ValidationError("Face descriptor must contain only numbers")
        if not math.isfinite(f):
            raise ValidationError("Face descriptor must contain only finite numbers")
        out.append(f)
    return tuple(out)


def try_normalize_descriptor(value: Any, *, length: int = DESCRIPTOR_LENGTH) -> Optional[Descriptor]:
    """Read-side variant: malformed stored values become None instead of failing the query."""
    try:
        return normalize_descriptor(value, length=length)
    except ValidationError:
        return None


def descriptor_to_json(descriptor: Descriptor) -> str:
    return json.dumps(list(descriptor))
