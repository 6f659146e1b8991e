from __future__ import annotations

import base64
import binascii

import cv2
import numpy as np

from ..core.exceptions import ValidationError


def to_rgb(img: np.ndarray) -> np.ndarray:
    """Convert a decoded OpenCV image (BGR, BGRA or grayscale) to contiguous RGB uint8."""

    if len(img.shape) == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
    elif len(img.shape) == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)

    rgb = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    # dlib requires a contiguous uint8 buffer
    return np.ascontiguousarray(rgb, dtype=np.uint8)


def decode_image(data: str) -> np.ndarray:
    """Decode a data URL (data:image/png;base64,...) or bare base64 text into an RGB frame."""

    if not isinstance(data, str) or not data.strip():
        raise ValidationError("Image is required")

    payload = data.split(",", 1)[1] if data.startswith("data:") else data
    try:
        img_bytes = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError):
        raise ValidationError("Image is not valid base64")

    nparr = np.frombuffer(img_bytes, np.uint8)
    img = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED) if nparr.size else None
    if img is None:
        raise ValidationError("Image could not be decoded")
    return to_rgb(img)
