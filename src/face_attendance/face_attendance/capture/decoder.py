from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np
from PIL import Image

from ..core.exceptions import ResourceUnavailableError

logger = logging.getLogger(__name__)


class CodeDecoder(Protocol):
    def decode(self, frame: np.ndarray) -> Optional[str]:
        """Text of the first QR code in the frame, or None."""

        raise NotImplementedError


class PyzbarCodeDecoder:
    """QR decoding with pyzbar (needs the zbar shared library at runtime)."""

    def __init__(self):
        try:
            from pyzbar.pyzbar import decode
        except (ImportError, OSError) as e:
            raise ResourceUnavailableError("QR code decoder is unavailable") from e
        self._decode = decode

    def decode(self, frame: np.ndarray) -> Optional[str]:
        img = Image.fromarray(frame).convert("RGB")
        for symbol in self._decode(img):
            text = symbol.data.decode("utf-8", errors="replace").strip()
            if text:
                return text
        return None
