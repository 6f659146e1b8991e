from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.descriptors import Descriptor


@dataclass(frozen=True)
class Member:
    """Thực thể miền (domain): thành viên đã đăng ký khuôn mặt + mã QR.

    Lưu ý: face_descriptor là None khi dữ liệu lưu trong CSDL bị hỏng; những
    thành viên đó bị bỏ qua khi dựng tập so khớp khuôn mặt.
    """

    member_id: str
    full_name: str
    role: str
    face_descriptor: Optional[Descriptor]
    photo: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
