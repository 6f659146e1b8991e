"""Ví dụ: dùng service layer (không qua Flask), với backend bộ nhớ.

Mục tiêu: minh hoạ Controllers chỉ là lớp mỏng, nghiệp vụ nằm ở Services.
"""

from datetime import date, datetime, time

from src.face_attendance.face_attendance.container import build_container
from src.face_attendance.face_attendance.core.enums import AttendanceKind


def main():
    container = build_container(backend="memory")

    container.member_service.enroll(
        member_id="1234-5678",
        full_name="Nguyen Van A",
        role="Student",
        photo="data:image/png;base64,",
        descriptor=[0.01] * 128,
    )
    event = container.event_service.create(
        event_name="Morning class",
        event_date=date.today(),
        time_in_start=time(8, 0),
        time_in_end=time(8, 30),
        time_out_start=time(16, 0),
        time_out_end=time(17, 0),
    )

    record = container.attendance_service.record(
        member_id="1234-5678",
        kind=AttendanceKind.CHECK_IN,
        event_id=event.event_id,
        at=datetime.combine(date.today(), time(8, 31)),
    )
    print(record)
    print(container.report_service.dashboard(event_id=event.event_id))


if __name__ == "__main__":
    main()
