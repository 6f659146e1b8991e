"""Face Attendance package.

Feature modules (members, events, attendance, capture, reports) with a thin
Flask controller layer over service/repository layers.
"""
