"""QR Attendance package.

This package is organized by feature modules (users, qr, attendance, schedules,
notifications) with a thin Flask controller layer over service/repository layers.
"""
