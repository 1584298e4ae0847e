"""School Attendance package.

This package is organized by feature modules (attendance, sessions, reports,
roster) with a thin Flask controller layer over service/repository layers.
"""
