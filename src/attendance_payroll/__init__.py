"""Attendance-to-payroll package.

Organized by feature modules (attendance, geofence, penalties, payroll, ...)
with thin Flask controllers on top of service and repository layers.
"""
