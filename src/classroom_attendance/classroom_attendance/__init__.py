"""Classroom Attendance package.

This package is organized by feature modules (timetable, sessions, records,
stats, achievements) with a thin Flask controller layer and
service/repository layers underneath.
"""
