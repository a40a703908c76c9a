"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_EDIT_WINDOW_MINUTES = 10
DEFAULT_ABUSE_EDIT_THRESHOLD = 3
DEFAULT_DEFAULTER_THRESHOLD = 75
DEFAULT_TREND_DAYS = 7
DEFAULT_AUDIT_REASON = "No reason"
# attendance_audit_logs.reason is VARCHAR(255)
MAX_AUDIT_REASON_LENGTH = 255

# Trailing windows (days) the no-absence achievement understands.
RECOGNIZED_ABSENCE_WINDOWS = (7, 30)

MAX_DAY_OF_WEEK = 6
