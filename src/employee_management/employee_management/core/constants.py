"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_LATE_CUTOFF = time(9, 0)
DEFAULT_LATE_GRACE_MINUTES = 0
DEFAULT_STATS_PERIOD_DAYS = 30
DEFAULT_HISTORY_LIMIT = 30

LEADERBOARD_WINDOW_DAYS = 30
ATTENDANCE_POINTS = 10
WORKSHEET_POINTS = 15
ACTIVE_EMPLOYEE_BADGE_SCORE = 100
MONTHLY_TOP = 10
DEPARTMENTAL_TOP = 15

ANNOUNCEMENT_TITLE_MAX = 200
ANNOUNCEMENT_CONTENT_MAX = 5000
PUSH_PREVIEW_CHARS = 100

WORKSHEET_FIRST_HOUR = 9
WORKSHEET_LAST_HOUR = 19
