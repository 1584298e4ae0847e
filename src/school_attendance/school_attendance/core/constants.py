"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_QUERY_LIMIT = 500
DEFAULT_REPORT_DAYS = 30
PERCENTAGE_PRECISION = 2
MONTH_KEY_FORMAT = "%Y-%m"
