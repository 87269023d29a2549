"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_BUSINESS_TIMEZONE = "Asia/Jakarta"
DEFAULT_WORK_START_HOUR = 9
DEFAULT_RECENT_REQUESTS_LIMIT = 10
DEFAULT_LIST_LIMIT = 200

# MySQL ER_DUP_ENTRY
MYSQL_DUPLICATE_ENTRY = 1062
