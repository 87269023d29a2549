import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Calendar days (and so WFH expiry) are computed in this timezone.
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Jakarta")
WORK_START_HOUR = int(os.getenv("WORK_START_HOUR", "9"))

# Empty disables the Bearer check on /api/cron/wfh-cleanup.
CRON_API_KEY = os.getenv("CRON_API_KEY", "")
RECONCILE_LOCK_TIMEOUT = int(os.getenv("RECONCILE_LOCK_TIMEOUT", "10"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
