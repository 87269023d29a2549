import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

BUSINESS_TIMEZONE = "Asia/Jakarta"
WORK_START_HOUR = 9

CRON_API_KEY = "test-cron-key"
RECONCILE_LOCK_TIMEOUT = 5

AUTO_INIT_DB = False
