import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "Asia/Jakarta")
WORK_START_HOUR = int(os.getenv("WORK_START_HOUR", "9"))

CRON_API_KEY = os.getenv("CRON_API_KEY", "")
RECONCILE_LOCK_TIMEOUT = int(os.getenv("RECONCILE_LOCK_TIMEOUT", "10"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
