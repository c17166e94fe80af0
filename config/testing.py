import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ems_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

LATE_CUTOFF = "09:00"
LATE_GRACE_MINUTES = 0
LEADERBOARD_WINDOW_DAYS = 30

EMAIL_BACKEND = "log"
AWS_REGION = ""
AWS_SES_FROM_EMAIL = ""
NOTIFY_ASYNC = False
