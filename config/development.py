import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "ems_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo users on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

LATE_CUTOFF = os.getenv("LATE_CUTOFF", "09:00")
LATE_GRACE_MINUTES = int(os.getenv("LATE_GRACE_MINUTES", "0"))
LEADERBOARD_WINDOW_DAYS = int(os.getenv("LEADERBOARD_WINDOW_DAYS", "30"))

# "log" writes outgoing mail to the log; "ses" sends through AWS SES.
EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "log")
AWS_REGION = os.getenv("AWS_REGION", "")
AWS_SES_FROM_EMAIL = os.getenv("AWS_SES_FROM_EMAIL", "")
NOTIFY_ASYNC = bool(int(os.getenv("NOTIFY_ASYNC", "0")))
