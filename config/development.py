import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Attendance policy
EDIT_WINDOW_MINUTES = int(os.getenv("EDIT_WINDOW_MINUTES", "10"))
ABUSE_EDIT_THRESHOLD = int(os.getenv("ABUSE_EDIT_THRESHOLD", "3"))
DEFAULTER_THRESHOLD = int(os.getenv("DEFAULTER_THRESHOLD", "75"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data and the default achievement set on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
