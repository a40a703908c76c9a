import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "classroom_attendance"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

EDIT_WINDOW_MINUTES = int(os.getenv("EDIT_WINDOW_MINUTES", "10"))
ABUSE_EDIT_THRESHOLD = int(os.getenv("ABUSE_EDIT_THRESHOLD", "3"))
DEFAULTER_THRESHOLD = int(os.getenv("DEFAULTER_THRESHOLD", "75"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
