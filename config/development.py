import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_payroll"),
}

TENANT_ID = os.getenv("TENANT_ID", "default")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Apply database/schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

LATE_PENALTY_PER_DAY = float(os.getenv("LATE_PENALTY_PER_DAY", "100"))
STANDARD_HOURS_PER_DAY = float(os.getenv("STANDARD_HOURS_PER_DAY", "8"))
