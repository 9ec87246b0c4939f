import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_payroll"),
}

TENANT_ID = os.getenv("TENANT_ID", "default")

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LATE_PENALTY_PER_DAY = float(os.getenv("LATE_PENALTY_PER_DAY", "100"))
STANDARD_HOURS_PER_DAY = float(os.getenv("STANDARD_HOURS_PER_DAY", "8"))
