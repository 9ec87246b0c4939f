"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TENANT_ID = "default"
DEFAULT_HISTORY_LIMIT = 30

# Schedule fallbacks when neither a shift nor a work-schedule policy applies
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "18:00"
DEFAULT_GRACE_MINUTES = 5
DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_EARLY_LEAVE_THRESHOLD_MINUTES = 15
DEFAULT_HOURS_PER_DAY = 8

# Late/early minutes at or above this need a supervisor's approval
APPROVAL_REQUIRED_MINUTES = 30

EARTH_RADIUS_METERS = 6_371_000
DEFAULT_GEOFENCE_RADIUS_METERS = 100

LUNCH_BREAK_MINUTES = 60
SHORT_BREAK_MINUTES = 15

DEFAULT_LATE_PENALTY_PER_DAY = 100
SOCIAL_SECURITY_RATE = 0.05
SOCIAL_SECURITY_CAP = 750
PERSONAL_TAX_EXEMPTION = 150_000
MIN_OVERTIME_RATE = 1.0
MAX_OVERTIME_RATE = 5.0

# (upper bound of annual taxable income, marginal rate); None = no upper bound
TAX_BRACKETS = (
    (150_000, 0.00),
    (300_000, 0.05),
    (500_000, 0.10),
    (750_000, 0.15),
    (1_000_000, 0.20),
    (2_000_000, 0.25),
    (5_000_000, 0.30),
    (None, 0.35),
)

PAYMENT_METHODS = ("bank-transfer", "cash", "cheque")
