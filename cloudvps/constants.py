"""
Static defaults for the rewards and lease engine.
"""

# Lease (VPS)
LEASE_BASE_SECONDS = 6 * 60 * 60  # 6h
LEASE_CREATE_COST = 10
LEASE_EXTEND_COST = 50
LEASE_EXTEND_SECONDS = 60 * 60  # +1h

LEASE_STATUS_STOPPED = "stopped"
LEASE_STATUS_PROVISIONING = "provisioning"
LEASE_STATUS_RUNNING = "running"

# Activity labels for spends
ACTIVITY_LABEL_CREATE = "Redeemed VPS 6H"
ACTIVITY_LABEL_EXTEND = "Extended time"

# Tasks
TASK_VIDEO = "video"
TASK_SHORT = "short"
TASK_DAILY = "daily"

DEFAULT_TASKS = {
    TASK_VIDEO: {"reward": 5, "cooldown_seconds": 0, "label": "Watched Ad"},
    TASK_SHORT: {"reward": 2, "cooldown_seconds": 25, "label": "Short Link Completed"},
    TASK_DAILY: {"reward": 10, "cooldown_seconds": 0, "label": "Daily Bonus Achieved"},  # 1/day (UTC)
}

# Activity log retention
ACTIVITY_MAX = 6

# Simulated network latency
LATENCY_MIN_MS = 850
LATENCY_MAX_MS = 1350

# Reconciliation tick period
TICK_INTERVAL_MS = 1000

# Storage keys
KEY_APP_STATE = "app-state"
KEY_SESSION_EARNED = "session-earned"

# Filesystem locations
DEFAULT_DB_DIRECTORY_PROD = "/var/lib/cloudvps"
DEFAULT_DB_DIRECTORY_DEV = "./data"
DEFAULT_DB_FILE = "cloudvps.db"
DEFAULT_LOG_DIRECTORY_PROD = "/var/log/cloudvps"
DEFAULT_LOG_DIRECTORY_DEV = "./logs"
