"""
Custom exceptions for the rewards and lease engine.
Every exception here is an expected, recoverable condition that the
engine facade turns into a failed OperationResult.
"""
from enum import Enum


class ErrorCode(str, Enum):
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ON_COOLDOWN = "on_cooldown"
    ALREADY_CLAIMED_TODAY = "already_claimed_today"
    ALREADY_ACTIVE = "already_active"
    NOT_RUNNING = "not_running"
    NOTHING_TO_EXTEND = "nothing_to_extend"
    UNKNOWN_TASK = "unknown_task"


class CloudVPSException(Exception):
    """Base exception for the engine"""
    code: ErrorCode

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InsufficientFundsException(CloudVPSException):
    """Raised when a debit exceeds the points balance"""
    code = ErrorCode.INSUFFICIENT_FUNDS

    def __init__(self, required: int, balance: int):
        self.required = required
        self.balance = balance
        super().__init__(f"Not enough points. Need {required - balance} more.")


class OnCooldownException(CloudVPSException):
    """Raised when a task is claimed before its cooldown has elapsed"""
    code = ErrorCode.ON_COOLDOWN

    def __init__(self, task_type: str, remaining_seconds: int):
        self.task_type = task_type
        self.remaining_seconds = remaining_seconds
        super().__init__(f"Task on cooldown. Please wait {remaining_seconds}s.")


class AlreadyClaimedTodayException(CloudVPSException):
    """Raised when the daily bonus was already claimed for the current UTC day"""
    code = ErrorCode.ALREADY_CLAIMED_TODAY

    def __init__(self, date_key: str):
        self.date_key = date_key
        super().__init__("Daily bonus already claimed today (UTC).")


class AlreadyActiveException(CloudVPSException):
    """Raised when creating a lease while one is provisioning or running"""
    code = ErrorCode.ALREADY_ACTIVE

    def __init__(self, status: str):
        self.status = status
        super().__init__("VPS is already running/provisioning.")


class NotRunningException(CloudVPSException):
    code = ErrorCode.NOT_RUNNING

    def __init__(self, status: str):
        self.status = status
        super().__init__("VPS is not running.")


class NothingToExtendException(CloudVPSException):
    code = ErrorCode.NOTHING_TO_EXTEND

    def __init__(self):
        super().__init__("No active time to extend. Create a VPS first.")


class UnknownTaskException(CloudVPSException):
    code = ErrorCode.UNKNOWN_TASK

    def __init__(self, task_type: str):
        self.task_type = task_type
        super().__init__(f"Unknown task type: {task_type}")
