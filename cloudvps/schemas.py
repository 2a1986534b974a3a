from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from cloudvps.constants import (
    LEASE_STATUS_STOPPED, LEASE_STATUS_PROVISIONING, LEASE_STATUS_RUNNING
)
from cloudvps.exceptions import ErrorCode


class LeaseStatus(str, Enum):
    STOPPED = LEASE_STATUS_STOPPED
    PROVISIONING = LEASE_STATUS_PROVISIONING
    RUNNING = LEASE_STATUS_RUNNING


class EngineEvent(str, Enum):
    DAILY_REFRESHED = "daily_refreshed"
    LEASE_RUNNING = "lease_running"
    LEASE_EXPIRED = "lease_expired"


# Persisted state

class ActivityEntry(BaseModel):
    label: str
    delta: int  # signed: + earned, - spent
    timestamp: datetime


class DailyWindow(BaseModel):
    utc_date: str = ""  # YYYY-MM-DD
    earned: int = Field(default=0, ge=0)
    daily_claimed_date: str = ""  # YYYY-MM-DD or empty


class TaskCooldown(BaseModel):
    cooldown_until: Optional[datetime] = None  # None = never claimed


class LeaseState(BaseModel):
    status: LeaseStatus = LeaseStatus.STOPPED
    time_left_seconds: int = Field(default=0, ge=0)
    last_reconcile_at: Optional[datetime] = None
    provisioning_deadline: Optional[datetime] = None  # set while provisioning


class AppState(BaseModel):
    points_balance: int = Field(default=0, ge=0)
    daily: DailyWindow = Field(default_factory=DailyWindow)
    lease: LeaseState = Field(default_factory=LeaseState)
    tasks: Dict[str, TaskCooldown] = Field(default_factory=dict)
    activity: List[ActivityEntry] = Field(default_factory=list)  # newest first


# Read-only views

class TaskAvailability(BaseModel):
    task_type: str
    label: str
    reward: int
    available: bool
    cooldown_remaining_seconds: int = 0
    status_label: str


class EngineSnapshot(BaseModel):
    points_balance: int
    daily: DailyWindow
    lease: LeaseState
    time_left_display: str  # HH:MM:SS
    tasks: List[TaskAvailability]
    activity: List[ActivityEntry]

    # Progress toward first redemption (current run only)
    session_earned: int
    session_target: int
    session_progress_pct: float

    can_create: bool
    can_stop: bool
    can_extend: bool


class OperationResult(BaseModel):
    ok: bool
    error: Optional[ErrorCode] = None
    message: Optional[str] = None
    points_delta: int = 0
    snapshot: Optional[EngineSnapshot] = None
