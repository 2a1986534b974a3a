"""
Engine configuration.
Defaults come from constants.py and can be overridden with CLOUDVPS_* environment variables.
"""
import logging
import os
from typing import Dict

from pydantic import BaseModel, Field, model_validator

from cloudvps.constants import (
    LEASE_BASE_SECONDS,
    LEASE_CREATE_COST,
    LEASE_EXTEND_COST,
    LEASE_EXTEND_SECONDS,
    DEFAULT_TASKS,
    ACTIVITY_MAX,
    LATENCY_MIN_MS,
    LATENCY_MAX_MS,
    TICK_INTERVAL_MS,
)

logger = logging.getLogger("cloudvps.config")


class TaskConfig(BaseModel):
    reward: int = Field(..., gt=0)
    cooldown_seconds: int = Field(default=0, ge=0)
    label: str = Field(..., min_length=1)


class EngineConfig(BaseModel):
    # Lease
    lease_base_seconds: int = Field(default=LEASE_BASE_SECONDS, gt=0)
    lease_create_cost: int = Field(default=LEASE_CREATE_COST, ge=0)
    lease_extend_cost: int = Field(default=LEASE_EXTEND_COST, ge=0)
    lease_extend_seconds: int = Field(default=LEASE_EXTEND_SECONDS, gt=0)

    # Tasks (type -> reward/cooldown/label)
    tasks: Dict[str, TaskConfig] = Field(
        default_factory=lambda: {name: TaskConfig(**cfg) for name, cfg in DEFAULT_TASKS.items()}
    )

    activity_max: int = Field(default=ACTIVITY_MAX, ge=1)

    # Simulated latency and tick period
    latency_min_ms: int = Field(default=LATENCY_MIN_MS, ge=0)
    latency_max_ms: int = Field(default=LATENCY_MAX_MS, ge=0)
    tick_interval_ms: int = Field(default=TICK_INTERVAL_MS, gt=0)

    @model_validator(mode="after")
    def check_latency_bounds(self):
        if self.latency_max_ms < self.latency_min_ms:
            raise ValueError("latency_max_ms must be >= latency_min_ms")
        return self


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring malformed {name}={raw!r}, using {default}")
        return default


def _load_tasks() -> Dict[str, TaskConfig]:
    """Task table with CLOUDVPS_TASK_<TYPE>_REWARD / _COOLDOWN_SECONDS overrides"""
    tasks = {}
    for name, cfg in DEFAULT_TASKS.items():
        prefix = f"CLOUDVPS_TASK_{name.upper()}"
        tasks[name] = TaskConfig(
            reward=_env_int(f"{prefix}_REWARD", cfg["reward"]),
            cooldown_seconds=_env_int(f"{prefix}_COOLDOWN_SECONDS", cfg["cooldown_seconds"]),
            label=cfg["label"],
        )
    return tasks


def load_config() -> EngineConfig:
    """
    Build engine configuration from defaults and environment overrides.

    Returns:
        Validated EngineConfig
    """
    return EngineConfig(
        lease_base_seconds=_env_int("CLOUDVPS_LEASE_BASE_SECONDS", LEASE_BASE_SECONDS),
        lease_create_cost=_env_int("CLOUDVPS_LEASE_CREATE_COST", LEASE_CREATE_COST),
        lease_extend_cost=_env_int("CLOUDVPS_LEASE_EXTEND_COST", LEASE_EXTEND_COST),
        lease_extend_seconds=_env_int("CLOUDVPS_LEASE_EXTEND_SECONDS", LEASE_EXTEND_SECONDS),
        tasks=_load_tasks(),
        activity_max=_env_int("CLOUDVPS_ACTIVITY_MAX", ACTIVITY_MAX),
        latency_min_ms=_env_int("CLOUDVPS_LATENCY_MIN_MS", LATENCY_MIN_MS),
        latency_max_ms=_env_int("CLOUDVPS_LATENCY_MAX_MS", LATENCY_MAX_MS),
        tick_interval_ms=_env_int("CLOUDVPS_TICK_INTERVAL_MS", TICK_INTERVAL_MS),
    )
