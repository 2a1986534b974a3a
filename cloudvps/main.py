from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
import logging
import os
from pathlib import Path

from cloudvps.config import load_config
from cloudvps.database import SessionLocal, init_db
from cloudvps.exceptions import ErrorCode
from cloudvps.repositories.kv_repository import PersistentStore, SessionStore
from cloudvps.schemas import EngineSnapshot, OperationResult
from cloudvps.services.clock_service import ClockService
from cloudvps.services.engine_service import EngineService
from cloudvps.services.scheduler_service import start_scheduler, stop_scheduler
from cloudvps.constants import DEFAULT_LOG_DIRECTORY_PROD, DEFAULT_LOG_DIRECTORY_DEV

LOG_DIR = os.getenv("CLOUDVPS_LOG_DIR", DEFAULT_LOG_DIRECTORY_PROD)
LOG_FILE = os.getenv("CLOUDVPS_LOG_FILE", "app.log")

# Create log directory if it doesn't exist (for development)
try:
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE
except PermissionError:
    # Fallback to local directory if no permissions for /var/log
    LOG_DIR = DEFAULT_LOG_DIRECTORY_DEV
    Path(LOG_DIR).mkdir(parents=True, exist_ok=True)
    log_path = Path(LOG_DIR) / LOG_FILE

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_path),
        logging.StreamHandler()  # Also log to console
    ]
)

logger = logging.getLogger("cloudvps.api")

app = FastAPI(
    title="CloudVPS Rewards API",
    description="Earn points with tasks, spend them on a time-boxed VPS lease",
    version="1.0.0"
)

CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CLOUDVPS_CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Failed results -> HTTP status
ERROR_STATUS = {
    ErrorCode.INSUFFICIENT_FUNDS: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.ON_COOLDOWN: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.ALREADY_CLAIMED_TODAY: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_ACTIVE: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_RUNNING: status.HTTP_409_CONFLICT,
    ErrorCode.NOTHING_TO_EXTEND: status.HTTP_409_CONFLICT,
    ErrorCode.UNKNOWN_TASK: status.HTTP_404_NOT_FOUND,
}


def build_engine() -> EngineService:
    return EngineService(
        config=load_config(),
        clock=ClockService(),
        store=PersistentStore(SessionLocal),
        session_store=SessionStore(),
    )


def get_engine(request: Request) -> EngineService:
    return request.app.state.engine


def _raise_on_failure(result: OperationResult) -> OperationResult:
    if not result.ok:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.error, status.HTTP_400_BAD_REQUEST),
            detail=result.model_dump(mode="json"),
        )
    return result


# Startup event
@app.on_event("startup")
async def startup_event():
    init_db()
    app.state.engine = build_engine()
    logger.info(f"CloudVPS API started. Logging to: {log_path}")
    start_scheduler(app.state.engine)


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Shutting down CloudVPS API")
    stop_scheduler()


# Health check
@app.get("/")
async def root():
    return {"message": "CloudVPS Rewards API", "status": "active"}


@app.get("/api/snapshot", response_model=EngineSnapshot)
def get_snapshot(engine: EngineService = Depends(get_engine)):
    """Read-only state for rendering"""
    return engine.get_snapshot()


@app.post("/api/tasks/{task_type}/claim", response_model=OperationResult)
async def claim_task(task_type: str, engine: EngineService = Depends(get_engine)):
    """Complete a task after the simulated latency"""
    return _raise_on_failure(await engine.run_task(task_type))


@app.post("/api/lease", response_model=OperationResult)
async def create_lease(engine: EngineService = Depends(get_engine)):
    """Redeem points for a lease and wait for provisioning"""
    return _raise_on_failure(await engine.provision_lease())


@app.post("/api/lease/stop", response_model=OperationResult)
def stop_lease(confirm: bool = False, engine: EngineService = Depends(get_engine)):
    """Pause the lease (requires explicit confirmation)"""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Confirmation required: pass confirm=true"
        )
    return _raise_on_failure(engine.stop_lease())


@app.post("/api/lease/extend", response_model=OperationResult)
def extend_lease(engine: EngineService = Depends(get_engine)):
    return _raise_on_failure(engine.extend_lease())


@app.post("/api/reset", response_model=EngineSnapshot)
def reset(engine: EngineService = Depends(get_engine)):
    """Factory reset: clear all stored state"""
    logger.info("Factory reset requested")
    return engine.reset()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("cloudvps.main:app", host="0.0.0.0", port=8000, reload=False)
